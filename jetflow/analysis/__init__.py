"""
# __init__.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Particle classification, ghosts, pileup, clustering and pT flow."""
from .particles import (
    GHOST,
    HARD_SCATTER,
    PILEUP,
    RESONANCE_STATUS,
    EventParticles,
    Particle,
    classify_event,
)
from .ghosts import GHOST_PT, GhostGrid, GridBinning, build_ghost_grid
from .pileup import OverlayResult, overlay_pileup, pileup_rng
from .clustering import (
    AlgorithmConfig,
    FastJetEngine,
    GhostToleranceError,
    Jet,
    build_particle_pool,
    check_ghost_tolerance,
    cluster_all,
    cluster_jets,
    default_algorithm_name,
)
from .flow import FlowGrid, GhostOverlapError
