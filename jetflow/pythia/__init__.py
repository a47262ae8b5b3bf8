"""
# __init__.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Pythia event source and SlowJet clustering engine."""
from .pythia import (
    EventSourceError,
    PythiaEventSource,
    SlowJetEngine,
    _edit_pythia_card,
    _require_pythia,
    _event_to_particles,
)
