"""
# __init__.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Jet-algorithm event displays: ghost-probed pT flow of jets over pileup."""

__version__ = "0.1.0"

# Rendering (matplotlib, Agg backend) is imported from jetflow.display explicitly.
from . import analysis
from . import pythia
from .config import DisplayConfig, load_display_config, parse_algorithm
