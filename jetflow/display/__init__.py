"""
# __init__.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""
Page rendering and the display event loop.

The orchestral agent tool lives in `jetflow.display.tool` and is imported
explicitly, so this package works without orchestral installed.
"""
from .page import PageRenderer, particle_label
from .pipeline import TQDM_CONFIG, DisplaySummary, run_display
from .render import MatplotlibRenderer, text_alignment
