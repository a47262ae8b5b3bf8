"""
# jetflow_demo.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
# Setup repository path for imports
import sys
from pathlib import Path

# Add repository root to path for local imports
REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT))

# =========================================================== #
# ======================== IMPORTS ========================== #
# =========================================================== #

import json

from jetflow.display.tool import JetFlowDisplayTool

# Import sandbox utilities
from sandbox_utils import create_new_sandbox

# =========================================================== #
# ======================== SETTINGS ========================= #
# =========================================================== #

examples_dir = Path(__file__).resolve().parent
demo_files_dir = examples_dir / 'jetflow_sandbox'

N_EVENTS = 3                          # Events to display
MU = 60.0                             # Mean pileup interactions per event
SEED = 12345                          # Fixed seed for reproducible displays
ALGORITHMS = ["antikt:0.4", "kt:0.4"] # One page per event and algorithm

base_directory = create_new_sandbox(
    demo_files_dir,
    cards=[examples_dir / 'wh_qqbb.cmnd', examples_dir / 'minbias.cmnd'],
)

# Define the display tool, sandboxed to base_directory.
tool = JetFlowDisplayTool(
    base_directory=base_directory,
    data_dir="displays/run001",
    cmnd_path="cards/wh_qqbb.cmnd",
    pileup_cmnd_path="cards/minbias.cmnd",
    n_events=N_EVENTS,
    mu=MU,
    seed=SEED,
    algorithms=ALGORITHMS,
    output_name="result.pdf",
)
tool._setup()

result = tool._run()
try:
    print(json.dumps(json.loads(result), indent=2))
except json.JSONDecodeError:
    # format_error() returns plain text
    print(result)
