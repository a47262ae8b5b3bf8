"""
# sandbox_utils.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""
Utilities for managing demo sandbox directories.
"""

import re
import shutil
from pathlib import Path
from typing import Iterable


def create_new_sandbox(demo_files_dir: Path, cards: Iterable[Path]) -> str:
    """
    Create a new sandbox directory with the next available number.
    Copies the run cards into its 'cards' subdirectory.

    Args:
        demo_files_dir: Directory holding the numbered sandboxes
        cards: Pythia .cmnd run cards to make available to the display tool

    Returns:
        str: absolute path to the new sandbox
    """
    demo_files_dir.mkdir(parents=True, exist_ok=True)

    # Find existing sandbox directories
    existing_sandboxes = []
    for item in demo_files_dir.iterdir():
        if item.is_dir():
            match = re.match(r'sandbox(\d+)$', item.name)
            if match:
                existing_sandboxes.append(int(match.group(1)))

    # Determine next sandbox number
    next_num = max(existing_sandboxes) + 1 if existing_sandboxes else 1
    new_sandbox_name = f'sandbox{next_num:03d}'
    new_sandbox_path = demo_files_dir / new_sandbox_name

    cards_dir = new_sandbox_path / 'cards'
    cards_dir.mkdir(parents=True, exist_ok=True)
    print(f"Created new sandbox: {new_sandbox_name}")

    for card in cards:
        shutil.copy2(card, cards_dir / card.name)
        print(f"Copied run card: {card.name}")

    return str(new_sandbox_path)
