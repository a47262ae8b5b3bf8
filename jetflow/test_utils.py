#!/usr/bin/env python3
"""
# test_utils.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""
Unit tests for the shared helpers.
"""

import os
import sys
import unittest
from pathlib import Path

SCRIPT_PATH = Path(__file__).resolve()
PACKAGE_DIR = SCRIPT_PATH.parent                              # .../jetflow
REPO_ROOT = PACKAGE_DIR.parent                                # .../repository root

# Add repository root to path for local imports.
sys.path.insert(0, str(REPO_ROOT))

from jetflow.utils import STDERR, STDOUT, silenced


def identity(fd):
    st = os.fstat(fd)
    return st.st_dev, st.st_ino


class TestSilenced(unittest.TestCase):

    def setUp(self):
        st = os.stat(os.devnull)
        self.devnull = (st.st_dev, st.st_ino)

    def test_redirect_and_restore(self):
        before = {fd: identity(fd) for fd in (STDOUT, STDERR)}
        with silenced(STDOUT, STDERR):
            self.assertEqual(identity(STDOUT), self.devnull)
            self.assertEqual(identity(STDERR), self.devnull)
            os.write(STDOUT, b"hidden\n")
        self.assertEqual({fd: identity(fd) for fd in (STDOUT, STDERR)}, before)

    def test_only_named_descriptors(self):
        before = identity(STDERR)
        with silenced(STDOUT):
            self.assertEqual(identity(STDERR), before)

    def test_restored_on_error(self):
        before = identity(STDOUT)
        with self.assertRaises(RuntimeError):
            with silenced(STDOUT):
                raise RuntimeError("clustering failed")
        self.assertEqual(identity(STDOUT), before)


if __name__ == '__main__':
    unittest.main()
