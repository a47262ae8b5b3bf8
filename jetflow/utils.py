"""
# utils.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""
Helpers shared by the clustering engines and the Pythia event source.
"""
import os
import sys
from contextlib import contextmanager
from typing import Iterator

STDOUT, STDERR = 1, 2


@contextmanager
def silenced(*fds: int) -> Iterator[None]:
    """
    Point the given file descriptors at /dev/null for the duration of the block.

    Banners from FastJet and Pythia are written by C++ straight to the
    descriptors, so replacing sys.stdout is not enough.
    """
    # Pending Python output belongs before the redirect.
    sys.stdout.flush()
    sys.stderr.flush()
    devnull = os.open(os.devnull, os.O_WRONLY)
    restore = {fd: os.dup(fd) for fd in fds}
    try:
        for fd in fds:
            os.dup2(devnull, fd)
        yield
    finally:
        for fd, copy in restore.items():
            os.dup2(copy, fd)
            os.close(copy)
        os.close(devnull)
