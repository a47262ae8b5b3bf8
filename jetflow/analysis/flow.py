"""
# flow.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Jet pT flow map built from the ghost constituents of clustered jets."""
from typing import Iterator, Sequence, Tuple

import numpy as np

from .clustering import Jet
from .ghosts import GridBinning

OVERLAP_POLICIES = ("error", "overwrite")


class GhostOverlapError(ValueError):
    """Two jets of the same clustering claimed the same ghost cell."""


class FlowGrid:
    """
    Per-(event, algorithm) grid of jet pT values.

    One buffer is reused across pages; `accumulate` always starts from a reset
    grid. `owner` records which jet (by position in the jet list) wrote each
    cell, -1 where no jet did.
    """

    def __init__(self, binning: GridBinning):
        self.binning = binning
        self.values = np.zeros(binning.shape, dtype=float)
        self.owner = np.full(binning.shape, -1, dtype=int)
        self.n_overlaps = 0

    def reset(self) -> None:
        self.values.fill(0.0)
        self.owner.fill(-1)
        self.n_overlaps = 0

    def accumulate(self, jets: Sequence[Jet], overlap_policy: str = "error") -> "FlowGrid":
        """
        Deposit every jet's pT into the cells of its ghost constituents.

        Real-particle constituents are skipped. A cell claimed by two different
        jets raises GhostOverlapError under the "error" policy; under
        "overwrite" the later jet wins and the overlap is counted.
        """
        if overlap_policy not in OVERLAP_POLICIES:
            raise ValueError(f"Unknown overlap policy '{overlap_policy}'. Use one of {list(OVERLAP_POLICIES)}")
        self.reset()
        for ijet, jet in enumerate(jets):
            pt = jet.pt
            for ghost in jet.ghosts:
                iy, iphi = ghost.cell
                previous = self.owner[iy, iphi]
                if previous != -1 and previous != ijet:
                    if overlap_policy == "error":
                        raise GhostOverlapError(
                            f"Ghost cell ({iy}, {iphi}) claimed by jets {previous} and {ijet}"
                        )
                    self.n_overlaps += 1
                self.values[iy, iphi] = pt
                self.owner[iy, iphi] = ijet
        return self

    def nonzero_cells(self) -> Iterator[Tuple[int, int, float]]:
        """Yield (iy, iphi, value) for every filled cell."""
        for iy, iphi in zip(*np.nonzero(self.values)):
            yield int(iy), int(iphi), float(self.values[iy, iphi])

    @property
    def max_value(self) -> float:
        return float(self.values.max()) if self.values.size else 0.0
