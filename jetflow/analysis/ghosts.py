"""
# ghosts.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Ghost probes placed on a fixed (rapidity, azimuth) grid."""
import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .particles import GHOST, Particle, particle_from_pt_y_phi

# Ghost transverse momentum [GeV]. Real particles are always far above this.
GHOST_PT = 1e-100


@dataclass(frozen=True)
class GridBinning:
    """Binning of the rapidity (x) and azimuth (y) axes of the flow map."""

    n_y: int = 200
    n_phi: int = 157
    y_min: float = -4.0
    y_max: float = 4.0
    phi_min: float = -math.pi
    phi_max: float = math.pi

    def __post_init__(self):
        if self.n_y < 1 or self.n_phi < 1:
            raise ValueError(f"Grid needs at least one bin per axis, got {self.n_y} x {self.n_phi}")
        if not (self.y_max > self.y_min and self.phi_max > self.phi_min):
            raise ValueError("Grid axis ranges must have max > min")

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.n_y, self.n_phi)

    @property
    def y_edges(self) -> np.ndarray:
        return np.linspace(self.y_min, self.y_max, self.n_y + 1)

    @property
    def phi_edges(self) -> np.ndarray:
        return np.linspace(self.phi_min, self.phi_max, self.n_phi + 1)

    @property
    def y_centers(self) -> np.ndarray:
        e = self.y_edges
        return 0.5 * (e[:-1] + e[1:])

    @property
    def phi_centers(self) -> np.ndarray:
        e = self.phi_edges
        return 0.5 * (e[:-1] + e[1:])

    def locate(self, y: float, phi: float) -> Tuple[int, int]:
        """Return the (iy, iphi) cell containing a point, or (-1, -1) if outside."""
        if not (self.y_min <= y < self.y_max and self.phi_min <= phi < self.phi_max):
            return (-1, -1)
        iy = int((y - self.y_min) / (self.y_max - self.y_min) * self.n_y)
        iphi = int((phi - self.phi_min) / (self.phi_max - self.phi_min) * self.n_phi)
        return (min(iy, self.n_y - 1), min(iphi, self.n_phi - 1))


@dataclass(frozen=True)
class GhostGrid:
    """Immutable list of ghost probes, one per grid cell, built once per run."""

    binning: GridBinning
    ghost_pt: float
    probes: Tuple[Particle, ...]

    def __len__(self) -> int:
        return len(self.probes)


def build_ghost_grid(binning: GridBinning, ghost_pt: float = GHOST_PT) -> GhostGrid:
    """
    Place one massless ghost at the center of every grid cell.

    Rapidity bins form the outer loop and azimuth bins the inner one, so the
    probe for cell (iy, iphi) sits at position iy * n_phi + iphi.
    """
    if not ghost_pt > 0.0:
        raise ValueError(f"ghost_pt must be positive, got {ghost_pt}")
    probes = []
    for iy, y in enumerate(binning.y_centers):
        for iphi, phi in enumerate(binning.phi_centers):
            probes.append(
                particle_from_pt_y_phi(
                    ghost_pt, float(y), float(phi),
                    status=1, provenance=GHOST, cell=(iy, iphi), name="ghost",
                )
            )
    return GhostGrid(binning=binning, ghost_pt=ghost_pt, probes=tuple(probes))
