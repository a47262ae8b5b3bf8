"""
# pileup.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional

import numpy as np

from .particles import PILEUP, Particle, retag


@dataclass
class OverlayResult:
    """Pileup particles overlaid on one event and the draw bookkeeping."""

    particles: List[Particle] = field(default_factory=list)
    n_drawn: int = 0
    n_failed: int = 0

    @property
    def n_overlaid(self) -> int:
        return self.n_drawn - self.n_failed


def pileup_rng(seed: Optional[int], event_index: int) -> np.random.Generator:
    """
    Random stream for the pileup draw of one event.

    With a seed, the stream depends only on (seed, event_index), so overlays
    are reproducible whatever order events are processed in.
    """
    if seed is None:
        return np.random.default_rng()
    return np.random.default_rng([int(seed), int(event_index)])


def overlay_pileup(source: Any, mu: float, rng: Any) -> OverlayResult:
    """
    Overlay a Poisson(mu) number of pileup interactions.

    Each interaction asks `source.next()` for one event and keeps its
    final-state particles, tagged as pileup. An interaction whose event could
    not be generated is skipped; the remaining draws still run. With mu == 0
    neither the random stream nor the source is touched.
    """
    if mu < 0:
        raise ValueError(f"Pileup mean mu must be >= 0, got {mu}")
    result = OverlayResult()
    if mu == 0:
        return result

    result.n_drawn = int(rng.poisson(mu))
    for _ in range(result.n_drawn):
        record = source.next()
        if record is None:
            result.n_failed += 1
            continue
        result.particles.extend(retag([p for p in record if p.is_final], PILEUP))
    return result
