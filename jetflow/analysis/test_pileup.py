#!/usr/bin/env python3
"""
# test_pileup.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""
Unit tests for the pileup overlay.

Tests cover:
- mu = 0 (no draw, source untouched)
- Per-interaction failures (source returning no event)
- Final-state selection and pileup tagging
- Reproducible per-event random streams
"""

import sys
import unittest
from pathlib import Path

SCRIPT_PATH = Path(__file__).resolve()
ANALYSIS_DIR = SCRIPT_PATH.parent                             # .../jetflow/analysis
PACKAGE_DIR = ANALYSIS_DIR.parent                             # .../jetflow
REPO_ROOT = PACKAGE_DIR.parent                                # .../repository root

# Add repository root to path for local imports.
sys.path.insert(0, str(REPO_ROOT))

from jetflow.analysis.particles import PILEUP, Particle
from jetflow.analysis.pileup import overlay_pileup, pileup_rng


class FixedDraw:
    """Random stream whose Poisson draw always returns the same count."""

    def __init__(self, n):
        self.n = n
        self.calls = 0

    def poisson(self, mu):
        self.calls += 1
        return self.n


class ScriptedSource:
    """Pileup source that fails on the listed (1-based) calls."""

    def __init__(self, fail_on=(), n_final=3):
        self.fail_on = set(fail_on)
        self.n_final = n_final
        self.calls = 0

    def next(self):
        self.calls += 1
        if self.calls in self.fail_on:
            return None
        record = [Particle(0, 0, 100.0, 100.0, status=-12, index=0, name="beam")]
        for i in range(self.n_final):
            record.append(Particle(1.0 + i, 0.5, 0.0, 2.0 + i, charge=1, status=83,
                                   index=i + 1, name=f"call{self.calls}"))
        return tuple(record)


class ExplodingSource:
    """Any use of this source is a test failure."""

    def next(self):
        raise AssertionError("pileup source must not be called when mu == 0")


class TestOverlayPileup(unittest.TestCase):
    """Poisson pileup overlay."""

    def test_mu_zero_never_touches_source(self):
        rng = FixedDraw(5)
        result = overlay_pileup(ExplodingSource(), 0.0, rng)
        self.assertEqual(result.particles, [])
        self.assertEqual(result.n_drawn, 0)
        self.assertEqual(rng.calls, 0)

    def test_zero_draw_overlays_nothing(self):
        source = ScriptedSource()
        result = overlay_pileup(source, 2.0, FixedDraw(0))
        self.assertEqual(result.particles, [])
        self.assertEqual(source.calls, 0)

    def test_second_call_fails(self):
        source = ScriptedSource(fail_on={2}, n_final=3)
        result = overlay_pileup(source, 3.0, FixedDraw(3))
        self.assertEqual(source.calls, 3)
        self.assertEqual(result.n_drawn, 3)
        self.assertEqual(result.n_failed, 1)
        self.assertEqual(result.n_overlaid, 2)
        # Exactly two interactions contributed their final-state particles.
        self.assertEqual(len(result.particles), 6)
        self.assertEqual({p.name for p in result.particles}, {"call1", "call3"})

    def test_particles_tagged_as_pileup(self):
        result = overlay_pileup(ScriptedSource(n_final=2), 1.0, FixedDraw(1))
        self.assertEqual(len(result.particles), 2)
        self.assertTrue(all(p.provenance == PILEUP for p in result.particles))
        self.assertTrue(all(p.is_final for p in result.particles))

    def test_negative_mu(self):
        with self.assertRaises(ValueError):
            overlay_pileup(ScriptedSource(), -1.0, FixedDraw(1))

    def test_real_poisson_draw(self):
        source = ScriptedSource(n_final=1)
        result = overlay_pileup(source, 60.0, pileup_rng(7, 0))
        self.assertEqual(source.calls, result.n_drawn)
        self.assertEqual(len(result.particles), result.n_drawn)
        self.assertGreater(result.n_drawn, 20)


class TestPileupRng(unittest.TestCase):
    """Per-event random streams."""

    def test_same_seed_and_event_reproduce(self):
        a = [pileup_rng(123, 4).poisson(60.0) for _ in range(3)]
        b = [pileup_rng(123, 4).poisson(60.0) for _ in range(3)]
        self.assertEqual(a, b)

    def test_events_get_independent_streams(self):
        draws = {tuple(pileup_rng(123, i).poisson(60.0, size=5)) for i in range(5)}
        self.assertEqual(len(draws), 5)


if __name__ == '__main__':
    unittest.main()
