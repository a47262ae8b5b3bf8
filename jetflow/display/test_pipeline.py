#!/usr/bin/env python3
"""
# test_pipeline.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""
Unit tests for the display event loop.

Tests cover:
- Page count and event-major, algorithm-minor page order
- Skipping of failed events and events without two resonances
- Pileup overlay (mu = 0 and reproducible mu > 0)
- Initialization failures before the document is opened
- The document is closed when clustering fails
- Jets whose pT depends on their ghosts are rejected
"""

import sys
import unittest
from pathlib import Path

import numpy as np

SCRIPT_PATH = Path(__file__).resolve()
DISPLAY_DIR = SCRIPT_PATH.parent                              # .../jetflow/display
PACKAGE_DIR = DISPLAY_DIR.parent                              # .../jetflow
REPO_ROOT = PACKAGE_DIR.parent                                # .../repository root

# Add repository root to path for local imports.
sys.path.insert(0, str(REPO_ROOT))

from jetflow.analysis.clustering import AlgorithmConfig, GhostToleranceError, Jet
from jetflow.analysis.flow import GhostOverlapError
from jetflow.analysis.ghosts import GridBinning
from jetflow.analysis.particles import PILEUP, Particle, particle_from_pt_y_phi
from jetflow.config import DisplayConfig
from jetflow.display.pipeline import DisplaySummary, run_display


# ============================================================================
# Fakes
# ============================================================================

def make_record(n_resonances=2):
    rec = [
        Particle(0, 0, 0, 13600.0, status=-11, index=0, name="system"),
        Particle(60.0, 10.0, 5.0, 101.0, charge=1, status=-62, is_resonance=True,
                 index=1, daughters=(3, 4), pdg_id=24, name="W+"),
        Particle(-60.0, -10.0, -5.0, 140.0, status=-62, is_resonance=True,
                 index=2, daughters=(5, 6), pdg_id=25, name="h0"),
        Particle(30.0, 5.0, 2.0, 30.5, status=-23, index=3, pdg_id=2, name="u"),
        Particle(30.0, 5.0, 3.0, 30.6, status=-23, index=4, pdg_id=-1, name="dbar"),
        Particle(-30.0, -5.0, -2.0, 30.5, status=-23, index=5, pdg_id=5, name="b"),
        Particle(-30.0, -5.0, -3.0, 30.6, status=-23, index=6, pdg_id=-5, name="bbar"),
        particle_from_pt_y_phi(40.0, 0.5, 0.2, charge=1, status=83, index=7, name="pi+"),
        particle_from_pt_y_phi(30.0, -1.5, 2.0, charge=0, status=91, index=8, name="gamma"),
    ]
    if n_resonances == 1:
        rec[2] = Particle(-60.0, -10.0, -5.0, 140.0, status=-22, is_resonance=True,
                          index=2, daughters=(5, 6), pdg_id=25, name="h0")
    return tuple(rec)


def make_minbias():
    return (
        Particle(0, 0, 0, 13600.0, status=-11, index=0, name="system"),
        particle_from_pt_y_phi(2.0, 0.1, 0.1, charge=1, status=84, index=1, name="pi+"),
        particle_from_pt_y_phi(1.5, -0.7, 2.5, charge=0, status=91, index=2, name="gamma"),
    )


class ScriptedSource:
    """Event source replaying a fixed list of records (None = failed event)."""

    def __init__(self, records, n_events=None, fail_init=False, repeat=False):
        self.records = list(records)
        self.n_events = n_events
        self.fail_init = fail_init
        self.repeat = repeat
        self.init_calls = 0
        self.next_calls = 0

    def init(self):
        self.init_calls += 1
        if self.fail_init:
            raise RuntimeError("init failed")

    def next(self):
        self.next_calls += 1
        if self.repeat:
            return self.records[0]
        return self.records.pop(0) if self.records else None


class GhostJetEngine:
    """
    Engine returning one jet per algorithm, built from a real particle and a fixed ghost of the pool.

    Algorithm "A" takes the first ghost and "B" the second; every pool is kept.
    Jet momentum is the real particle's plus `ghost_px` along x.
    """

    def __init__(self, overlap=False, fail=False, ghost_px=0.0):
        self.pools = []
        self.overlap = overlap
        self.fail = fail
        self.ghost_px = ghost_px

    def _jet(self, real, ghost):
        return Jet(px=real.px + self.ghost_px, py=real.py, pz=real.pz, e=real.e + abs(self.ghost_px),
                   constituents=(real, ghost))

    def inclusive_jets(self, particles, algorithm, min_pt):
        if self.fail:
            raise RuntimeError("clustering failed")
        self.pools.append(list(particles))
        ghosts = [p for p in particles if p.is_ghost]
        real = [p for p in particles if not p.is_ghost]
        which = 0 if algorithm.name == "A" else 1
        jets = [self._jet(real[0], ghosts[which])]
        if self.overlap:
            jets.append(self._jet(real[1], ghosts[which]))
        return jets


class RecordingRenderer:
    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        def record(*args, **kwargs):
            self.calls.append(name)
        return record

    def count(self, name):
        return self.calls.count(name)


def make_config(**kwargs):
    params = dict(
        grid=GridBinning(n_y=4, n_phi=4),
        algorithms=(AlgorithmConfig(name="A"), AlgorithmConfig(name="B", kind="kt")),
        mu=0.0,
        n_events=2,
    )
    params.update(kwargs)
    return DisplayConfig(**params)


# ============================================================================
# Test Classes
# ============================================================================

class TestRunDisplay(unittest.TestCase):
    """Event loop."""

    def test_page_order(self):
        renderer = RecordingRenderer()
        source = ScriptedSource([make_record(), make_record()])
        summary = run_display(make_config(), source, GhostJetEngine(), renderer)

        self.assertIsInstance(summary, DisplaySummary)
        self.assertEqual(summary.pages, [(0, "A"), (0, "B"), (1, "A"), (1, "B")])
        self.assertEqual(summary.n_rendered, 2)
        self.assertEqual(renderer.count("new_page"), 4)
        self.assertEqual(renderer.count("end_page"), 4)
        self.assertEqual(renderer.count("open_document"), 1)
        self.assertEqual(renderer.count("close_document"), 1)
        self.assertEqual(renderer.calls[0], "open_document")
        self.assertEqual(renderer.calls[-1], "close_document")

    def test_legend_only_on_first_page(self):
        renderer = RecordingRenderer()
        source = ScriptedSource([make_record(), make_record()])
        run_display(make_config(), source, GhostJetEngine(), renderer)
        self.assertEqual(renderer.count("draw_box"), 1)

    def test_invalid_and_failed_events_skipped(self):
        renderer = RecordingRenderer()
        source = ScriptedSource([make_record(), make_record(n_resonances=1), None, make_record()])
        summary = run_display(make_config(n_events=4), source, GhostJetEngine(), renderer)

        self.assertEqual(summary.pages, [(0, "A"), (0, "B"), (3, "A"), (3, "B")])
        self.assertEqual(summary.n_generated, 3)
        self.assertEqual(summary.n_invalid, 1)
        self.assertEqual(summary.n_failed, 1)
        self.assertEqual(summary.n_rendered, 2)
        self.assertEqual(renderer.count("new_page"), 4)

    def test_event_count_from_source(self):
        source = ScriptedSource([make_record()] * 3, n_events=3)
        summary = run_display(make_config(n_events=None), source, GhostJetEngine(), RecordingRenderer())
        self.assertEqual(summary.n_events_requested, 3)
        self.assertEqual(len(summary.pages), 6)

    def test_event_count_missing(self):
        renderer = RecordingRenderer()
        source = ScriptedSource([make_record()])
        with self.assertRaises(ValueError):
            run_display(make_config(n_events=None), source, GhostJetEngine(), renderer)
        self.assertEqual(renderer.count("open_document"), 0)

    def test_same_pool_for_every_algorithm(self):
        engine = GhostJetEngine()
        run_display(make_config(n_events=1), ScriptedSource([make_record()]), engine, RecordingRenderer())
        self.assertEqual(len(engine.pools), 2)
        self.assertEqual(engine.pools[0], engine.pools[1])
        # Two hard-scatter finals, no pileup, 16 ghosts.
        self.assertEqual(len(engine.pools[0]), 2 + 16)

    def test_no_pileup_when_mu_zero(self):
        engine = GhostJetEngine()
        pileup = ScriptedSource([make_minbias()], repeat=True)
        summary = run_display(make_config(), ScriptedSource([make_record(), make_record()]),
                              engine, RecordingRenderer(), pileup_source=pileup)
        self.assertEqual(pileup.init_calls, 0)
        self.assertEqual(pileup.next_calls, 0)
        self.assertEqual(summary.pileup_drawn, 0)
        for pool in engine.pools:
            self.assertFalse(any(p.provenance == PILEUP for p in pool))

    def test_pileup_overlay_is_reproducible(self):
        engine = GhostJetEngine()
        pileup = ScriptedSource([make_minbias()], repeat=True)
        config = make_config(mu=3.0, seed=42)
        summary = run_display(config, ScriptedSource([make_record(), make_record()]),
                              engine, RecordingRenderer(), pileup_source=pileup)

        expected = [int(np.random.default_rng([42, i]).poisson(3.0)) for i in range(2)]
        self.assertEqual(pileup.init_calls, 1)
        self.assertEqual(summary.pileup_drawn, sum(expected))
        self.assertEqual(pileup.next_calls, sum(expected))
        # Two final-state particles per pileup interaction.
        n_pileup = [sum(p.provenance == PILEUP for p in pool) for pool in engine.pools]
        self.assertEqual(n_pileup, [2 * expected[0]] * 2 + [2 * expected[1]] * 2)

    def test_pileup_source_required(self):
        renderer = RecordingRenderer()
        source = ScriptedSource([make_record()])
        with self.assertRaises(ValueError):
            run_display(make_config(mu=5.0), source, GhostJetEngine(), renderer)
        self.assertEqual(source.init_calls, 0)
        self.assertEqual(renderer.calls, [])

    def test_init_failure_before_document(self):
        renderer = RecordingRenderer()
        with self.assertRaises(RuntimeError):
            run_display(make_config(), ScriptedSource([], fail_init=True), GhostJetEngine(), renderer)
        self.assertEqual(renderer.calls, [])

    def test_pileup_init_failure_before_document(self):
        renderer = RecordingRenderer()
        hard = ScriptedSource([make_record()])
        pileup = ScriptedSource([], fail_init=True)
        with self.assertRaises(RuntimeError):
            run_display(make_config(mu=1.0), hard, GhostJetEngine(), renderer, pileup_source=pileup)
        self.assertEqual(renderer.calls, [])

    def test_document_closed_on_clustering_error(self):
        renderer = RecordingRenderer()
        with self.assertRaises(RuntimeError):
            run_display(make_config(), ScriptedSource([make_record()]), GhostJetEngine(fail=True), renderer)
        self.assertEqual(renderer.count("open_document"), 1)
        self.assertEqual(renderer.calls[-1], "close_document")

    def test_ghost_overlap(self):
        renderer = RecordingRenderer()
        with self.assertRaises(GhostOverlapError):
            run_display(make_config(), ScriptedSource([make_record()]), GhostJetEngine(overlap=True), renderer)
        self.assertEqual(renderer.calls[-1], "close_document")

        summary = run_display(make_config(overlap_policy="overwrite"),
                              ScriptedSource([make_record(), make_record()]),
                              GhostJetEngine(overlap=True), RecordingRenderer())
        self.assertEqual(summary.ghost_overlaps, 4)
        self.assertEqual(len(summary.pages), 4)

    def test_ghost_tolerance_enforced(self):
        renderer = RecordingRenderer()
        with self.assertRaises(GhostToleranceError):
            run_display(make_config(), ScriptedSource([make_record()]), GhostJetEngine(ghost_px=1.0), renderer)
        self.assertEqual(renderer.count("new_page"), 0)
        self.assertEqual(renderer.calls[-1], "close_document")

    def test_ghost_tolerance_from_config(self):
        # A 1e-9 GeV shift passes the default tolerance but not a tighter configured one.
        engine = GhostJetEngine(ghost_px=1e-9)
        summary = run_display(make_config(n_events=1), ScriptedSource([make_record()]), engine, RecordingRenderer())
        self.assertEqual(len(summary.pages), 2)

        with self.assertRaises(GhostToleranceError):
            run_display(make_config(n_events=1, ghost_tolerance=1e-12), ScriptedSource([make_record()]),
                        engine, RecordingRenderer())

    def test_summary_to_dict(self):
        summary = run_display(make_config(), ScriptedSource([make_record(), make_record()]),
                              GhostJetEngine(), RecordingRenderer())
        d = summary.to_dict()
        self.assertEqual(d["n_pages"], 4)
        self.assertEqual(d["pages"][1], {"event": 0, "algorithm": "B"})
        self.assertEqual(d["n_events_requested"], 2)


if __name__ == '__main__':
    unittest.main()
