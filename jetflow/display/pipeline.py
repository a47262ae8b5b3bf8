"""
# pipeline.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""
Event loop of the jet-flow display.

For every event: classify the record, overlay pileup, cluster the pool with
each configured algorithm and render one page per algorithm. Pages are emitted
event-major, algorithm-minor.
"""
import sys
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from tqdm import tqdm

from ..analysis.clustering import build_particle_pool, cluster_all
from ..analysis.flow import FlowGrid
from ..analysis.ghosts import build_ghost_grid
from ..analysis.particles import classify_event
from ..analysis.pileup import overlay_pileup, pileup_rng
from ..config import DisplayConfig
from .page import PageRenderer

# Configure tqdm to prevent multiple line printing
TQDM_CONFIG = {
    'file': sys.stderr,
    'ncols': 80,
    'leave': True,
    'dynamic_ncols': False,
    'mininterval': 0.1,
    'ascii': False
}


@dataclass
class DisplaySummary:
    """Bookkeeping of one display run."""

    n_events_requested: int = 0
    n_generated: int = 0
    n_failed: int = 0
    n_invalid: int = 0
    n_rendered: int = 0
    pages: List[Tuple[int, str]] = field(default_factory=list)
    pileup_drawn: int = 0
    pileup_failed: int = 0
    ghost_overlaps: int = 0

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["n_pages"] = len(self.pages)
        d["pages"] = [{"event": i, "algorithm": name} for i, name in self.pages]
        return d


def _note(progress: bool, message: str) -> None:
    if progress:
        tqdm.write(message, file=sys.stderr)


def run_display(
    config: DisplayConfig,
    hard_source: Any,
    engine: Any,
    renderer: Any,
    pileup_source: Optional[Any] = None,
    progress: bool = False,
) -> DisplaySummary:
    """
    Render every valid event of `hard_source` with every configured algorithm.

    Source initialization happens before the document is opened, so an init
    failure leaves no output behind. Events the source fails to produce and
    events without exactly two resonances are skipped and counted. The
    document is closed even when clustering or drawing raises, including
    when a jet fails the ghost tolerance check (GhostToleranceError).
    """
    if config.mu > 0 and pileup_source is None:
        raise ValueError(f"A pileup source is required for mu = {config.mu}")

    hard_source.init()
    if config.mu > 0:
        pileup_source.init()

    ghosts = build_ghost_grid(config.grid, config.ghost_pt)
    n_events = config.n_events
    if n_events is None:
        n_events = getattr(hard_source, "n_events", None)
        if n_events is None:
            raise ValueError("Event count is neither configured nor provided by the event source")
    n_events = int(n_events)

    summary = DisplaySummary(n_events_requested=n_events)
    page_renderer = PageRenderer(config, renderer)
    flow = FlowGrid(config.grid)

    renderer.open_document()
    try:
        events = range(n_events)
        if progress:
            events = tqdm(events, desc="Rendering events", unit="evt", **TQDM_CONFIG)
        for i_event in events:
            record = hard_source.next()
            if record is None:
                summary.n_failed += 1
                continue
            summary.n_generated += 1

            event = classify_event(record, config.resonance_status)
            if not event.is_valid:
                summary.n_invalid += 1
                _note(progress, f"Event {i_event}: found {len(event.resonances)} resonances, skipped")
                continue

            overlay = overlay_pileup(pileup_source, config.mu, pileup_rng(config.seed, i_event))
            event.pileup.extend(overlay.particles)
            summary.pileup_drawn += overlay.n_drawn
            summary.pileup_failed += overlay.n_failed
            if config.mu > 0:
                _note(progress, f"Overlaying particles from {overlay.n_drawn} pileup interactions")

            pool = build_particle_pool(event, ghosts)
            for algorithm, jets in cluster_all(pool, config.algorithms, engine, config.jet_pt_min,
                                               config.ghost_tolerance):
                flow.accumulate(jets, config.overlap_policy)
                summary.ghost_overlaps += flow.n_overlaps
                page_renderer.draw_page(flow, event, algorithm, first_page=not summary.pages)
                summary.pages.append((i_event, algorithm.name))
            summary.n_rendered += 1
    finally:
        renderer.close_document()
    return summary
