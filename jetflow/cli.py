"""
# cli.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""
Command line entry point: jetflow-display.

Example:
    jetflow-display --cmnd examples/wh_qqbb.cmnd --pileup-cmnd examples/minbias.cmnd \\
        --n-events 5 --mu 60 --seed 12345 --out result.pdf
"""
import argparse
import json
import sys
from typing import List, Optional

from .analysis.clustering import FastJetEngine
from .analysis.particles import HARD_SCATTER, PILEUP
from .config import DisplayConfig, load_display_config, parse_algorithm
from .display.pipeline import run_display
from .display.render import MatplotlibRenderer
from .pythia.pythia import EventSourceError, PythiaEventSource, SlowJetEngine

ENGINES = ("fastjet", "slowjet")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jetflow-display",
        description="Render jet-algorithm event displays (pT flow of jets over pileup) to a multi-page PDF",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--cmnd", required=True, help="Pythia .cmnd run card of the hard process")
    parser.add_argument("--pileup-cmnd", default=None, help="Pythia .cmnd run card of pileup interactions (default: --cmnd)")
    parser.add_argument("--config", default=None, help="JSON file with display settings")
    parser.add_argument("--out", default="result.pdf", help="Output PDF (default: result.pdf)")
    parser.add_argument("--n-events", type=int, default=None, help="Number of events (default: Main:numberOfEvents of the card)")
    parser.add_argument("--mu", type=float, default=None, help="Mean number of pileup interactions per event")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for generators and pileup draws")
    parser.add_argument(
        "--algorithm",
        action="append",
        default=None,
        metavar="KIND:R",
        help="Jet algorithm, e.g. antikt:0.4 (repeat for several; default: antikt:0.4 and kt:0.4)"
    )
    parser.add_argument("--jet-ptmin", type=float, default=None, help="Minimum jet pT [GeV]")
    parser.add_argument("--engine", choices=ENGINES, default="fastjet", help="Clustering backend")
    parser.add_argument("-q", "--quiet", action="store_true", help="Disable the progress bar")
    return parser


def build_config(args: argparse.Namespace) -> DisplayConfig:
    overrides = {
        "n_events": args.n_events,
        "mu": args.mu,
        "seed": args.seed,
        "jet_pt_min": args.jet_ptmin,
        "algorithms": tuple(parse_algorithm(a) for a in args.algorithm) if args.algorithm else None,
    }
    if args.config:
        return load_display_config(args.config, **overrides)
    return DisplayConfig(**{k: v for k, v in overrides.items() if v is not None})


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = build_config(args)
    except (OSError, ValueError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 2

    hard_source = PythiaEventSource(args.cmnd, provenance=HARD_SCATTER, seed=config.seed)
    pileup_source = None
    if config.mu > 0:
        pileup_seed = None if config.seed is None else config.seed + 1
        pileup_source = PythiaEventSource(args.pileup_cmnd or args.cmnd, provenance=PILEUP, seed=pileup_seed)
    engine = FastJetEngine() if args.engine == "fastjet" else SlowJetEngine()
    renderer = MatplotlibRenderer(args.out, config.grid)

    try:
        summary = run_display(config, hard_source, engine, renderer,
                              pileup_source=pileup_source, progress=not args.quiet)
    except (EventSourceError, ImportError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps({"status": "ok", "pdf": args.out, **summary.to_dict()}, indent=2))
    print(f"Produced {args.out}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
