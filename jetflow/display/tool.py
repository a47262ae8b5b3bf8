"""
# tool.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""

import json, os, datetime
from typing import Any, List, Optional

from orchestral.tools.base.tool import BaseTool
from orchestral.tools.base.field_utils import RuntimeField, StateField

from ..analysis.clustering import FastJetEngine
from ..analysis.ghosts import GridBinning
from ..analysis.particles import HARD_SCATTER, PILEUP
from ..config import DisplayConfig, default_algorithms, parse_algorithm
from ..pythia.pythia import EventSourceError, PythiaEventSource, _edit_pythia_card
from .pipeline import run_display
from .render import MatplotlibRenderer

SCHEMA_VERSION = "jetflow-display-1.0"


class JetFlowDisplayTool(BaseTool):
    """
    Render jet-algorithm event displays from a Pythia8 .cmnd run card.

    Inputs (runtime):
      - data_dir: relative output directory under base_directory
      - cmnd_path: relative path to the Pythia8 run card of the hard process
      - pileup_cmnd_path: run card of the pileup interactions (defaults to cmnd_path)
      - n_events: number of events to process (defaults to Main:numberOfEvents of the card)
      - mu: mean number of pileup interactions per event (0 disables pileup)
      - seed: optional random seed for the generators and the pileup draws
      - algorithms: list of 'kind:R' strings, e.g. ["antikt:0.4", "kt:0.4"]
      - jet_ptmin: minimum jet pT [GeV]
      - output_name: file name of the PDF written inside data_dir
      - base_directory: sandbox root for all file operations

    Behavior:
      1. Copy the run card (with n_events and seed applied) into data_dir as run.cmnd.
      2. Initialize the hard-process and pileup generators.
      3. For every event with exactly two resonances, overlay pileup, cluster
         with each algorithm and write one PDF page per algorithm.
      4. Write manifest.json and report a summary.

    Output (JSON):
      {
        "status": "ok",
        "data_dir": "<relative output directory>",
        "pdf": "<relative path to the PDF>",
        "manifest_json": "<relative path to manifest.json>",
        "n_pages": <int>,
        "rendered": <int>,
        "invalid": <int>,
        "failed": <int>
      }

    Errors:
      Returns BaseTool.format_error JSON on any failure including:
        - paths escaping base_directory or missing run cards
        - invalid algorithms or thresholds
        - pythia8mc / fastjet import errors and initialization failures
        - file read/write or permission issues
    """
    # --------------------------- Runtime fields --------------------------- #
    data_dir: str = RuntimeField(description="Relative output directory, e.g. 'displays/run001'")
    cmnd_path: str = RuntimeField(description="Relative path to the Pythia .cmnd run card of the hard process")
    pileup_cmnd_path: Optional[str] = RuntimeField(default=None, description="Relative path to the pileup run card (defaults to cmnd_path)")
    n_events: Optional[int] = RuntimeField(default=None, description="Number of events (defaults to Main:numberOfEvents)")
    mu: float = RuntimeField(default=60.0, description="Mean number of pileup interactions per event")
    seed: Optional[int] = RuntimeField(default=None, description="Random seed (optional)")
    algorithms: Optional[List[str]] = RuntimeField(default=None, description="Jet algorithms as 'kind:R', kind in antikt | kt | ca")
    jet_ptmin: float = RuntimeField(default=25.0, description="Min jet pT [GeV]")
    output_name: str = RuntimeField(default="jetflow.pdf", description="PDF file name inside data_dir")
    # ---------------------------------------------------------------------- #

    # ---------------------------- State fields ---------------------------- #
    base_directory: str = StateField(description="Base directory for safe path resolution")
    # ---------------------------------------------------------------------- #

    def _setup(self):
        """Setup base directory and validate it exists."""
        self.base_directory = os.path.abspath(self.base_directory)
        if not os.path.exists(self.base_directory):
            raise ValueError(f"Base directory does not exist: {self.base_directory}")

    def _safe_path(self, rel: str, root: Optional[str] = None) -> Optional[str]:
        """Ensures that the path is within the allowed base directory."""
        root = root or self.base_directory
        full = os.path.abspath(os.path.join(root, rel))
        if full != root and not full.startswith(root + os.sep):
            return None
        return full

    # Collaborator factories, overridden in tests.
    def _make_source(self, cmnd_path: str, provenance: str, seed: Optional[int]) -> Any:
        return PythiaEventSource(cmnd_path, provenance=provenance, seed=seed)

    def _make_engine(self) -> Any:
        return FastJetEngine()

    def _make_renderer(self, pdf_path: str, binning: GridBinning) -> Any:
        return MatplotlibRenderer(pdf_path, binning)

    def _build_config(self) -> DisplayConfig:
        algorithms = (
            tuple(parse_algorithm(a) for a in self.algorithms) if self.algorithms else default_algorithms()
        )
        return DisplayConfig(
            jet_pt_min=float(self.jet_ptmin),
            mu=float(self.mu),
            n_events=None if self.n_events is None else int(self.n_events),
            seed=None if self.seed is None else int(self.seed),
            algorithms=algorithms,
        )

    def _run(self) -> str:
        """Run the display pipeline and return JSON summary."""
        # Check required parameters.
        for key in ("data_dir", "cmnd_path"):
            if getattr(self, key, None) in (None, ""):
                return self.format_error(
                    error="Missing Parameter",
                    reason=f"{key} is required",
                    suggestion="Provide required runtime fields"
                )

        outdir = self._safe_path(self.data_dir)
        cmnd_src = self._safe_path(self.cmnd_path)
        pileup_src = self._safe_path(self.pileup_cmnd_path) if self.pileup_cmnd_path else cmnd_src

        # Check for safe paths.
        if not outdir or not cmnd_src or not pileup_src:
            return self.format_error(
                error="Access Denied",
                reason="Path escapes base_directory",
                context=f"data_dir={self.data_dir}, cmnd_path={self.cmnd_path}, pileup_cmnd_path={self.pileup_cmnd_path}",
                suggestion="Use paths inside the allowed base directory"
            )
        pdf_path = self._safe_path(self.output_name, root=outdir)
        if not pdf_path or pdf_path == outdir:
            return self.format_error(
                error="Access Denied",
                reason="output_name escapes data_dir",
                context=f"output_name={self.output_name}",
                suggestion="Use a plain file name such as 'jetflow.pdf'"
            )

        # Check if run cards exist.
        for path, label in ((cmnd_src, self.cmnd_path), (pileup_src, self.pileup_cmnd_path or self.cmnd_path)):
            if not os.path.exists(path):
                return self.format_error(
                    error="File Not Found",
                    reason="Run card does not exist",
                    context=f"path={label}",
                    suggestion="Provide a valid .cmnd file path"
                )

        try:
            config = self._build_config()
        except ValueError as e:
            return self.format_error(
                error="Invalid Parameters",
                reason=str(e),
                suggestion="Check algorithms ('kind:R'), mu >= 0 and jet_ptmin > 0"
            )

        # Create output directory.
        os.makedirs(outdir, exist_ok=True)
        cmnd_dst = os.path.join(outdir, "run.cmnd")

        # Read template card, apply runtime edits, then write to output.
        try:
            with open(cmnd_src, "r", encoding="utf-8") as f:
                card_text = f.read()
        except Exception as e:
            return self.format_error(
                error="Read Error",
                reason=str(e),
                context=f"path={self.cmnd_path}",
                suggestion="Verify file exists and is readable"
            )
        card_text = _edit_pythia_card(card_text, n_events=self.n_events, seed=self.seed)
        try:
            with open(cmnd_dst, "w", encoding="utf-8") as f:
                f.write(card_text)
        except Exception as e:
            return self.format_error(
                error="Write Error",
                reason=str(e),
                context=f"dst={self.data_dir}/run.cmnd",
                suggestion="Verify permissions and disk space"
            )

        # Pileup uses its own card, or the hard-process card as copied.
        pileup_card = pileup_src if self.pileup_cmnd_path else cmnd_dst
        pileup_seed = None if config.seed is None else config.seed + 1
        hard_source = self._make_source(cmnd_dst, HARD_SCATTER, config.seed)
        pileup_source = self._make_source(pileup_card, PILEUP, pileup_seed) if config.mu > 0 else None

        try:
            summary = run_display(
                config,
                hard_source,
                self._make_engine(),
                self._make_renderer(pdf_path, config.grid),
                pileup_source=pileup_source,
                progress=True,
            )
        except EventSourceError as e:
            return self.format_error(
                error="Pythia Init Failed",
                reason=str(e),
                context="Check run.cmnd settings",
                suggestion="Validate beams, processes, and energy"
            )
        except ImportError as e:
            return self.format_error(
                error="Dependency Missing",
                reason=str(e),
                suggestion="Install pythia8mc and fastjet in the current runtime"
            )
        except Exception as e:
            return self.format_error(
                error="Display Error",
                reason=str(e),
                context=f"pdf={self.output_name}",
                suggestion="Check the run card and the algorithm settings"
            )

        # Create manifest file.
        manifest = {
            "schema": SCHEMA_VERSION,
            "created_utc": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "inputs": {
                "run_card": "run.cmnd",
                "pileup_card": os.path.relpath(pileup_card, outdir),
                "seed": config.seed,
                "config": config.to_dict(),
            },
            "outputs": {
                "pdf": os.path.basename(pdf_path),
                **summary.to_dict(),
            },
        }
        manifest_path = os.path.join(outdir, "manifest.json")

        # Write manifest file.
        try:
            with open(manifest_path, "w", encoding="utf-8") as mf:
                json.dump(manifest, mf, indent=2)
        except Exception as e:
            return self.format_error(
                error="Write Error",
                reason=str(e),
                context=f"path={manifest_path}",
                suggestion="Verify disk space and permissions"
            )

        # Create result object.
        result = {
            "status": "ok",
            "data_dir": os.path.relpath(outdir, self.base_directory),
            "pdf": os.path.relpath(pdf_path, self.base_directory),
            "manifest_json": os.path.relpath(manifest_path, self.base_directory),
            "n_pages": len(summary.pages),
            "rendered": summary.n_rendered,
            "invalid": summary.n_invalid,
            "failed": summary.n_failed,
        }
        return json.dumps(result, separators=(",", ":"), ensure_ascii=False)
