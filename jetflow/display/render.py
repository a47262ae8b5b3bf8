"""
# render.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Multi-page PDF renderer on matplotlib."""
import os
from typing import Optional, Sequence, Tuple

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.colors import LogNorm
from matplotlib.lines import Line2D
from matplotlib.patches import Rectangle

from ..analysis.ghosts import GridBinning

# ROOT marker style -> (matplotlib marker, filled).
MARKER_STYLES = {
    20: ("o", True),    # filled circle
    21: ("s", True),    # filled square
    24: ("o", False),   # open circle
    25: ("s", False),   # open square
    29: ("*", True),    # star
    5: ("x", True),     # cross
}

# ROOT text alignment: tens digit horizontal, units digit vertical.
_H_ALIGN = {1: "left", 2: "center", 3: "right"}
_V_ALIGN = {1: "bottom", 2: "center", 3: "top"}

# Marker size 1 in ROOT is about 8 px on a default canvas.
_MARKER_SCALE = 7.0

# Page layout in figure fractions: left, bottom, right, top margins.
_MARGINS = (0.06, 0.08, 0.13, 0.06)


def text_alignment(align: int) -> Tuple[str, str]:
    """Map a two-digit alignment code such as 31 to ('right', 'bottom')."""
    h, v = divmod(int(align), 10)
    if h not in _H_ALIGN or v not in _V_ALIGN:
        raise ValueError(f"Invalid text alignment code {align}")
    return _H_ALIGN[h], _V_ALIGN[v]


class MatplotlibRenderer:
    """
    Renderer writing one figure per page to a PdfPages document.

    Cells are binned with the run's GridBinning and drawn at `end_page` with
    pcolormesh on a log colour scale; empty cells stay blank. Positions are in
    (rapidity, azimuth) data coordinates, or in page fractions with ndc=True.
    """

    def __init__(
        self,
        path: str,
        binning: GridBinning,
        figsize: Tuple[float, float] = (10.0, 6.5),
        cmap: str = "turbo",
        font_size: float = 11.0,
    ):
        self.path = str(path)
        self.binning = binning
        self.figsize = figsize
        self.cmap = cmap
        self.font_size = font_size
        self.n_pages = 0
        self._pdf = None
        self._fig = None
        self._ax = None
        self._values = None
        self._value_range: Optional[Tuple[float, float]] = None

    # ----------------------------- Document ------------------------------ #

    def open_document(self) -> None:
        if self._pdf is not None:
            raise RuntimeError(f"Document {self.path} is already open")
        parent = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(parent, exist_ok=True)
        self._pdf = PdfPages(self.path)
        self.n_pages = 0

    def close_document(self) -> None:
        # A page left open by an error is dropped, not written.
        if self._fig is not None:
            plt.close(self._fig)
            self._fig = None
            self._ax = None
        if self._pdf is not None:
            self._pdf.close()
            self._pdf = None

    # ------------------------------- Pages -------------------------------- #

    def new_page(self) -> None:
        if self._pdf is None:
            raise RuntimeError("open_document() must be called before new_page()")
        if self._fig is not None:
            raise RuntimeError("Previous page was not ended")
        left, bottom, right, top = _MARGINS
        fig = plt.figure(figsize=self.figsize)
        ax = fig.add_axes([left, bottom, 1.0 - left - right, 1.0 - bottom - top])
        b = self.binning
        ax.set_xlim(b.y_min, b.y_max)
        ax.set_ylim(b.phi_min, b.phi_max)
        ax.set_xlabel(r"Rapidity $y$", fontsize=self.font_size)
        ax.set_ylabel(r"Azimuth $\phi$", fontsize=self.font_size)
        ax.tick_params(direction="in", top=True, right=True)
        self._fig = fig
        self._ax = ax
        self._values = np.zeros(b.shape, dtype=float)
        self._value_range = None

    def _require_page(self):
        if self._fig is None:
            raise RuntimeError("No page is open; call new_page() first")

    def fill_cell(self, rapidity: float, azimuth: float, value: float) -> None:
        self._require_page()
        iy, iphi = self.binning.locate(rapidity, azimuth)
        if iy < 0:
            return
        self._values[iy, iphi] += value

    def set_value_range(self, vmin: float, vmax: float) -> None:
        if not (0.0 < vmin < vmax):
            raise ValueError(f"Log colour range needs 0 < vmin < vmax, got ({vmin}, {vmax})")
        self._value_range = (float(vmin), float(vmax))

    def draw_marker(self, position: Sequence[float], style: int, color: str, size: float, ndc: bool = False) -> None:
        self._require_page()
        if style not in MARKER_STYLES:
            raise ValueError(f"Unsupported marker style {style}. Use one of {sorted(MARKER_STYLES)}")
        marker, filled = MARKER_STYLES[style]
        x, y = position
        kwargs = dict(
            marker=marker,
            markersize=size * _MARKER_SCALE,
            markeredgecolor=color,
            markerfacecolor=color if filled else "none",
            linestyle="none",
        )
        if ndc:
            # Figure-level artist so it sits above the legend box.
            self._fig.add_artist(Line2D([x], [y], transform=self._fig.transFigure, zorder=5, **kwargs))
        else:
            self._ax.plot([x], [y], zorder=2, **kwargs)

    def draw_text(self, position: Sequence[float], text: str, align: int = 11, color: str = "black", ndc: bool = True) -> None:
        self._require_page()
        ha, va = text_alignment(align)
        x, y = position
        if ndc:
            self._fig.text(x, y, text, ha=ha, va=va, color=color, fontsize=self.font_size, zorder=5)
        else:
            self._ax.text(x, y, text, ha=ha, va=va, color=color, fontsize=self.font_size,
                          zorder=3, clip_on=True)

    def draw_box(self, x1: float, y1: float, x2: float, y2: float) -> None:
        """White box with a black frame, in page fractions."""
        self._require_page()
        box = Rectangle(
            (x1, y1), x2 - x1, y2 - y1,
            transform=self._fig.transFigure,
            facecolor="white", edgecolor="black", linewidth=0.8, zorder=4,
        )
        self._fig.add_artist(box)

    def end_page(self) -> None:
        self._require_page()
        fig, ax = self._fig, self._ax
        b = self.binning
        values = np.ma.masked_less_equal(self._values, 0.0)
        if self._value_range is not None:
            vmin, vmax = self._value_range
        elif values.count():
            vmin, vmax = float(values.min()), float(values.max())
            if vmax <= vmin:
                vmax = 10.0 * vmin
        else:
            vmin, vmax = 1.0, 10.0

        # Rows of the stored grid are rapidity bins; pcolormesh wants (phi, y).
        mesh = ax.pcolormesh(
            b.y_edges, b.phi_edges, values.T,
            norm=LogNorm(vmin=vmin, vmax=vmax), cmap=self.cmap,
            shading="flat", zorder=0,
        )
        left, bottom, right, top = _MARGINS
        cax = fig.add_axes([1.0 - right + 0.01, bottom, 0.02, 1.0 - bottom - top])
        cbar = fig.colorbar(mesh, cax=cax)
        cbar.set_label(r"Jet $p_{T}$ [GeV]", fontsize=self.font_size)

        self._pdf.savefig(fig)
        plt.close(fig)
        self._fig = None
        self._ax = None
        self._values = None
        self.n_pages += 1
