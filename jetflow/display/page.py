"""
# page.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
from typing import Any, Iterable

from ..analysis.clustering import AlgorithmConfig
from ..analysis.flow import FlowGrid
from ..analysis.particles import EventParticles, Particle
from ..config import DisplayConfig

# Marker styles (ROOT codes) and relative sizes.
CHARGED_PILEUP, NEUTRAL_PILEUP = 24, 25
CROSS, FILLED_SQUARE, FILLED_CIRCLE, STAR = 5, 21, 20, 29
SMALL, LARGE = 0.4, 0.8

# Top text line, in page fractions.
_TITLE_Y = 0.96
_DESCRIPTION_X = 0.06
_ALGORITHM_X = 0.87

_NAME_OVERRIDES = {
    "h0": "H",
    "Z0": "Z",
    "gamma": r"\gamma",
    "pi": r"\pi",
    "nu_e": r"\nu_{e}",
    "nu_mu": r"\nu_{\mu}",
    "nu_tau": r"\nu_{\tau}",
    "mu": r"\mu",
    "tau": r"\tau",
}


def particle_label(name: str) -> str:
    """
    Mathtext label for a generator particle name.

    'W+' -> '$W^{+}$', 'bbar' -> '$\\bar{b}$', 'h0' -> '$H$'.
    """
    base, sign = name, ""
    if base.endswith(("+", "-")):
        base, sign = base[:-1], base[-1]
    bar = base.endswith("bar")
    if bar:
        base = base[:-3]
    base = _NAME_OVERRIDES.get(base, base)
    if bar:
        base = rf"\bar{{{base}}}"
    if sign:
        base += "^{%s}" % sign
    return f"${base}$"


class PageRenderer:
    """Issues the draw calls of one (event, algorithm) page on a Renderer."""

    def __init__(self, config: DisplayConfig, renderer: Any):
        self.config = config
        self.renderer = renderer

    def _visible(self, particles: Iterable[Particle]) -> Iterable[Particle]:
        cfg = self.config
        for p in particles:
            if abs(p.rapidity) < cfg.y_max and p.pt > cfg.hadron_pt_min:
                yield p

    def draw_page(self, grid: FlowGrid, event: EventParticles, algorithm: AlgorithmConfig, first_page: bool = False) -> None:
        r = self.renderer
        r.new_page()
        self._draw_flow(grid)
        self._draw_pileup(event.pileup)
        self._draw_hard_scatter(event.hard_scatter)
        self._draw_resonances(event)
        self._draw_titles(algorithm)
        if first_page:
            self._draw_legend()
        r.end_page()

    def _draw_flow(self, grid: FlowGrid) -> None:
        r, cfg = self.renderer, self.config
        y_centers = grid.binning.y_centers
        phi_centers = grid.binning.phi_centers
        for iy, iphi, value in grid.nonzero_cells():
            r.fill_cell(float(y_centers[iy]), float(phi_centers[iphi]), value)
        top = grid.max_value if grid.max_value > 0 else cfg.jet_pt_min
        r.set_value_range(cfg.jet_pt_min / 4.0, 4.0 * top)

    def _draw_pileup(self, pileup: Iterable[Particle]) -> None:
        color = self.config.colors.pileup
        for p in self._visible(pileup):
            style = CHARGED_PILEUP if p.charge else NEUTRAL_PILEUP
            self.renderer.draw_marker((p.rapidity, p.phi), style, color, SMALL)

    def _draw_hard_scatter(self, particles: Iterable[Particle]) -> None:
        r, colors = self.renderer, self.config.colors
        for p in self._visible(particles):
            pos = (p.rapidity, p.phi)
            if p.charge > 0:
                r.draw_marker(pos, CROSS, colors.positive, LARGE)
            elif p.charge < 0:
                r.draw_marker(pos, CROSS, colors.negative, LARGE)
            else:
                r.draw_marker(pos, FILLED_SQUARE, colors.neutral, SMALL)
                r.draw_marker(pos, CROSS, colors.neutral, LARGE)

    def _draw_resonances(self, event: EventParticles) -> None:
        color = self.config.colors.hard_scatter
        for resonance, d1, d2 in event.boson_pair():
            for p in (resonance, d1, d2):
                self.renderer.draw_text((p.rapidity, p.phi), particle_label(p.name),
                                        align=22, color=color, ndc=False)

    def _draw_titles(self, algorithm: AlgorithmConfig) -> None:
        r, cfg = self.renderer, self.config
        r.draw_text((_DESCRIPTION_X, _TITLE_Y), cfg.description)
        r.draw_text((_ALGORITHM_X, _TITLE_Y), f"{algorithm.name}, $p_{{T}}$ > {cfg.jet_pt_min:.0f} GeV", align=31)

    def _draw_legend(self) -> None:
        r, cfg, colors = self.renderer, self.config, self.config.colors
        r.draw_box(0.66, 0.67, 0.85, 0.925)

        r.draw_text((0.715, 0.90), "Hard scatter", align=12)
        r.draw_marker((0.68, 0.90), FILLED_CIRCLE, colors.hard_scatter, LARGE, ndc=True)
        r.draw_marker((0.70, 0.90), STAR, colors.hard_scatter, 1.2, ndc=True)

        r.draw_text((0.675, 0.85), "Stable particles", align=12)
        r.draw_text((0.675, 0.824), r"   +    $\mathbf{-}$    neutral", align=12)
        r.draw_marker((0.683, 0.82), CROSS, colors.positive, LARGE, ndc=True)
        r.draw_marker((0.717, 0.82), CROSS, colors.negative, LARGE, ndc=True)
        r.draw_marker((0.75, 0.82), FILLED_SQUARE, colors.neutral, SMALL, ndc=True)
        r.draw_marker((0.75, 0.82), CROSS, colors.neutral, LARGE, ndc=True)

        r.draw_text((0.675, 0.775), f"Pileup  $\\mu$ = {cfg.mu:.0f}", align=12)
        r.draw_text((0.675, 0.745), r"   $\pm$    neutral", align=12)
        r.draw_marker((0.683, 0.74), CHARGED_PILEUP, colors.pileup, SMALL, ndc=True)
        r.draw_marker((0.717, 0.74), NEUTRAL_PILEUP, colors.pileup, SMALL, ndc=True)

        r.draw_text((0.70, 0.70), f"$p_{{T}}^{{ptcl}}$ > {cfg.hadron_pt_min:.1f} GeV", align=12)
