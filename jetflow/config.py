"""
# config.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Run configuration of the jet-flow display, built once and passed explicitly."""
import json
import math
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Optional, Tuple

from .analysis.clustering import ALGORITHM_KINDS, AlgorithmConfig, default_algorithm_name
from .analysis.flow import OVERLAP_POLICIES
from .analysis.ghosts import GHOST_PT, GridBinning
from .analysis.particles import RESONANCE_STATUS

# Process description printed on every page (matplotlib mathtext).
DEFAULT_DESCRIPTION = (
    r"$pp \rightarrow WH \rightarrow q\bar{q}b\bar{b}$,  $\sqrt{s}$ = 13.6 TeV"
)


@dataclass(frozen=True)
class DisplayColors:
    """Marker and label colours."""

    hard_scatter: str = "black"
    positive: str = "red"
    negative: str = "blue"
    neutral: str = "darkgreen"
    pileup: str = "gray"


def parse_algorithm(text: str, name: Optional[str] = None) -> AlgorithmConfig:
    """
    Build an AlgorithmConfig from 'kind:R' or 'kind:R:scheme'.

    Examples: 'antikt:0.4', 'kt:0.4', 'ca:1.0:E_scheme'.
    """
    parts = [s.strip() for s in text.split(":")]
    if len(parts) not in (2, 3) or not parts[0]:
        raise ValueError(f"Invalid algorithm '{text}'. Expected 'kind:R' or 'kind:R:scheme'")
    kind = parts[0].lower()
    if kind not in ALGORITHM_KINDS:
        raise ValueError(f"Unsupported algorithm '{kind}'. Use one of {list(ALGORITHM_KINDS)}")
    try:
        radius = float(parts[1])
    except ValueError as e:
        raise ValueError(f"Invalid jet radius in '{text}'") from e
    recombination = parts[2] if len(parts) == 3 else "E_scheme"
    return AlgorithmConfig(
        name=name or default_algorithm_name(kind, radius),
        kind=kind,
        radius=radius,
        recombination=recombination,
    )


def default_algorithms(radius: float = 0.4) -> Tuple[AlgorithmConfig, ...]:
    """Anti-kt then kt, the two algorithms shown side by side by default."""
    return (
        parse_algorithm(f"antikt:{radius}"),
        parse_algorithm(f"kt:{radius}"),
    )


@dataclass(frozen=True)
class DisplayConfig:
    """
    Every run-level parameter of the display.

    Thresholds are in GeV. Particles are drawn only with pT > hadron_pt_min and
    |y| < y_max; jets are kept with pT >= jet_pt_min. `n_events` of None means
    the event count is taken from the run card (Main:numberOfEvents).
    """

    jet_pt_min: float = 25.0
    hadron_pt_min: float = 1.0
    y_max: float = 4.0
    mu: float = 60.0
    grid: GridBinning = field(default_factory=GridBinning)
    ghost_pt: float = GHOST_PT
    ghost_tolerance: float = 1e-6
    resonance_status: int = RESONANCE_STATUS
    algorithms: Tuple[AlgorithmConfig, ...] = field(default_factory=default_algorithms)
    n_events: Optional[int] = None
    seed: Optional[int] = None
    description: str = DEFAULT_DESCRIPTION
    colors: DisplayColors = field(default_factory=DisplayColors)
    overlap_policy: str = "error"

    def __post_init__(self):
        # Normalise lists coming from JSON into tuples.
        object.__setattr__(self, "algorithms", tuple(self.algorithms))
        if not self.algorithms:
            raise ValueError("At least one jet algorithm is required")
        names = [a.name for a in self.algorithms]
        if len(set(names)) != len(names):
            raise ValueError(f"Algorithm names must be unique, got {names}")
        if self.mu < 0 or not math.isfinite(self.mu):
            raise ValueError(f"Pileup mean mu must be a finite number >= 0, got {self.mu}")
        if self.jet_pt_min <= 0 or self.hadron_pt_min < 0 or self.y_max <= 0:
            raise ValueError("Thresholds must be positive")
        if self.ghost_pt <= 0.0 or (self.hadron_pt_min > 0 and self.ghost_pt > 1e-20 * self.hadron_pt_min):
            raise ValueError(
                f"ghost_pt={self.ghost_pt} must be positive and many orders of magnitude "
                f"below hadron_pt_min={self.hadron_pt_min}"
            )
        if self.ghost_tolerance < 0 or not math.isfinite(self.ghost_tolerance):
            raise ValueError(f"ghost_tolerance must be a finite number >= 0, got {self.ghost_tolerance}")
        if self.n_events is not None and self.n_events < 0:
            raise ValueError(f"n_events must be >= 0, got {self.n_events}")
        if self.overlap_policy not in OVERLAP_POLICIES:
            raise ValueError(f"Unknown overlap policy '{self.overlap_policy}'. Use one of {list(OVERLAP_POLICIES)}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DisplayConfig":
        """Build a config from a JSON-style dict; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {unknown}")
        kwargs = dict(data)
        if "grid" in kwargs and isinstance(kwargs["grid"], dict):
            kwargs["grid"] = GridBinning(**kwargs["grid"])
        if "colors" in kwargs and isinstance(kwargs["colors"], dict):
            kwargs["colors"] = DisplayColors(**kwargs["colors"])
        if "algorithms" in kwargs:
            kwargs["algorithms"] = tuple(_algorithm_from_json(a) for a in kwargs["algorithms"])
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["algorithms"] = [asdict(a) for a in self.algorithms]
        return d


def _algorithm_from_json(item: Any) -> AlgorithmConfig:
    if isinstance(item, AlgorithmConfig):
        return item
    if isinstance(item, str):
        return parse_algorithm(item)
    if isinstance(item, dict):
        item = dict(item)
        if "name" not in item:
            item["name"] = default_algorithm_name(item.get("kind", "antikt"), float(item.get("radius", 0.4)))
        return AlgorithmConfig(**item)
    raise ValueError(f"Cannot build an algorithm from {item!r}")


def load_display_config(path: str, **overrides) -> DisplayConfig:
    """Read a DisplayConfig from a JSON file; keyword overrides win over the file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a JSON object")
    data.update({k: v for k, v in overrides.items() if v is not None})
    return DisplayConfig.from_dict(data)
