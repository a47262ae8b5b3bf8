"""
# clustering.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
import math
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from ..utils import STDOUT, silenced
from .ghosts import GhostGrid
from .particles import EventParticles, Particle

# ====================================================================== #
# =========================== Helper functions ========================= #
# ====================================================================== #

class GhostToleranceError(ValueError):
    """A jet's pT changed by more than the tolerance when its ghosts were removed."""


def _require_fastjet() -> Any:
    """Ensure fastjet is available, or raise ImportError."""
    try:
        import fastjet
        return fastjet
    except Exception as e:
        raise ImportError("fastjet is not available, install to use this engine (e.g. `pip install fastjet`).") from e


ALGORITHM_KINDS = ("antikt", "kt", "ca")

_ALGO_TO_FASTJET = {
    "kt": "kt_algorithm",             # kT
    "ca": "cambridge_algorithm",      # Cambridge/Aachen
    "antikt": "antikt_algorithm",     # anti-kT
}

_ALGO_TITLES = {
    "antikt": r"Anti-$k_{t}$",
    "kt": r"$k_{t}$",
    "ca": "Cambridge-Aachen",
}


# ====================================================================== #
# ============================ Data model ============================== #
# ====================================================================== #

@dataclass(frozen=True)
class AlgorithmConfig:
    """One jet algorithm variant; `name` is the label printed on its pages."""

    name: str
    kind: str = "antikt"
    radius: float = 0.4
    recombination: str = "E_scheme"

    def __post_init__(self):
        if self.kind not in ALGORITHM_KINDS:
            raise ValueError(f"Unsupported algorithm '{self.kind}'. Use one of {list(ALGORITHM_KINDS)}")
        if not self.radius > 0.0:
            raise ValueError(f"Jet radius must be positive, got {self.radius}")


def default_algorithm_name(kind: str, radius: float) -> str:
    """Display label such as 'Anti-$k_{t}$ jets, $R$ = 0.4'."""
    title = _ALGO_TITLES.get(kind, kind)
    return f"{title} jets, $R$ = {radius:g}"


@dataclass(frozen=True)
class Jet:
    """Clustered jet with its constituents (real particles and ghosts)."""

    px: float
    py: float
    pz: float
    e: float
    constituents: Tuple[Particle, ...] = ()

    @property
    def pt(self) -> float:
        return math.hypot(self.px, self.py)

    @property
    def ghosts(self) -> Tuple[Particle, ...]:
        return tuple(c for c in self.constituents if c.is_ghost)

    @property
    def pt_without_ghosts(self) -> float:
        """pT recomputed from the real constituents only."""
        px = sum(c.px for c in self.constituents if not c.is_ghost)
        py = sum(c.py for c in self.constituents if not c.is_ghost)
        return math.hypot(px, py)


# ====================================================================== #
# ========================= Clustering engines ========================= #
# ====================================================================== #

class FastJetEngine:
    """
    Cluster with the FastJet Python bindings.

    Each input gets `user_index` equal to its position in the particle pool,
    which is how constituents are mapped back to Particles.
    """

    def __init__(self, quiet: bool = True):
        self.quiet = quiet
        self._fastjet = None

    def _get_fastjet(self):
        """Get or create a shared fastjet module reference."""
        if self._fastjet is None:
            self._fastjet = _require_fastjet()
        return self._fastjet

    def jet_definition(self, algorithm: AlgorithmConfig) -> Any:
        fj = self._get_fastjet()
        algo_name = _ALGO_TO_FASTJET.get(algorithm.kind)
        if algo_name is None:
            raise ValueError(f"Unsupported algorithm '{algorithm.kind}'. Use one of {list(_ALGO_TO_FASTJET)}")
        scheme = getattr(fj, algorithm.recombination, None)
        if scheme is None:
            raise ValueError(f"Unknown recombination scheme '{algorithm.recombination}'")
        # A fourth positional argument would bind to the extra-parameter overload.
        return fj.JetDefinition(getattr(fj, algo_name), float(algorithm.radius), scheme)

    def inclusive_jets(self, particles: Sequence[Particle], algorithm: AlgorithmConfig, min_pt: float) -> List[Jet]:
        fj = self._get_fastjet()
        jet_def = self.jet_definition(algorithm)

        inputs = []
        for i, p in enumerate(particles):
            pj = fj.PseudoJet(p.px, p.py, p.pz, p.e)
            pj.set_user_index(i)
            inputs.append(pj)

        # The banner is printed on the first clustering of the process.
        if self.quiet:
            with silenced(STDOUT):
                cs = fj.ClusterSequence(inputs, jet_def)
        else:
            cs = fj.ClusterSequence(inputs, jet_def)

        jets = []
        # The cluster sequence must stay alive while constituents are read.
        for j in fj.sorted_by_pt(cs.inclusive_jets(float(min_pt))):
            jets.append(Jet(
                px=float(j.px()),
                py=float(j.py()),
                pz=float(j.pz()),
                e=float(j.e()),
                constituents=tuple(particles[c.user_index()] for c in j.constituents()),
            ))
        return jets


# ====================================================================== #
# ======================= Clustering orchestration ===================== #
# ====================================================================== #

def build_particle_pool(event: EventParticles, ghosts: GhostGrid) -> List[Particle]:
    """Clustering input: hard-scatter, then pileup, then ghost particles."""
    return [*event.hard_scatter, *event.pileup, *ghosts.probes]


def check_ghost_tolerance(jets: Sequence[Jet], tolerance: float, label: str = "") -> None:
    """Raise GhostToleranceError if any jet's pT depends on its ghosts beyond `tolerance` [GeV]."""
    for i, jet in enumerate(jets):
        shift = abs(jet.pt - jet.pt_without_ghosts)
        if shift > tolerance:
            where = f" ({label})" if label else ""
            raise GhostToleranceError(
                f"Jet {i}{where}: pT {jet.pt:.6g} GeV vs {jet.pt_without_ghosts:.6g} GeV without "
                f"its {len(jet.ghosts)} ghosts, shift {shift:.3g} exceeds tolerance {tolerance:g}"
            )


def cluster_jets(
    pool: Sequence[Particle],
    algorithm: AlgorithmConfig,
    engine: Any,
    jet_pt_min: float,
    ghost_tolerance: Optional[float] = None,
) -> List[Jet]:
    """
    Run one algorithm and return jets with pT >= jet_pt_min, hardest first.

    With `ghost_tolerance` set, every returned jet is checked with
    check_ghost_tolerance().
    """
    jets = engine.inclusive_jets(pool, algorithm, jet_pt_min)
    jets = [j for j in jets if j.pt >= jet_pt_min]
    jets = sorted(jets, key=lambda j: j.pt, reverse=True)
    if ghost_tolerance is not None:
        check_ghost_tolerance(jets, ghost_tolerance, label=algorithm.name)
    return jets


def cluster_all(
    pool: Sequence[Particle],
    algorithms: Sequence[AlgorithmConfig],
    engine: Any,
    jet_pt_min: float,
    ghost_tolerance: Optional[float] = None,
) -> Iterator[Tuple[AlgorithmConfig, List[Jet]]]:
    """Cluster the same pool with every algorithm, in configuration order."""
    for algorithm in algorithms:
        yield algorithm, cluster_jets(pool, algorithm, engine, jet_pt_min, ghost_tolerance)
