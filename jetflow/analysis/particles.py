"""
# particles.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
import math
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple

# Provenance tags.
HARD_SCATTER = "hard_scatter"
PILEUP = "pileup"
GHOST = "ghost"
PROVENANCES = (HARD_SCATTER, PILEUP, GHOST)

# Pythia status of the outgoing hard-process resonances (W, Z, H, ...).
RESONANCE_STATUS = -62

# Rapidity returned for particles travelling exactly along the beam.
_BEAM_RAPIDITY = 1e9


# ====================================================================== #
# ============================ Particle ================================ #
# ====================================================================== #

def charge_sign(charge: float) -> int:
    """Reduce a (possibly fractional) charge to +1, -1 or 0."""
    if charge > 0:
        return 1
    if charge < 0:
        return -1
    return 0


@dataclass(frozen=True)
class Particle:
    """
    One entry of an event record, or a ghost probe.

    Momenta are in GeV. `index` is the position in the event record the
    particle came from and `daughters` holds the (daughter1, daughter2) record
    indices as given by the generator. Ghost probes carry the (iy, iphi) grid
    cell they were placed at.
    """

    px: float
    py: float
    pz: float
    e: float
    charge: int = 0
    status: int = 1
    provenance: str = HARD_SCATTER
    is_resonance: bool = False
    index: int = -1
    daughters: Tuple[int, int] = (0, 0)
    pdg_id: int = 0
    name: str = ""
    cell: Optional[Tuple[int, int]] = None

    @property
    def pt(self) -> float:
        return math.hypot(self.px, self.py)

    @property
    def rapidity(self) -> float:
        """Rapidity y = 0.5 ln((E + pz) / (E - pz))."""
        num = self.e + self.pz
        den = self.e - self.pz
        if num <= 0.0 or den <= 0.0:
            return _BEAM_RAPIDITY if self.pz >= 0 else -_BEAM_RAPIDITY
        return 0.5 * math.log(num / den)

    @property
    def phi(self) -> float:
        """Azimuth in [-pi, pi]."""
        return math.atan2(self.py, self.px)

    @property
    def is_final(self) -> bool:
        # Pythia convention: positive status codes are undecayed particles.
        return self.status > 0

    @property
    def is_ghost(self) -> bool:
        return self.provenance == GHOST


def particle_from_pt_y_phi(pt: float, y: float, phi: float, m: float = 0.0, **kwargs) -> Particle:
    """Build a Particle from (pT, rapidity, azimuth, mass)."""
    mt = math.sqrt(pt * pt + m * m)
    return Particle(
        px=pt * math.cos(phi),
        py=pt * math.sin(phi),
        pz=mt * math.sinh(y),
        e=mt * math.cosh(y),
        **kwargs,
    )


def retag(particles: Sequence[Particle], provenance: str) -> List[Particle]:
    """Return copies of the particles with a new provenance tag."""
    if provenance not in PROVENANCES:
        raise ValueError(f"Unknown provenance '{provenance}'. Use one of {list(PROVENANCES)}")
    return [p if p.provenance == provenance else replace(p, provenance=provenance) for p in particles]


# ====================================================================== #
# ======================== Event classification ======================== #
# ====================================================================== #

@dataclass
class EventParticles:
    """
    Provenance-tagged view of one event.

    `record` is the full event as emitted by the source and is used to look up
    resonance daughters. `pileup` starts empty and is filled by the pileup
    overlay.
    """

    record: Tuple[Particle, ...]
    hard_scatter: Tuple[Particle, ...]
    resonances: Tuple[Particle, ...]
    pileup: List[Particle] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.resonances) == 2

    def daughters(self, resonance: Particle) -> Tuple[Particle, Particle]:
        """Look up the two decay daughters of a resonance in the event record."""
        d1, d2 = resonance.daughters
        n = len(self.record)
        if not (0 <= d1 < n and 0 <= d2 < n):
            raise IndexError(
                f"Daughters {resonance.daughters} of record entry {resonance.index} "
                f"outside event record of size {n}"
            )
        return self.record[d1], self.record[d2]

    def boson_pair(self) -> List[Tuple[Particle, Particle, Particle]]:
        """Return (resonance, daughter1, daughter2) for both resonances."""
        if not self.is_valid:
            raise ValueError(f"Expected 2 resonances, found {len(self.resonances)}")
        return [(r, *self.daughters(r)) for r in self.resonances]


def classify_event(record: Sequence[Particle], resonance_status: int = RESONANCE_STATUS) -> EventParticles:
    """
    Split an event record into hard-scatter final-state particles and resonances.

    A resonance of interest is flagged as a resonance by the generator and has
    status `resonance_status`. Events with a resonance count other than two are
    returned with `is_valid == False` for the caller to skip.
    """
    record = tuple(record)
    resonances = []
    hard_scatter = []
    for p in record:
        if p.is_resonance and p.status == resonance_status:
            resonances.append(p)
        if not p.is_final:
            continue
        hard_scatter.append(p if p.provenance == HARD_SCATTER else replace(p, provenance=HARD_SCATTER))
    return EventParticles(record=record, hard_scatter=tuple(hard_scatter), resonances=tuple(resonances))
