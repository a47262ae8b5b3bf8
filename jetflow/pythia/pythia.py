"""
# pythia.py is a part of the JETFLOW package.
# Copyright (C) 2025 JETFLOW authors (see AUTHORS for details).
# JETFLOW is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
from typing import Any, List, Optional, Sequence, Tuple

from ..analysis.clustering import AlgorithmConfig, Jet
from ..analysis.particles import HARD_SCATTER, PROVENANCES, Particle, charge_sign
from ..utils import STDERR, STDOUT, silenced

# ====================================================================== #
# =========================== Helper functions ========================= #
# ====================================================================== #

class EventSourceError(RuntimeError):
    """An event source could not be set up."""


def _require_pythia() -> Any:
    """Ensure pythia8mc is available, or raise ImportError."""
    try:
        import pythia8mc as pythia8
        return pythia8
    except Exception as e:
        raise ImportError("pythia8mc is not available, install to use this tool (e.g. `pip install pythia8mc`).") from e


def _event_to_particles(evt: Any, provenance: str) -> Tuple[Particle, ...]:
    """Convert a Pythia event record to a tuple of Particles (record order kept)."""
    parts = []
    n = evt.size()
    for i in range(n):
        p = evt[i]
        parts.append(Particle(
            px=float(p.px()),
            py=float(p.py()),
            pz=float(p.pz()),
            e=float(p.e()),
            charge=charge_sign(float(p.charge())),
            status=int(p.status()),
            provenance=provenance,
            is_resonance=bool(p.isResonance()),
            index=i,
            daughters=(int(p.daughter1()), int(p.daughter2())),
            pdg_id=int(p.id()),
            name=str(p.name()),
        ))
    return tuple(parts)


def _edit_pythia_card(
    card_text: str,
    *,
    n_events: Optional[int] = None,
    seed: Optional[int] = None
) -> str:
    """
    Edit Pythia command card by replacing specific settings.

    Parameters:
        card_text: Original .cmnd file content
        n_events: Replaces 'Main:numberOfEvents' (appended if absent)
        seed: Replaces 'Random:seed' and switches on 'Random:setSeed' (appended if absent)

    Returns:
        Modified card text with replacements applied
    """
    replacements = {}
    if n_events is not None:
        replacements["main:numberofevents"] = f"Main:numberOfEvents = {int(n_events)}"
    if seed is not None:
        replacements["random:setseed"] = "Random:setSeed = on"
        replacements["random:seed"] = f"Random:seed = {int(seed)}"

    lines = card_text.splitlines()
    output_lines = []
    seen = set()

    for line in lines:
        # Setting names are case-insensitive; accept "Key = v", "Key=v", "Key    = v".
        key = line.split("=", 1)[0].strip().lower() if "=" in line else ""
        if key in replacements:
            output_lines.append(replacements[key])
            seen.add(key)
            continue
        output_lines.append(line)

    missing = [v for k, v in replacements.items() if k not in seen]
    if not replacements or not missing:
        result = "\n".join(output_lines)
        if card_text.endswith("\n"):
            result += "\n"
        return result

    result = "\n".join(output_lines + missing)
    return result + "\n"


def _quiet_settings() -> List[str]:
    return [
        "Print:quiet = on",
        "Init:showProcesses = off",
        "Init:showMultipartonInteractions = off",
        "Init:showChangedSettings = off",
        "Init:showChangedParticleData = off",
        "Next:numberShowInfo = 0",
        "Next:numberShowProcess = 0",
        "Next:numberShowEvent = 0",
    ]


# ====================================================================== #
# ========================= Pythia event source ======================== #
# ====================================================================== #

class PythiaEventSource:
    """
    Event source backed by a Pythia8 instance configured from a .cmnd run card.

    `next()` returns the full event record as Particles tagged with
    `provenance`, or None when Pythia fails to generate the event.
    """

    def __init__(
        self,
        cmnd_path: str,
        provenance: str = HARD_SCATTER,
        seed: Optional[int] = None,
        settings: Sequence[str] = (),
        quiet: bool = True,
    ):
        if provenance not in PROVENANCES:
            raise ValueError(f"Unknown provenance '{provenance}'. Use one of {list(PROVENANCES)}")
        self.cmnd_path = str(cmnd_path)
        self.provenance = provenance
        self.seed = seed
        self.settings = list(settings)
        self.quiet = quiet
        self.pythia = None

    def init(self) -> None:
        """Read the run card and initialize Pythia; raise EventSourceError on failure."""
        try:
            pythia8 = _require_pythia()
        except ImportError as e:
            raise EventSourceError(str(e)) from e

        try:
            pythia = pythia8.Pythia("", printBanner=not self.quiet)
            if self.quiet:
                for line in _quiet_settings():
                    pythia.readString(line)
            if not pythia.readFile(self.cmnd_path):
                raise EventSourceError(f"Could not read run card {self.cmnd_path}")
            for line in self.settings:
                if not pythia.readString(line):
                    raise EventSourceError(f"Invalid Pythia setting '{line}'")
            # Last, so a Random:seed line in the card cannot override it.
            if self.seed is not None:
                pythia.readString("Random:setSeed = on")
                pythia.readString(f"Random:seed = {int(self.seed)}")
            if not pythia.init():
                raise EventSourceError(f"Pythia initialization failed for {self.cmnd_path}")
        except EventSourceError:
            raise
        except Exception as e:
            raise EventSourceError(f"Pythia error: {e}") from e
        self.pythia = pythia

    @property
    def n_events(self) -> int:
        """Event count requested by the run card (Main:numberOfEvents)."""
        if self.pythia is None:
            raise EventSourceError("Event source is not initialized")
        if hasattr(self.pythia, "mode"):
            return int(self.pythia.mode("Main:numberOfEvents"))
        return int(self.pythia.settings.mode("Main:numberOfEvents"))

    def next(self) -> Optional[Tuple[Particle, ...]]:
        if self.pythia is None:
            raise EventSourceError("Event source is not initialized")
        if not self.pythia.next():
            return None
        return _event_to_particles(self.pythia.event, self.provenance)


# ..................................................................... #
# ..................... SlowJet clustering engine ..................... #
# ..................................................................... #

_ALGO_TO_POWER = {
    "kt": 1,        # kT
    "ca": 0,        # Cambridge/Aachen
    "antikt": -1,   # anti-kT
}


class SlowJetEngine:
    """
    Cluster with Pythia8.SlowJet.

    Only E-scheme recombination is available. Particles are appended to a
    fresh Pythia event in pool order, so SlowJet constituent indices map back
    to pool positions.
    """

    def __init__(self, etamax: float = 25.0, mass_option: int = 1, quiet: bool = True):
        self.etamax = etamax
        self.mass_option = mass_option
        self.quiet = quiet
        self._pythia8 = None

    def _get_pythia8(self):
        """Get or create a shared Pythia8 module reference."""
        if self._pythia8 is None:
            self._pythia8 = _require_pythia()
        return self._pythia8

    def _build_pythia_event(self, pythia8: Any, particles: Sequence[Particle]) -> Any:
        """Build a Pythia8.Event holding the particles as final-state entries."""
        if not hasattr(pythia8, "Event"):
            raise RuntimeError("pythia8mc binding does not expose Event class.")
        evt = pythia8.Event()
        evt.reset()
        for p in particles:
            m2 = p.e * p.e - (p.px * p.px + p.py * p.py + p.pz * p.pz)
            m = m2 ** 0.5 if m2 > 0.0 else 0.0
            # Event.append(id, status, col, acol, px, py, pz, e, m).
            evt.append(p.pdg_id, 1, 0, 0, p.px, p.py, p.pz, p.e, m)
        return evt

    def inclusive_jets(self, particles: Sequence[Particle], algorithm: AlgorithmConfig, min_pt: float) -> List[Jet]:
        power = _ALGO_TO_POWER.get(algorithm.kind)
        if power is None:
            raise ValueError(f"Unsupported algorithm '{algorithm.kind}'. Use one of {list(_ALGO_TO_POWER)}")
        if algorithm.recombination != "E_scheme":
            raise ValueError(f"SlowJet only supports E_scheme recombination, got '{algorithm.recombination}'")

        pythia8 = self._get_pythia8()
        evt = self._build_pythia_event(pythia8, particles)
        # Non-zero when the binding keeps a system entry in front.
        offset = int(evt.size()) - len(particles)

        # Select 1: all final-state particles.
        sj = pythia8.SlowJet(int(power), float(algorithm.radius), float(min_pt),
                             float(self.etamax), 1, int(self.mass_option))
        if self.quiet:
            with silenced(STDOUT, STDERR):
                sj.analyze(evt)
        else:
            sj.analyze(evt)

        jets = []
        for j in range(int(sj.sizeJet())):
            cons = [int(ix) - offset for ix in sj.constituents(j)]
            p4 = sj.p(j)
            jets.append(Jet(
                px=float(p4.px()),
                py=float(p4.py()),
                pz=float(p4.pz()),
                e=float(p4.e()),
                constituents=tuple(particles[c] for c in cons),
            ))
        return jets
