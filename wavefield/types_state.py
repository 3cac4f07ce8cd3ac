"""
wavefield/types_state.py - Field Value Types

Immutable records for positions, waves, landmarks, attractors and the field.
Every change goes through an explicit constructor that returns a new value,
so wave history stays append-only and landmarks stay fixed.
"""

import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Optional, Tuple

from receipts import stoprule_out_of_range

from .constants import AttractorName, PhaseState, WaveStatus


# =============================================================================
# POSITION
# =============================================================================

@dataclass(frozen=True)
class Position:
    """Point in the field. x is axis-A, y is axis-B."""
    x: float
    y: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


ORIGIN = Position(0.0, 0.0)


# =============================================================================
# WAVE
# =============================================================================

@dataclass(frozen=True)
class HistoryRecord:
    """One operator application on a wave."""
    operator: str
    position_before: Position
    position_after: Position
    mass_before: float
    mass_after: float
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operator": self.operator,
            "position_before": self.position_before.to_dict(),
            "position_after": self.position_after.to_dict(),
            "mass_before": self.mass_before,
            "mass_after": self.mass_after,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class Wave:
    """Unit of the simulation, transformed by operators until it crystallizes.

    body is the transform function the wave was seeded from. It takes no part
    in equality or hashing.
    """
    wave_id: str
    position: Position
    mass: float
    status: WaveStatus = WaveStatus.SEED
    history: Tuple[HistoryRecord, ...] = ()
    origin: str = "unknown"
    created_at: float = field(default_factory=time.time)
    bridge_crossings: int = 0
    body: Optional[Callable[..., Any]] = field(default=None, compare=False, repr=False)

    def evolve(self, position: Optional[Position] = None, mass: Optional[float] = None,
               record: Optional[HistoryRecord] = None) -> "Wave":
        """New wave with position/mass replaced and record appended to history."""
        history = self.history + (record,) if record is not None else self.history
        return replace(
            self,
            position=self.position if position is None else position,
            mass=self.mass if mass is None else mass,
            history=history,
        )

    def with_status(self, status: WaveStatus) -> "Wave":
        return replace(self, status=status)

    def crossed_bridge(self) -> "Wave":
        return replace(self, status=WaveStatus.IN_BRIDGE,
                       bridge_crossings=self.bridge_crossings + 1)

    @property
    def crystallized(self) -> bool:
        return self.status is WaveStatus.CRYSTALLIZED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wave_id": self.wave_id,
            "origin": self.origin,
            "position": self.position.to_dict(),
            "mass": self.mass,
            "status": self.status.value,
            "history_length": len(self.history),
            "bridge_crossings": self.bridge_crossings,
        }


# =============================================================================
# LANDMARK
# =============================================================================

@dataclass(frozen=True)
class Landmark:
    """Permanent trace of a crystallized wave. Only use_count ever changes."""
    landmark_id: str
    origin_wave: Wave
    start: Position
    end: Position
    mass: float
    use_count: int = 0
    created_at: float = field(default_factory=time.time)

    def used(self) -> "Landmark":
        return replace(self, use_count=self.use_count + 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "landmark_id": self.landmark_id,
            "wave_id": self.origin_wave.wave_id,
            "start": self.start.to_dict(),
            "end": self.end.to_dict(),
            "mass": self.mass,
            "use_count": self.use_count,
            "created_at": self.created_at,
        }


# =============================================================================
# ATTRACTOR
# =============================================================================

@dataclass(frozen=True)
class FieldAttractor:
    """Named, positioned, strength-weighted event generator."""
    name: AttractorName
    position: Position
    strength: float

    def __post_init__(self):
        stoprule_out_of_range(f"attractor[{self.name.value}].strength", self.strength, 0.0, 1.0)

    def with_strength(self, strength: float) -> "FieldAttractor":
        return replace(self, strength=strength)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name.value,
            "position": self.position.to_dict(),
            "strength": self.strength,
        }


# =============================================================================
# FIELD
# =============================================================================

@dataclass(frozen=True)
class Field:
    """Aggregate simulation state, passed by value between steps.

    density and phase are derived from landmarks by the orchestrator; the
    constructors here are structural only.
    """
    attractors: Tuple[FieldAttractor, ...] = ()
    landmarks: Tuple[Landmark, ...] = ()
    waves: Tuple[Wave, ...] = ()
    density: float = 0.0
    phase: PhaseState = PhaseState.DORMANT
    timestamp: float = field(default_factory=time.time)

    def with_wave(self, wave: Wave) -> "Field":
        return replace(self, waves=self.waves + (wave,))

    def without_wave(self, wave_id: str) -> "Field":
        return replace(self, waves=tuple(w for w in self.waves if w.wave_id != wave_id))

    def with_attractors(self, attractors: Tuple[FieldAttractor, ...]) -> "Field":
        return replace(self, attractors=tuple(attractors))

    def with_metrics(self, density: float, phase: PhaseState,
                     landmarks: Optional[Tuple[Landmark, ...]] = None) -> "Field":
        return replace(
            self,
            landmarks=self.landmarks if landmarks is None else tuple(landmarks),
            density=density,
            phase=phase,
            timestamp=time.time(),
        )

    def touched(self, timestamp: Optional[float] = None) -> "Field":
        return replace(self, timestamp=time.time() if timestamp is None else timestamp)

    def use_landmark(self, landmark_id: str) -> "Field":
        """Increment the usage counter of one landmark."""
        return replace(self, landmarks=tuple(
            lm.used() if lm.landmark_id == landmark_id else lm for lm in self.landmarks
        ))

    def attractor(self, name: AttractorName) -> Optional[FieldAttractor]:
        for attractor in self.attractors:
            if attractor.name is name:
                return attractor
        return None

    def metrics(self) -> Dict[str, Any]:
        return {
            "density": self.density,
            "phase": self.phase.value,
            "landmark_count": len(self.landmarks),
            "wave_count": len(self.waves),
            "attractor_count": len(self.attractors),
            "timestamp": self.timestamp,
        }
