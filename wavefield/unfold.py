"""
wavefield/unfold.py - Event Unfolder

Attractors run the other way from the fold-style operators: instead of
consuming a wave they generate events. One unfold step yields an event and
a successor field, or None when the attractor is below the activation
threshold. Streams repeat the step, moving a cursor toward the attractor.

Unfolding never changes attractor strengths.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .constants import (
    ACTIVATION_THRESHOLD, DEFAULT_STREAM_DEPTH, EVENT_STRENGTH_DECAY,
    STREAM_TOLERANCE, UNFOLD_STEP, AttractorName,
)
from .geometry import distance, mass, move_toward
from .harvest import create_seed, harvest
from .types_state import ORIGIN, Field, FieldAttractor, Position


@dataclass(frozen=True)
class Event:
    """One discrete event emitted by an attractor."""
    event_type: AttractorName
    strength: float
    source: str
    position: Position
    step: int
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "strength": self.strength,
            "source": self.source,
            "position": self.position.to_dict(),
            "step": self.step,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class UnfoldResult:
    event: Event
    field: Field
    cursor: Position


def is_active(attractor: FieldAttractor, threshold: float = ACTIVATION_THRESHOLD) -> bool:
    return attractor.strength >= threshold


def unfold_attractor(field: Field, attractor: FieldAttractor,
                     cursor: Position = ORIGIN, step: int = 0,
                     threshold: float = ACTIVATION_THRESHOLD) -> Optional[UnfoldResult]:
    """
    One unfold step.

    Event strength is strength * mass(attractor position) * 0.95^step and
    the event sits at the cursor moved toward the attractor by
    0.1 * strength of the remaining gap.

    Returns:
        UnfoldResult, or None when the attractor is dormant (strength below
        threshold). None is an expected outcome, not an error.
    """
    if not is_active(attractor, threshold):
        return None
    position = move_toward(cursor, attractor.position, UNFOLD_STEP * attractor.strength)
    now = time.time()
    event = Event(
        event_type=attractor.name,
        strength=attractor.strength * mass(attractor.position) * EVENT_STRENGTH_DECAY ** step,
        source=f"attractor:{attractor.name.value}",
        position=position,
        step=step,
        timestamp=now,
    )
    return UnfoldResult(event=event, field=field.touched(max(now, field.timestamp)), cursor=position)


def generate_event_stream(field: Field, attractor: FieldAttractor,
                          depth: int = DEFAULT_STREAM_DEPTH, start: Position = ORIGIN,
                          threshold: float = ACTIVATION_THRESHOLD) -> List[Event]:
    """Up to depth events, stopping at the first dormant step."""
    events: List[Event] = []
    cursor = start
    for step in range(depth):
        result = unfold_attractor(field, attractor, cursor, step, threshold)
        if result is None:
            break
        events.append(result.event)
        field, cursor = result.field, result.cursor
    return events


def generate_combined_stream(field: Field,
                             attractors: Optional[Sequence[FieldAttractor]] = None,
                             depth: int = DEFAULT_STREAM_DEPTH,
                             threshold: float = ACTIVATION_THRESHOLD
                             ) -> List[Tuple[AttractorName, List[Event]]]:
    """Independent stream per attractor (default: all of the field's)."""
    if attractors is None:
        attractors = field.attractors
    return [
        (a.name, generate_event_stream(field, a, depth, threshold=threshold))
        for a in attractors
    ]


def stream_moves_toward_attractor(initial: Position, attractor: FieldAttractor,
                                  events: Sequence[Event]) -> bool:
    """The last event sits closer to the attractor than the initial position."""
    if not events:
        return False
    return distance(events[-1].position, attractor.position) < distance(initial, attractor.position)


def streams_equivalent(a: Sequence[Event], b: Sequence[Event],
                       tolerance: float = STREAM_TOLERANCE) -> bool:
    """Same length, same event types, strengths and positions within tolerance."""
    if len(a) != len(b):
        return False
    for x, y in zip(a, b):
        if x.event_type is not y.event_type:
            return False
        if abs(x.strength - y.strength) > tolerance:
            return False
        if distance(x.position, y.position) > tolerance:
            return False
    return True


def analyze_attractors(field: Field, depth: int = DEFAULT_STREAM_DEPTH,
                       threshold: float = ACTIVATION_THRESHOLD) -> Dict[str, Any]:
    """
    Activity summary for the field's attractors.

    behaviorally_distinct is True when no two active attractors produce
    equivalent streams.
    """
    streams = [
        generate_event_stream(field, a, depth, threshold=threshold)
        for a in field.attractors
    ]
    active = [s for s in streams if s]
    distinct = all(
        not streams_equivalent(active[i], active[j])
        for i in range(len(active))
        for j in range(i + 1, len(active))
    )
    return {
        "total_attractors": len(field.attractors),
        "active_attractors": len(active),
        "average_event_generation": sum(len(s) for s in streams) / len(streams) if streams else 0.0,
        "behaviorally_distinct": distinct,
    }


def check_fold_unfold_duality(field: Field, depth: int = DEFAULT_STREAM_DEPTH) -> Dict[str, bool]:
    """
    Harvest consumes an in-flight wave; active attractors produce events.

    algebra_consumes: a harvested seed is gone from the successor field.
    coalgebra_produces: at least one attractor yields an event.
    """
    seed = create_seed(origin="duality-check")
    result = harvest(seed, field.with_wave(seed))
    consumes = all(w.wave_id != seed.wave_id for w in result.field.waves)
    produces = any(events for _, events in generate_combined_stream(field, depth=depth))
    return {
        "algebra_consumes": consumes,
        "coalgebra_produces": produces,
        "duality_holds": consumes and produces,
    }
