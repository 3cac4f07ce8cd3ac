"""
wavefield/operators.py - Wave Transformation Operators

Four atomic operators (decompose, forget, compose, memoize), the identity
operator and the superposition operator that sequences two operators into one.

Each atomic operator appends exactly one history record and leaves the
wave's status alone; the orchestrator in harvest.py owns status.
"""

import time
from dataclasses import dataclass
from functools import reduce
from typing import Callable, Optional, Tuple

from .algebra import AlgebraProperties, classify_algebra
from .constants import (
    AlgebraClass, COMPOSE_ANGLE, COMPOSE_STEP, DECOMPOSE_FACTOR, FORGET_FACTOR,
    MASS_CEILING, MEMOIZE_FACTOR, Quadrant,
)
from .geometry import distance_to_origin, mass, midpoint, on_diagonal, scale
from .types_state import Field, HistoryRecord, Position, Wave

WaveFn = Callable[[Wave, Optional[Field]], Wave]


@dataclass(frozen=True)
class Operator:
    """A named wave transformation with declared algebraic properties."""
    name: str
    fn: WaveFn
    properties: AlgebraProperties
    quadrant: Quadrant
    position: Position
    is_identity: bool = False
    parents: Tuple[str, ...] = ()
    generation: int = 0

    def __call__(self, wave: Wave, field: Optional[Field] = None) -> Wave:
        return self.fn(wave, field)

    @property
    def algebra_class(self) -> AlgebraClass:
        return classify_algebra(self.properties)

    @property
    def mass(self) -> float:
        return mass(self.position)


def _apply(wave: Wave, name: str, position: Position, new_mass: float) -> Wave:
    record = HistoryRecord(
        operator=name,
        position_before=wave.position,
        position_after=position,
        mass_before=wave.mass,
        mass_after=new_mass,
        timestamp=time.time(),
    )
    return wave.evolve(position=position, mass=new_mass, record=record)


# =============================================================================
# ATOMIC OPERATORS
# =============================================================================

def _decompose(wave: Wave, field: Optional[Field] = None) -> Wave:
    position = scale(wave.position, DECOMPOSE_FACTOR)
    return _apply(wave, "decompose", position, mass(position))


def _forget(wave: Wave, field: Optional[Field] = None) -> Wave:
    return _apply(wave, "forget", wave.position, wave.mass * FORGET_FACTOR)


def _compose(wave: Wave, field: Optional[Field] = None) -> Wave:
    # Step outward and land on the 45 degree ray, i.e. on the reference line.
    position = on_diagonal(distance_to_origin(wave.position) + COMPOSE_STEP, COMPOSE_ANGLE)
    return _apply(wave, "compose", position, mass(position))


def _memoize(wave: Wave, field: Optional[Field] = None) -> Wave:
    return _apply(wave, "memoize", wave.position, min(MASS_CEILING, wave.mass * MEMOIZE_FACTOR))


def _identity(wave: Wave, field: Optional[Field] = None) -> Wave:
    return wave


_NON_COMMUTATIVE = AlgebraProperties(associative=True, commutative=False,
                                     has_identity=True, idempotent=False)
_COMMUTATIVE = AlgebraProperties(associative=True, commutative=True,
                                 has_identity=True, idempotent=False)

IDENTITY = Operator(
    name="identity",
    fn=_identity,
    properties=AlgebraProperties(associative=True, commutative=True,
                                 has_identity=True, idempotent=True),
    quadrant=Quadrant.BRIDGE,
    position=Position(0.0, 0.0),
    is_identity=True,
)

DECOMPOSE = Operator(
    name="decompose",
    fn=_decompose,
    properties=_NON_COMMUTATIVE,
    quadrant=Quadrant.DECONSTRUCTION,
    position=Position(-1.0, -1.0),
)

FORGET = Operator(
    name="forget",
    fn=_forget,
    properties=_COMMUTATIVE,
    quadrant=Quadrant.DECONSTRUCTION,
    position=Position(-0.5, -0.5),
)

COMPOSE = Operator(
    name="compose",
    fn=_compose,
    properties=_NON_COMMUTATIVE,
    quadrant=Quadrant.SYNTHESIS,
    position=Position(1.0, 1.0),
)

MEMOIZE = Operator(
    name="memoize",
    fn=_memoize,
    properties=_COMMUTATIVE,
    quadrant=Quadrant.SYNTHESIS,
    position=Position(0.5, 0.5),
)


# =============================================================================
# SUPERPOSITION
# =============================================================================

def superpose(first: Operator, second: Operator) -> Operator:
    """
    Sequence two operators: (first + second)(w) = second(first(w)).

    Commutativity is declared only when both operands declare it;
    associativity and the identity element are always declared.
    """
    def sequenced(wave: Wave, field: Optional[Field] = None) -> Wave:
        return second.fn(first.fn(wave, field), field)

    return Operator(
        name=f"{first.name} ⊕ {second.name}",
        fn=sequenced,
        properties=AlgebraProperties(
            associative=True,
            commutative=first.properties.commutative and second.properties.commutative,
            has_identity=True,
            idempotent=first.is_identity and second.is_identity,
        ),
        quadrant=second.quadrant,
        position=midpoint(first.position, second.position),
        is_identity=first.is_identity and second.is_identity,
        parents=(first.name, second.name),
        generation=max(first.generation, second.generation) + 1,
    )


def superpose_all(*operators: Operator) -> Operator:
    """Left-fold superpose over operators; IDENTITY for none."""
    if not operators:
        return IDENTITY
    return reduce(superpose, operators)


DECONSTRUCTION_PHASE = superpose(DECOMPOSE, FORGET)
SYNTHESIS_PHASE = superpose(COMPOSE, MEMOIZE)
LIFECYCLE = superpose(DECONSTRUCTION_PHASE, SYNTHESIS_PHASE)

BASE_OPERATORS = {
    op.name: op for op in (DECOMPOSE, FORGET, COMPOSE, MEMOIZE, IDENTITY)
}
COMPOSED_OPERATORS = {
    "deconstruction_phase": DECONSTRUCTION_PHASE,
    "synthesis_phase": SYNTHESIS_PHASE,
    "lifecycle": LIFECYCLE,
}
