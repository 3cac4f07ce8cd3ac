"""
wavefield/algebra.py - Accumulator Algebras

Fold-style binary functions (acc, value) -> acc with an explicit identity,
their classification in the Magma..AbelianGroup hierarchy, and paired
composition of two algebras into one over a tuple accumulator.

Properties are declared metadata. They are never inferred at call time;
property_check.py samples them as a diagnostic.
"""

from dataclasses import dataclass, replace
from typing import Callable, Generic, Iterable, Optional, Tuple, TypeVar

from .constants import (
    ATTRACTOR_MASS_THRESHOLD, AlgebraClass, PLACEMENT_BASE, PLACEMENT_PULL, PLACEMENT_SHIFT,
)
from .geometry import mass as position_mass
from .types_state import Position

T = TypeVar("T")
B = TypeVar("B")
B1 = TypeVar("B1")
B2 = TypeVar("B2")
R = TypeVar("R")


# =============================================================================
# PROPERTIES
# =============================================================================

@dataclass(frozen=True)
class AlgebraProperties:
    """Declared algebraic properties of a binary operation."""
    associative: bool
    commutative: bool
    has_identity: bool
    idempotent: bool
    has_inverse: bool = False

    def intersect(self, other: "AlgebraProperties") -> "AlgebraProperties":
        return AlgebraProperties(
            associative=self.associative and other.associative,
            commutative=self.commutative and other.commutative,
            has_identity=self.has_identity and other.has_identity,
            idempotent=self.idempotent and other.idempotent,
            has_inverse=self.has_inverse and other.has_inverse,
        )


@dataclass(frozen=True)
class AlgebraImplications:
    """What a classification licenses a caller to do with the fold."""
    parallelizable: bool      # associative + commutative + identity
    foldable: bool            # always
    safe_for_unordered: bool  # commutative
    safe_for_duplicates: bool  # idempotent
    has_identity: bool        # empty fold is defined
    invertible: bool


def classify_algebra(properties: AlgebraProperties) -> AlgebraClass:
    """
    Place a property set in the algebra hierarchy.

    Decision table, checked top to bottom:
        assoc, identity, inverse      -> ABELIAN_GROUP if commutative else GROUP
        assoc, identity, comm, idem   -> IDEMPOTENT_COMMUTATIVE_MONOID
        assoc, identity, comm         -> COMMUTATIVE_MONOID
        assoc, identity               -> MONOID
        assoc                         -> SEMIGROUP
        otherwise                     -> MAGMA
    """
    p = properties
    if p.associative and p.has_identity and p.has_inverse:
        return AlgebraClass.ABELIAN_GROUP if p.commutative else AlgebraClass.GROUP
    if p.associative and p.has_identity:
        if p.commutative and p.idempotent:
            return AlgebraClass.IDEMPOTENT_COMMUTATIVE_MONOID
        if p.commutative:
            return AlgebraClass.COMMUTATIVE_MONOID
        return AlgebraClass.MONOID
    if p.associative:
        return AlgebraClass.SEMIGROUP
    return AlgebraClass.MAGMA


def weaker_class(a: AlgebraClass, b: AlgebraClass) -> AlgebraClass:
    """The lower of two classes in the hierarchy."""
    return a if a.value <= b.value else b


def derive_implications(properties: AlgebraProperties) -> AlgebraImplications:
    return AlgebraImplications(
        parallelizable=properties.associative and properties.commutative and properties.has_identity,
        foldable=True,
        safe_for_unordered=properties.commutative,
        safe_for_duplicates=properties.idempotent,
        has_identity=properties.has_identity,
        invertible=properties.has_inverse,
    )


# =============================================================================
# ALGEBRA
# =============================================================================

@dataclass(frozen=True)
class Algebra(Generic[T, B]):
    """Accumulator function with an optional identity element.

    identity is None when the algebra has none; properties.has_identity must
    agree with it.
    """
    name: str
    fn: Callable[[B, T], B]
    identity: Optional[B]
    properties: AlgebraProperties
    parents: Tuple[str, ...] = ()
    generation: int = 0

    @property
    def algebra_class(self) -> AlgebraClass:
        return classify_algebra(self.properties)

    @property
    def implications(self) -> AlgebraImplications:
        return derive_implications(self.properties)

    def fold(self, values: Iterable[T], initial: Optional[B] = None) -> Optional[B]:
        """Left fold from initial, or from identity when initial is None.

        Returns None when neither is available (no empty fold for a Semigroup).
        """
        acc = self.identity if initial is None else initial
        if acc is None:
            return None
        for value in values:
            acc = self.fn(acc, value)
        return acc


def make_algebra(name: str, fn: Callable[[B, T], B], identity: Optional[B], *,
                 associative: bool = True, commutative: bool = False,
                 idempotent: bool = False, has_inverse: bool = False) -> Algebra:
    """Build an Algebra whose has_identity flag follows the identity argument."""
    return Algebra(
        name=name,
        fn=fn,
        identity=identity,
        properties=AlgebraProperties(
            associative=associative,
            commutative=commutative,
            has_identity=identity is not None,
            idempotent=idempotent,
            has_inverse=has_inverse,
        ),
    )


def compose_algebras(a1: Algebra[T, B1], a2: Algebra[T, B2]) -> Optional[Algebra[T, Tuple[B1, B2]]]:
    """
    Pair two algebras over the same input type.

    (a1 x a2)((acc1, acc2), v) = (a1(acc1, v), a2(acc2, v)), identity (e1, e2).

    Returns:
        The paired algebra, or None when either operand lacks an identity
        element (not composable).
    """
    if a1.identity is None or a2.identity is None:
        return None
    if not (a1.properties.has_identity and a2.properties.has_identity):
        return None

    def paired(acc: Tuple[B1, B2], value: T) -> Tuple[B1, B2]:
        return (a1.fn(acc[0], value), a2.fn(acc[1], value))

    properties = replace(a1.properties.intersect(a2.properties), associative=True)
    return Algebra(
        name=f"compose({a1.name}, {a2.name})",
        fn=paired,
        identity=(a1.identity, a2.identity),
        properties=properties,
        parents=(a1.name, a2.name),
        generation=max(a1.generation, a2.generation) + 1,
    )


@dataclass(frozen=True)
class FinalizedAlgebra(Generic[T, B, R]):
    """An algebra plus an extraction step applied after folding."""
    algebra: Algebra[T, B]
    finalize: Callable[[B], R]

    @property
    def name(self) -> str:
        return f"finalized({self.algebra.name})"

    @property
    def algebra_class(self) -> AlgebraClass:
        return self.algebra.algebra_class

    def run(self, values: Iterable[T]) -> Optional[R]:
        acc = self.algebra.fold(values)
        return None if acc is None else self.finalize(acc)


def with_finalization(algebra: Algebra[T, B], finalize: Callable[[B], R]) -> FinalizedAlgebra[T, B, R]:
    """e.g. mean = with_finalization(compose(sum, count), lambda sc: sc[0] / sc[1])"""
    return FinalizedAlgebra(algebra=algebra, finalize=finalize)


# =============================================================================
# PLACEMENT IN THE FIELD
# =============================================================================

@dataclass(frozen=True)
class PlacedAlgebra:
    """An algebra located in the field, with the mass its position implies."""
    algebra: Algebra
    position: Position
    mass: float
    is_attractor: bool
    attractor_strength: float


def infer_position(properties: AlgebraProperties) -> Position:
    """
    Heuristic position from properties.

    Commutative shifts y up, associative shifts x up, an identity pulls the
    point toward the reference line. Clamped to the unit square.
    """
    x = y = PLACEMENT_BASE
    if properties.commutative:
        y += PLACEMENT_SHIFT
    if properties.associative:
        x += PLACEMENT_SHIFT
    if properties.has_identity:
        y += (x - y) * PLACEMENT_PULL
        x += (y - x) * PLACEMENT_PULL
    return Position(min(1.0, max(0.0, x)), min(1.0, max(0.0, y)))


def place_algebra(algebra: Algebra, position: Optional[Position] = None) -> Optional[PlacedAlgebra]:
    """Locate an algebra; only monoids and above can be placed (None otherwise)."""
    if algebra.identity is None:
        return None
    if position is None:
        position = infer_position(algebra.properties)
    m = position_mass(position)
    is_attractor = m >= ATTRACTOR_MASS_THRESHOLD
    return PlacedAlgebra(
        algebra=algebra,
        position=position,
        mass=m,
        is_attractor=is_attractor,
        attractor_strength=m * m if is_attractor else 0.0,
    )
