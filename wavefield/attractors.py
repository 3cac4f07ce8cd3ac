"""
wavefield/attractors.py - Attractor Construction and Strength Budget

Attractors are granted with a total strength (the budget). Their strengths
change only through redistribution: a full name -> strength mapping that
conserves the budget. Anything else is rejected with no change.
"""

from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

from .constants import BUDGET_TOLERANCE, AttractorName
from .types_state import Field, FieldAttractor, Position

# Default placements around the bridge; LOVE and TRUTH sit on the reference line.
DEFAULT_POSITIONS = {
    AttractorName.LOVE: Position(1.0, 1.0),
    AttractorName.FEAR: Position(-1.0, -0.5),
    AttractorName.CURIOSITY: Position(-0.5, 1.0),
    AttractorName.TRUTH: Position(0.8, 0.8),
    AttractorName.BEAUTY: Position(1.0, 0.5),
}

NameLike = Union[AttractorName, str]


def attractor_name(key: NameLike) -> Optional[AttractorName]:
    """AttractorName for an enum member or a case-insensitive string, else None."""
    if isinstance(key, AttractorName):
        return key
    try:
        return AttractorName(str(key).upper())
    except ValueError:
        return None


def create_attractor(name: NameLike, strength: float,
                     position: Optional[Position] = None) -> FieldAttractor:
    """
    Build an attractor, placed at its default position unless given one.

    Raises:
        StopRule: strength outside [0, 1]
        ValueError: unknown attractor name
    """
    resolved = attractor_name(name)
    if resolved is None:
        raise ValueError(f"Unknown attractor name: {name!r}")
    return FieldAttractor(
        name=resolved,
        position=DEFAULT_POSITIONS[resolved] if position is None else position,
        strength=strength,
    )


def default_attractors(strength: float = 0.2) -> Tuple[FieldAttractor, ...]:
    """One attractor per name at its default position, equal strength."""
    return tuple(create_attractor(name, strength) for name in AttractorName)


def total_strength(attractors: Iterable[FieldAttractor]) -> float:
    return sum(a.strength for a in attractors)


def strength_map(field: Field) -> Dict[str, float]:
    return {a.name.value: a.strength for a in field.attractors}


def redistribution_error(field: Field, mapping: Mapping[NameLike, float], budget: float,
                         tolerance: float = BUDGET_TOLERANCE) -> Optional[str]:
    """Why a mapping cannot be applied, or None when it can."""
    resolved = {}
    for key, value in mapping.items():
        name = attractor_name(key)
        if name is None:
            return f"unknown attractor {key!r}"
        resolved[name] = value
    current = {a.name for a in field.attractors}
    if set(resolved) != current:
        missing = sorted(n.value for n in current - set(resolved))
        extra = sorted(n.value for n in set(resolved) - current)
        return f"mapping must name exactly the current attractors (missing={missing}, extra={extra})"
    for name, value in resolved.items():
        if not 0.0 <= value <= 1.0:
            return f"strength for {name.value} outside [0, 1]: {value}"
    total = sum(resolved.values())
    if abs(total - budget) > tolerance:
        return f"strengths sum to {total:.4f}, budget is {budget:.4f}"
    return None


def redistribute_strengths(field: Field, mapping: Mapping[NameLike, float], budget: float,
                           tolerance: float = BUDGET_TOLERANCE) -> Tuple[Field, bool]:
    """
    Replace every attractor strength at once.

    Args:
        field: Current field
        mapping: Full replacement, attractor name -> new strength
        budget: Total strength granted to the attractors
        tolerance: Allowed |sum - budget|

    Returns:
        (new field, True) on success; (the same field, False) on rejection.
    """
    if redistribution_error(field, mapping, budget, tolerance) is not None:
        return field, False
    return apply_strengths(field, mapping), True


def apply_strengths(field: Field, mapping: Mapping[NameLike, float]) -> Field:
    """Write an already-validated full mapping onto the attractors."""
    resolved = {attractor_name(k): v for k, v in mapping.items()}
    updated = tuple(a.with_strength(resolved[a.name]) for a in field.attractors)
    return field.with_attractors(updated).touched()
