"""
wavefield/geometry.py - Vector and Distance Math

Coherence (mass) and distances to the two fixed references: the origin
(bridge) and the diagonal reference line x == y.
Pure, total functions.
"""

import math

from .types_state import ORIGIN, Position

SQRT2 = math.sqrt(2.0)


def distance_to_reference_line(position: Position) -> float:
    """Distance to the diagonal x == y: |y - x| / sqrt(2)."""
    return abs(position.y - position.x) / SQRT2


def mass(position: Position) -> float:
    """
    Coherence of a position: 1 / (1 + distance to reference line).

    In (0, 1]; exactly 1 only on the reference line.
    """
    return 1.0 / (1.0 + distance_to_reference_line(position))


def distance_to_origin(position: Position) -> float:
    return math.hypot(position.x, position.y)


def distance(a: Position, b: Position) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def scale(position: Position, factor: float) -> Position:
    return Position(position.x * factor, position.y * factor)


def on_diagonal(radius: float, angle: float) -> Position:
    """Point at radius along angle, x from cos and y from sin."""
    return Position(radius * math.cos(angle), radius * math.sin(angle))


def move_toward(position: Position, target: Position, fraction: float) -> Position:
    """Close `fraction` of the gap from position to target."""
    return Position(
        position.x + (target.x - position.x) * fraction,
        position.y + (target.y - position.y) * fraction,
    )


def midpoint(a: Position, b: Position) -> Position:
    return move_toward(a, b, 0.5)


__all__ = [
    "ORIGIN",
    "distance_to_reference_line",
    "mass",
    "distance_to_origin",
    "distance",
    "scale",
    "on_diagonal",
    "move_toward",
    "midpoint",
]
