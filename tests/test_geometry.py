"""
tests/test_geometry.py - Tests for wavefield/geometry.py
"""

import math
import random

import pytest

from wavefield.geometry import (
    distance,
    distance_to_origin,
    distance_to_reference_line,
    mass,
    midpoint,
    move_toward,
    on_diagonal,
    scale,
)
from wavefield.types_state import Position


class TestMass:
    """mass(p) in (0, 1], equal to 1 exactly on the reference line."""

    def test_on_reference_line(self):
        for v in (-3.0, 0.0, 0.5, 7.25):
            assert mass(Position(v, v)) == 1.0, f"mass on diagonal at {v} should be 1"

    def test_off_reference_line(self):
        p = Position(1.0, 0.0)
        expected = 1.0 / (1.0 + 1.0 / math.sqrt(2.0))
        assert mass(p) == pytest.approx(expected)
        assert mass(p) < 1.0

    def test_range_for_random_positions(self):
        rng = random.Random(7)
        for _ in range(500):
            p = Position(rng.uniform(-100, 100), rng.uniform(-100, 100))
            m = mass(p)
            assert 0.0 < m <= 1.0, f"mass {m} out of (0, 1] at {p}"
            if p.x != p.y:
                assert m < 1.0

    def test_monotonic_in_line_distance(self):
        near = Position(0.0, 0.1)
        far = Position(0.0, 2.0)
        assert mass(near) > mass(far)


class TestDistances:
    """Tests for distance helpers."""

    def test_distance_to_reference_line(self):
        assert distance_to_reference_line(Position(0.0, 2.0)) == pytest.approx(math.sqrt(2.0))

    def test_distance_to_origin(self):
        assert distance_to_origin(Position(3.0, 4.0)) == 5.0

    def test_distance(self):
        assert distance(Position(1.0, 1.0), Position(4.0, 5.0)) == 5.0


class TestMoves:
    """Tests for scale, on_diagonal, move_toward and midpoint."""

    def test_scale(self):
        assert scale(Position(2.0, -4.0), 0.5) == Position(1.0, -2.0)

    def test_on_diagonal_45(self):
        p = on_diagonal(math.sqrt(2.0), math.pi / 4)
        assert p.x == pytest.approx(1.0)
        assert p.y == pytest.approx(1.0)

    def test_move_toward(self):
        p = move_toward(Position(0.0, 0.0), Position(10.0, 0.0), 0.1)
        assert p == Position(1.0, 0.0)

    def test_midpoint(self):
        assert midpoint(Position(0.0, 0.0), Position(2.0, 4.0)) == Position(1.0, 2.0)
