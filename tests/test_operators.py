"""
tests/test_operators.py - Tests for wavefield/operators.py

Operator semantics, superposition order and the declared-property rules.
"""

import pytest

from wavefield.constants import AlgebraClass, Quadrant, WaveStatus
from wavefield.geometry import mass
from wavefield.operators import (
    BASE_OPERATORS,
    COMPOSE,
    COMPOSED_OPERATORS,
    DECOMPOSE,
    DECONSTRUCTION_PHASE,
    FORGET,
    IDENTITY,
    LIFECYCLE,
    MEMOIZE,
    SYNTHESIS_PHASE,
    superpose,
    superpose_all,
)
from wavefield.types_state import Position, Wave


def make_wave(x=-1.0, y=-1.0, m=0.1, status=WaveStatus.SEED):
    return Wave(wave_id="w-test", position=Position(x, y), mass=m, status=status)


# =============================================================================
# ATOMIC OPERATORS
# =============================================================================

class TestAtomicOperators:
    """Each operator appends one history record and leaves status alone."""

    def test_decompose(self):
        w = make_wave(-1.0, -0.5, 0.3, WaveStatus.DECONSTRUCTING)
        out = DECOMPOSE(w)
        assert out.position == Position(-0.9, -0.45)
        assert out.mass == pytest.approx(mass(Position(-0.9, -0.45)))
        assert out.status is WaveStatus.DECONSTRUCTING
        assert len(out.history) == 1
        assert out.history[0].operator == "decompose"
        assert out.history[0].mass_before == 0.3

    def test_forget(self):
        w = make_wave(m=0.5)
        out = FORGET(w)
        assert out.mass == pytest.approx(0.475)
        assert out.position == w.position
        assert len(out.history) == 1

    def test_compose_lands_on_reference_line(self):
        w = make_wave(0.3, 0.4, 0.2)
        out = COMPOSE(w)
        assert out.position.x == pytest.approx(1.0 / 2 ** 0.5)
        assert out.position.y == pytest.approx(1.0 / 2 ** 0.5)
        assert out.mass == pytest.approx(1.0)

    def test_memoize_caps_at_one(self):
        assert MEMOIZE(make_wave(m=0.5)).mass == pytest.approx(0.55)
        assert MEMOIZE(make_wave(m=0.95)).mass == 1.0

    def test_identity_is_a_no_op(self):
        w = make_wave()
        out = IDENTITY(w)
        assert out is w
        assert out.history == ()

    def test_original_wave_untouched(self):
        w = make_wave()
        DECOMPOSE(w)
        assert w.history == ()
        assert w.position == Position(-1.0, -1.0)


# =============================================================================
# SUPERPOSITION
# =============================================================================

class TestSuperpose:
    """(a + b)(w) = b(a(w)) and the declared-property rules."""

    def test_sequencing_order(self):
        w = make_wave(-1.0, -0.5, 0.4)
        combined = superpose(DECOMPOSE, FORGET)(w)
        manual = FORGET(DECOMPOSE(w))
        assert combined.mass == manual.mass
        assert combined.position == manual.position
        assert [h.operator for h in combined.history] == ["decompose", "forget"]

    def test_commutativity_is_and_of_operands(self):
        assert superpose(FORGET, MEMOIZE).properties.commutative is True
        assert superpose(DECOMPOSE, FORGET).properties.commutative is False
        assert superpose(FORGET, COMPOSE).properties.commutative is False

    def test_always_associative_with_identity(self):
        for a in BASE_OPERATORS.values():
            for b in BASE_OPERATORS.values():
                props = superpose(a, b).properties
                assert props.associative and props.has_identity

    def test_idempotent_only_for_identity_pairs(self):
        assert superpose(IDENTITY, IDENTITY).properties.idempotent is True
        assert superpose(IDENTITY, IDENTITY).is_identity is True
        assert superpose(FORGET, IDENTITY).properties.idempotent is False

    def test_lineage(self):
        op = superpose(COMPOSE, MEMOIZE)
        assert op.name == "compose ⊕ memoize"
        assert op.parents == ("compose", "memoize")
        assert op.generation == 1
        assert op.quadrant is Quadrant.SYNTHESIS

    def test_superpose_all_empty_is_identity(self):
        assert superpose_all() is IDENTITY

    def test_associativity_three_copies(self):
        """Different groupings of decompose, forget, memoize agree within 0.01."""
        w = make_wave(-1.0, -1.0, 0.1)
        left = superpose(superpose(DECOMPOSE, FORGET), MEMOIZE)
        right = superpose(DECOMPOSE, superpose(FORGET, MEMOIZE))
        for _ in range(3):
            assert abs(left(w).mass - right(w).mass) < 0.01
            w = left(w)

    def test_identity_on_either_side(self):
        w = make_wave(0.7, -0.2, 0.6)
        for op in (DECOMPOSE, FORGET, COMPOSE, MEMOIZE):
            base = op(w).mass
            assert abs(superpose(op, IDENTITY)(w).mass - base) < 0.01
            assert abs(superpose(IDENTITY, op)(w).mass - base) < 0.01


class TestPhaseOperators:
    """Prebuilt phase operators."""

    def test_composed_catalogue(self):
        assert COMPOSED_OPERATORS["deconstruction_phase"] is DECONSTRUCTION_PHASE
        assert COMPOSED_OPERATORS["synthesis_phase"] is SYNTHESIS_PHASE
        assert COMPOSED_OPERATORS["lifecycle"] is LIFECYCLE

    def test_lifecycle_is_a_monoid(self):
        assert LIFECYCLE.algebra_class is AlgebraClass.MONOID
        assert LIFECYCLE.generation == 2

    def test_forget_memoize_classified_commutative(self):
        assert superpose(FORGET, MEMOIZE).algebra_class is AlgebraClass.COMMUTATIVE_MONOID

    def test_identity_classification(self):
        assert IDENTITY.algebra_class is AlgebraClass.IDEMPOTENT_COMMUTATIVE_MONOID
