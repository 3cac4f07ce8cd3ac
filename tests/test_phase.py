"""
tests/test_phase.py - Tests for wavefield/phase.py
"""

import math

import pytest

from wavefield.constants import AttractorName, PhaseState
from wavefield.phase import (
    PhaseTransitionTracker,
    average_cluster_size,
    can_compose,
    classify_phase,
    composability_graph,
    correlation_length,
    detect_hysteresis,
    has_emergent_behavior,
    hysteresis_gap,
    landmark_density,
    order_parameter,
    settle,
)
from wavefield.types_state import Field, FieldAttractor, Landmark, Position, Wave


def landmark(lid, start, end, m=1.0):
    origin = Wave(wave_id=f"w-{lid}", position=Position(*start), mass=0.1)
    return Landmark(landmark_id=lid, origin_wave=origin, start=Position(*start),
                    end=Position(*end), mass=m)


CHAIN = [
    landmark("a", (-1.0, -1.0), (1.0, 1.0)),
    landmark("b", (1.2, 1.0), (3.0, 3.0)),
    landmark("c", (5.0, 5.0), (6.0, 6.0)),
]


class TestClassifyPhase:
    """Pure lookup on the static thresholds."""

    @pytest.mark.parametrize("density, phase", [
        (0.0, PhaseState.DORMANT),
        (0.19, PhaseState.DORMANT),
        (0.2, PhaseState.ORGANIZING),
        (0.59, PhaseState.ORGANIZING),
        (0.6, PhaseState.CRITICAL),
        (0.9, PhaseState.EMERGENT),
        (1.0, PhaseState.EMERGENT),
    ])
    def test_thresholds(self, density, phase):
        assert classify_phase(density) is phase

    def test_landmark_density(self):
        assert landmark_density(CHAIN, 100.0) == pytest.approx(0.03)
        assert landmark_density(CHAIN, 1.0) == 1.0
        assert landmark_density([], 100.0) == 0.0

    def test_settle(self):
        field = settle(Field(), tuple(CHAIN), 10.0)
        assert field.density == pytest.approx(0.3)
        assert field.phase is PhaseState.ORGANIZING
        assert len(field.landmarks) == 3


class TestOrderParameter:
    """Composability of landmark pairs."""

    def test_can_compose(self):
        assert can_compose(CHAIN[0], CHAIN[1]) is True
        assert can_compose(CHAIN[1], CHAIN[0]) is False

    def test_order_parameter(self):
        assert order_parameter([]) == 0.0
        assert order_parameter(CHAIN[:1]) == 0.0
        assert order_parameter(CHAIN[:2]) == 1.0
        assert order_parameter(CHAIN) == pytest.approx(1 / 3)

    def test_cluster_size(self):
        graph = composability_graph(CHAIN)
        assert graph.number_of_edges() == 1
        assert average_cluster_size(CHAIN) == pytest.approx(1.5)
        assert average_cluster_size([]) == 0.0

    def test_correlation_length(self):
        assert correlation_length(0.205, 0.2) == math.inf
        assert correlation_length(0.3, 0.2) == pytest.approx(10.0)

    def test_emergent_behavior(self):
        assert has_emergent_behavior(Field()) is False
        dense = Field(
            attractors=(FieldAttractor(AttractorName.LOVE, Position(1.0, 1.0), 0.8),),
            landmarks=tuple(CHAIN[:2]),
            density=0.95,
            phase=PhaseState.EMERGENT,
        )
        assert has_emergent_behavior(dense) is True


class TestTransitionTracker:
    """Transition capture and exponent fit."""

    def test_records_transition(self):
        tracker = PhaseTransitionTracker()
        assert tracker.record_sample(0.1, PhaseState.DORMANT, 0.0, 1.0) is None
        assert tracker.record_sample(0.15, PhaseState.DORMANT, 0.0, 2.0) is None
        t = tracker.record_sample(0.3, PhaseState.ORGANIZING, 0.4, 3.0)
        assert t is not None
        assert t.from_phase is PhaseState.DORMANT
        assert t.to_phase is PhaseState.ORGANIZING
        assert t.critical_density == 0.3
        assert len(tracker.transitions()) == 1
        assert len(tracker.history()) == 3
        assert tracker.receipts[0]["receipt_type"] == "phase_transition"
        assert tracker.receipts[0]["to_phase"] == "ORGANIZING"

    def test_record_field(self):
        tracker = PhaseTransitionTracker()
        tracker.record(Field())
        t = tracker.record(Field(density=0.7, phase=PhaseState.CRITICAL))
        assert t.to_phase is PhaseState.CRITICAL

    def test_critical_exponent(self):
        tracker = PhaseTransitionTracker()
        for i, d in enumerate([0.21, 0.23, 0.25, 0.27]):
            tracker.record_sample(d, classify_phase(d), (d - 0.2) ** 0.5, float(i))
        assert tracker.critical_exponent(0.2) == pytest.approx(0.5, abs=1e-6)

    def test_critical_exponent_needs_points(self):
        tracker = PhaseTransitionTracker()
        tracker.record_sample(0.21, PhaseState.ORGANIZING, 0.1, 0.0)
        tracker.record_sample(0.22, PhaseState.ORGANIZING, 0.2, 1.0)
        assert tracker.critical_exponent(0.2) is None

    def test_clear(self):
        tracker = PhaseTransitionTracker()
        tracker.record_sample(0.1, PhaseState.DORMANT, 0.0, 0.0)
        tracker.record_sample(0.3, PhaseState.ORGANIZING, 0.4, 1.0)
        assert len(tracker.receipts) == 1
        tracker.clear()
        assert tracker.history() == []
        assert tracker.transitions() == []
        assert tracker.receipts == []


class TestHysteresis:
    """First-transition gap between sweeps."""

    def test_gap_detected(self):
        ascending = [0.1, 0.15, 0.25, 0.3]
        descending = [0.3, 0.25, 0.18, 0.1]
        assert hysteresis_gap(ascending, descending) == pytest.approx(0.07)
        assert detect_hysteresis(ascending, descending) is True

    def test_symmetric_sweeps(self):
        ascending = [0.1, 0.21]
        descending = [0.3, 0.19]
        assert hysteresis_gap(ascending, descending) == pytest.approx(0.02)
        assert detect_hysteresis(ascending, descending) is False

    def test_no_transition(self):
        assert hysteresis_gap([0.1, 0.12], [0.3, 0.25]) is None
        assert detect_hysteresis([0.1, 0.12], [0.3, 0.25]) is False

    def test_explicit_phases(self):
        phases = [PhaseState.DORMANT, PhaseState.ORGANIZING]
        assert hysteresis_gap([0.1, 0.3], [0.3, 0.25], phases, phases[::-1]) == pytest.approx(0.05)

    def test_phase_length_mismatch(self):
        phases = [PhaseState.DORMANT, PhaseState.DORMANT, PhaseState.ORGANIZING]
        with pytest.raises(ValueError):
            hysteresis_gap([0.1, 0.12], [0.3, 0.25], ascending_phases=phases)
        with pytest.raises(ValueError):
            detect_hysteresis([0.1, 0.12], [0.3, 0.25], descending_phases=phases[:1])
