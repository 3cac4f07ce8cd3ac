"""
tests/test_unfold.py - Tests for wavefield/unfold.py
"""

import pytest

from wavefield.constants import AttractorName
from wavefield.harvest import create_field
from wavefield.types_state import ORIGIN, FieldAttractor, Position
from wavefield.unfold import (
    analyze_attractors,
    check_fold_unfold_duality,
    generate_combined_stream,
    generate_event_stream,
    stream_moves_toward_attractor,
    streams_equivalent,
    unfold_attractor,
)

LOVE = FieldAttractor(AttractorName.LOVE, Position(1.0, 1.0), 0.5)
FEAR = FieldAttractor(AttractorName.FEAR, Position(-1.0, -0.5), 0.8)
DORMANT_TRUTH = FieldAttractor(AttractorName.TRUTH, Position(0.8, 0.8), 0.2)


class TestUnfoldAttractor:
    """Single unfold step."""

    def test_below_threshold_is_none(self):
        assert unfold_attractor(create_field((DORMANT_TRUTH,)), DORMANT_TRUTH) is None

    def test_at_threshold_is_active(self):
        edge = DORMANT_TRUTH.with_strength(0.3)
        assert unfold_attractor(create_field((edge,)), edge) is not None

    def test_event(self):
        field = create_field((LOVE,))
        result = unfold_attractor(field, LOVE)
        e = result.event
        assert e.event_type is AttractorName.LOVE
        assert e.source == "attractor:LOVE"
        assert e.strength == pytest.approx(0.5)
        assert e.position.x == pytest.approx(0.05)
        assert e.position.y == pytest.approx(0.05)
        assert result.cursor == e.position
        assert e.step == 0

    def test_strength_decays_with_step(self):
        result = unfold_attractor(create_field((LOVE,)), LOVE, step=2)
        assert result.event.strength == pytest.approx(0.5 * 0.95 ** 2)

    def test_strength_scaled_by_position_mass(self):
        result = unfold_attractor(create_field((FEAR,)), FEAR)
        assert result.event.strength < FEAR.strength

    def test_field_strengths_untouched(self):
        field = create_field((LOVE, FEAR))
        result = unfold_attractor(field, LOVE)
        assert result.field.attractors == field.attractors
        assert result.field.timestamp >= field.timestamp


class TestStreams:
    """Bounded streams."""

    def test_stream_depth(self):
        events = generate_event_stream(create_field((LOVE,)), LOVE, depth=10)
        assert len(events) == 10
        assert [e.step for e in events] == list(range(10))

    def test_dormant_stream_is_empty(self):
        assert generate_event_stream(create_field((DORMANT_TRUTH,)), DORMANT_TRUTH, 10) == []

    def test_moves_toward_attractor(self):
        events = generate_event_stream(create_field((LOVE,)), LOVE, depth=5)
        assert stream_moves_toward_attractor(ORIGIN, LOVE, events) is True
        assert stream_moves_toward_attractor(ORIGIN, LOVE, []) is False

    def test_combined(self):
        field = create_field((LOVE, FEAR, DORMANT_TRUTH))
        streams = dict(generate_combined_stream(field, depth=4))
        assert len(streams[AttractorName.LOVE]) == 4
        assert len(streams[AttractorName.FEAR]) == 4
        assert streams[AttractorName.TRUTH] == []

    def test_equivalence(self):
        field = create_field((LOVE, FEAR))
        a = generate_event_stream(field, LOVE, 5)
        b = generate_event_stream(field, LOVE, 5)
        c = generate_event_stream(field, FEAR, 5)
        assert streams_equivalent(a, b) is True
        assert streams_equivalent(a, c) is False
        assert streams_equivalent(a, a[:3]) is False


class TestAnalysis:
    """analyze_attractors and the fold/unfold duality check."""

    def test_analyze(self):
        field = create_field((LOVE, FEAR, DORMANT_TRUTH))
        summary = analyze_attractors(field, depth=6)
        assert summary["total_attractors"] == 3
        assert summary["active_attractors"] == 2
        assert summary["average_event_generation"] == pytest.approx(4.0)
        assert summary["behaviorally_distinct"] is True

    def test_duality(self):
        result = check_fold_unfold_duality(create_field((LOVE,)))
        assert result["algebra_consumes"] is True
        assert result["coalgebra_produces"] is True
        assert result["duality_holds"] is True

    def test_duality_without_active_attractors(self):
        result = check_fold_unfold_duality(create_field((DORMANT_TRUTH,)))
        assert result["coalgebra_produces"] is False
        assert result["duality_holds"] is False
