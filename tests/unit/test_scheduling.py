"""
Unit tests for the SM-2 mastery update engine.

Pure functions only; no database.
"""

from dataclasses import replace
from datetime import date, timedelta

import pytest

from studynotes.core.mastery import ConceptMasteryState, ReviewResponse
from studynotes.core.scheduling import (
    MasteryScheduler,
    SchedulingPolicy,
    ease_adjustment,
    is_due,
    nudge_mastery,
    update_mastery,
)

TODAY = date(2024, 3, 10)


class TestFirstReviews:
    def test_new_concept_perfect_answer(self):
        state = update_mastery(None, 5, today=TODAY)

        assert state.repetition_count == 1
        assert state.interval_days == 1
        assert state.ease_factor == pytest.approx(2.6)
        assert state.mastery_level > 0
        assert state.due_date == date(2024, 3, 11)
        assert state.last_reviewed == TODAY

    def test_second_success_gives_six_days(self):
        state = ConceptMasteryState(concept_id="c1", repetition_count=1, interval_days=1, ease_factor=2.6)

        result = update_mastery(state, 4, today=TODAY)

        assert result.repetition_count == 2
        assert result.interval_days == 6
        assert result.ease_factor == pytest.approx(2.6)
        assert result.due_date == date(2024, 3, 16)

    def test_third_success_multiplies_by_updated_ease(self):
        state = ConceptMasteryState(concept_id="c1", repetition_count=2, interval_days=6, ease_factor=2.6)

        result = update_mastery(state, 5, today=TODAY)

        assert result.ease_factor == pytest.approx(2.7)
        assert result.interval_days == 16  # 6 * 2.7 = 16.2

    def test_interval_rounds_half_up(self):
        state = ConceptMasteryState(concept_id="c1", repetition_count=3, interval_days=5, ease_factor=2.5)

        result = update_mastery(state, 4, today=TODAY)

        assert result.interval_days == 13  # 5 * 2.5 = 12.5


class TestFailedReviews:
    def test_failure_resets_streak(self):
        state = ConceptMasteryState(concept_id="c1", repetition_count=5, interval_days=20, ease_factor=2.0)

        result = update_mastery(state, 1, today=TODAY)

        assert result.repetition_count == 0
        assert result.interval_days == 1
        assert result.ease_factor < 2.0
        assert result.ease_factor >= 1.3
        assert result.ease_factor == pytest.approx(1.46)
        assert result.due_date == date(2024, 3, 11)

    def test_failure_counts_lapse(self):
        state = ConceptMasteryState(concept_id="c1", repetition_count=3, lapse_count=2)
        assert update_mastery(state, 0, today=TODAY).lapse_count == 3
        assert update_mastery(state, 3, today=TODAY).lapse_count == 2

    def test_ease_factor_floor(self):
        state = ConceptMasteryState(concept_id="c1", repetition_count=4, ease_factor=1.3)
        assert update_mastery(state, 0, today=TODAY).ease_factor == pytest.approx(1.3)

    def test_worse_failures_cost_more_ease(self):
        state = ConceptMasteryState(concept_id="c1", repetition_count=4, ease_factor=2.5)
        eases = [update_mastery(state, q, today=TODAY).ease_factor for q in (2, 1, 0)]
        assert eases[0] > eases[1] > eases[2]

    def test_failure_damps_mastery(self):
        state = ConceptMasteryState(concept_id="c1", mastery_level=0.8, repetition_count=2)

        assert update_mastery(state, 0, today=TODAY).mastery_level == pytest.approx(0.4)
        assert update_mastery(state, 2, today=TODAY).mastery_level == pytest.approx(0.8 * 5 / 6)


class TestQualityNormalization:
    @pytest.mark.parametrize(
        "raw, expected",
        [(7, 5), (-2, 0), ("abc", 0), (None, 0), (True, 0), (float("nan"), 0), ("4", 4), (3.6, 4)],
    )
    def test_quality_is_coerced(self, raw, expected):
        base = ConceptMasteryState(concept_id="c1", repetition_count=2, interval_days=6)
        assert update_mastery(base, raw, today=TODAY) == update_mastery(base, expected, today=TODAY)

    def test_input_state_unchanged(self):
        state = ConceptMasteryState(concept_id="c1", mastery_level=0.3, repetition_count=2, interval_days=6)
        snapshot = replace(state)

        update_mastery(state, 5, today=TODAY)

        assert state == snapshot


class TestInvariants:
    @pytest.mark.parametrize("quality", range(6))
    def test_outputs_stay_in_bounds(self, quality):
        state = ConceptMasteryState(concept_id="c1", mastery_level=0.95, repetition_count=7, ease_factor=1.35)
        for _ in range(10):
            state = update_mastery(state, quality, today=TODAY)
            assert 0.0 <= state.mastery_level <= 1.0
            assert state.ease_factor >= 1.3
            assert state.interval_days >= 1
            assert state.repetition_count >= 0

    def test_mastery_monotone_in_quality(self):
        state = ConceptMasteryState(concept_id="c1", mastery_level=0.5, repetition_count=2, interval_days=6)
        levels = [update_mastery(state, q, today=TODAY).mastery_level for q in range(6)]
        assert levels == sorted(levels)

    def test_corrupt_stored_state_is_normalized(self):
        state = ConceptMasteryState(concept_id="c1", mastery_level=1.7, ease_factor=0.5, interval_days=0)

        result = update_mastery(state, 5, today=TODAY)

        assert result.mastery_level <= 1.0
        assert result.ease_factor >= 1.3

    def test_ease_adjustment_values(self):
        assert ease_adjustment(5) == pytest.approx(0.1)
        assert ease_adjustment(4) == pytest.approx(0.0)
        assert ease_adjustment(3) == pytest.approx(-0.14)
        assert ease_adjustment(0) == pytest.approx(-0.8)


class TestPolicy:
    def test_custom_policy(self):
        scheduler = MasteryScheduler(SchedulingPolicy(initial_ease_factor=2.0, mastery_gain_rate=1.0))

        state = scheduler.review(None, 5, today=TODAY)

        assert state.ease_factor == pytest.approx(2.1)
        assert state.mastery_level == pytest.approx(1.0)


class TestNudge:
    def test_unknown_concept_starts_at_half(self):
        assert nudge_mastery(None, True, concept_id="c9").mastery_level == pytest.approx(0.6)
        assert nudge_mastery(None, False, concept_id="c9").mastery_level == pytest.approx(0.35)

    def test_nudge_clamps_and_keeps_schedule(self):
        state = ConceptMasteryState(concept_id="c1", mastery_level=0.95, interval_days=6, due_date=TODAY)

        result = nudge_mastery(state, True)

        assert result.mastery_level == 1.0
        assert result.interval_days == 6
        assert result.due_date == TODAY
        assert nudge_mastery(replace(state, mastery_level=0.1), False).mastery_level == 0.0


class TestIsDue:
    def test_never_scheduled_is_due(self):
        assert is_due(ConceptMasteryState(concept_id="c1"), TODAY)

    def test_due_on_and_after_date(self):
        state = ConceptMasteryState(concept_id="c1", due_date=TODAY)
        assert is_due(state, TODAY)
        assert not is_due(state, date(2024, 3, 9))


class TestLongHorizons:
    def test_long_run_of_perfect_reviews(self):
        state = None
        for _ in range(40):
            state = update_mastery(state, 5, today=TODAY)
            assert 1 <= state.interval_days <= 36500
        assert state.interval_days == 36500
        assert state.due_date == TODAY + timedelta(days=36500)

    def test_huge_stored_interval_is_capped(self):
        state = ConceptMasteryState(concept_id="c1", repetition_count=3, interval_days=5_000_000)

        result = update_mastery(state, 4, today=TODAY)

        assert result.interval_days == 36500

    def test_policy_cap(self):
        scheduler = MasteryScheduler(SchedulingPolicy(maximum_interval_days=30))
        state = ConceptMasteryState(concept_id="c1", repetition_count=2, interval_days=20)
        assert scheduler.review(state, 5, today=TODAY).interval_days == 30

    def test_due_date_saturates_near_calendar_end(self):
        result = update_mastery(None, 5, today=date.max)
        assert result.due_date == date.max

    def test_same_input_same_output(self):
        state = ConceptMasteryState(concept_id="c1", mastery_level=0.4, repetition_count=3, interval_days=9)
        assert update_mastery(state, 4, today=TODAY) == update_mastery(state, 4, today=TODAY)


def test_review_accepts_review_response():
    state = ConceptMasteryState(concept_id="c1", repetition_count=1, interval_days=1, ease_factor=2.6)
    assert update_mastery(state, ReviewResponse(quality=4), today=TODAY) == update_mastery(state, 4, today=TODAY)
