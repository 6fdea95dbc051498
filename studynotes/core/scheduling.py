"""
Mastery Update Engine - SM-2 spaced repetition.

Given a concept's current mastery state and the quality of a review
response, computes the next state: repetition streak, ease factor,
interval, due date and mastery estimate.

Quality ratings:
- 0: Complete blackout, no recall
- 1: Incorrect, but remembered upon seeing answer
- 2: Incorrect, but answer seemed easy to recall
- 3: Correct with serious difficulty
- 4: Correct after hesitation
- 5: Perfect response, instant recall

Ease factor update (both branches):
    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored at 1.3

The adjustment is negative for q < 3 and grows with the distance from the
pass threshold, so failed reviews lower the ease factor proportionally.

Everything here is pure: no I/O, no clock reads unless `today` is omitted,
and the input state is never modified.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Any

from loguru import logger

from studynotes.core.mastery import (
    DEFAULT_EASE_FACTOR,
    MINIMUM_EASE_FACTOR,
    ConceptMasteryState,
    ReviewResponse,
)
from studynotes.core.numeric import (
    add_days,
    clamp,
    clamp_unit,
    coerce_float,
    coerce_quality,
    round_half_up,
)

PASS_THRESHOLD = 3
MAX_QUALITY = 5

# Question-review adjustment applied when an answer is graded outside the
# flashcard flow
CORRECT_ANSWER_DELTA = 0.10
INCORRECT_ANSWER_DELTA = -0.15
UNKNOWN_MASTERY = 0.5


@dataclass(frozen=True)
class SchedulingPolicy:
    """Tunable parameters of the scheduler."""

    initial_ease_factor: float = DEFAULT_EASE_FACTOR
    minimum_ease_factor: float = MINIMUM_EASE_FACTOR
    mastery_gain_rate: float = 0.5
    failure_mastery_damping: float = 0.5
    first_interval_days: int = 1
    second_interval_days: int = 6
    maximum_interval_days: int = 36500


def ease_adjustment(quality: int) -> float:
    """SM-2 ease factor delta for a quality."""
    miss = MAX_QUALITY - quality
    return 0.1 - miss * (0.08 + miss * 0.02)


class MasteryScheduler:
    """
    SM-2 scheduler with a mastery estimate on top.

    Intervals: 1 day after the first success, 6 after the second, then the
    previous interval times the updated ease factor, capped at
    maximum_interval_days.
    """

    def __init__(self, policy: SchedulingPolicy | None = None):
        self.policy = policy or SchedulingPolicy()

    def new_state(self, concept_id: str | None = None) -> ConceptMasteryState:
        """Defaults for a concept seen for the first time."""
        return ConceptMasteryState(
            concept_id=concept_id,
            mastery_level=0.0,
            repetition_count=0,
            ease_factor=self.policy.initial_ease_factor,
            interval_days=1,
        )

    def normalize(self, state: ConceptMasteryState) -> ConceptMasteryState:
        """Pull a stored state back inside its invariants."""
        return replace(
            state,
            mastery_level=clamp_unit(coerce_float(state.mastery_level, 0.0)),
            repetition_count=max(0, int(coerce_float(state.repetition_count, 0.0))),
            ease_factor=max(
                self.policy.minimum_ease_factor,
                coerce_float(state.ease_factor, self.policy.initial_ease_factor),
            ),
            interval_days=int(
                clamp(coerce_float(state.interval_days, 1.0), 1, self.policy.maximum_interval_days)
            ),
            lapse_count=max(0, int(coerce_float(state.lapse_count, 0.0))),
        )

    def review(
        self,
        state: ConceptMasteryState | None,
        quality: Any,
        today: date | None = None,
    ) -> ConceptMasteryState:
        """
        Process a review and return the new state.

        Args:
            state: Current state, or None for a new concept
            quality: Response quality or a ReviewResponse; clamped to 0-5,
                invalid input counts as 0
            today: Review date (defaults to date.today())

        Returns:
            New ConceptMasteryState with due_date = today + interval_days
        """
        today = today or date.today()
        if isinstance(quality, ReviewResponse):
            quality = quality.quality
        q = coerce_quality(quality, 0, MAX_QUALITY)
        if q != quality:
            logger.debug(f"Quality {quality!r} normalized to {q}")

        current = self.normalize(state if state is not None else self.new_state())
        ease = max(
            self.policy.minimum_ease_factor,
            current.ease_factor + ease_adjustment(q),
        )

        if q < PASS_THRESHOLD:
            repetitions = 0
            interval = 1
            damping = self.policy.failure_mastery_damping * (PASS_THRESHOLD - q) / PASS_THRESHOLD
            mastery = current.mastery_level * (1 - damping)
            lapses = current.lapse_count + 1
        else:
            repetitions = current.repetition_count + 1
            if repetitions == 1:
                interval = self.policy.first_interval_days
            elif repetitions == 2:
                interval = self.policy.second_interval_days
            else:
                interval = round_half_up(current.interval_days * ease)
            interval = int(clamp(interval, 1, self.policy.maximum_interval_days))
            gain = self.policy.mastery_gain_rate * q / MAX_QUALITY
            mastery = current.mastery_level + (1 - current.mastery_level) * gain
            lapses = current.lapse_count

        return replace(
            current,
            mastery_level=clamp_unit(mastery),
            repetition_count=repetitions,
            ease_factor=ease,
            interval_days=interval,
            due_date=add_days(today, interval),
            last_reviewed=today,
            lapse_count=lapses,
        )

    def nudge(
        self,
        state: ConceptMasteryState | None,
        correct: bool,
        concept_id: str | None = None,
    ) -> ConceptMasteryState:
        """
        Adjust mastery after a graded practice question.

        Only the mastery estimate moves; the review schedule is untouched.
        A concept without a stored state starts from 0.5.
        """
        if state is None:
            state = replace(self.new_state(concept_id), mastery_level=UNKNOWN_MASTERY)
        current = self.normalize(state)
        delta = CORRECT_ANSWER_DELTA if correct else INCORRECT_ANSWER_DELTA
        return replace(current, mastery_level=clamp_unit(current.mastery_level + delta))


def is_due(state: ConceptMasteryState, today: date | None = None) -> bool:
    """A state is due when it has no due date or the date has arrived."""
    if state.due_date is None:
        return True
    return state.due_date <= (today or date.today())


_default_scheduler = MasteryScheduler()


def update_mastery(
    state: ConceptMasteryState | None,
    quality: Any,
    today: date | None = None,
) -> ConceptMasteryState:
    """Apply one review with the default policy. See MasteryScheduler.review."""
    return _default_scheduler.review(state, quality, today)


def nudge_mastery(
    state: ConceptMasteryState | None,
    correct: bool,
    concept_id: str | None = None,
) -> ConceptMasteryState:
    """Apply the practice-question adjustment with the default policy."""
    return _default_scheduler.nudge(state, correct, concept_id)
