"""
Flashcard review service.

Wraps the mastery scheduler with persistence:
- Record a response and reschedule the concept
- Build the due queue
- Aggregate statistics
- Track study sessions
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from typing import Any

from loguru import logger
from sqlalchemy.orm import Session

from studynotes.core.mastery import ConceptMasteryState, ReviewResponse
from studynotes.core.numeric import coerce_quality
from studynotes.core.scheduling import PASS_THRESHOLD, MasteryScheduler, SchedulingPolicy, is_due
from studynotes.db.repositories import (
    MasteryRepository,
    ReviewEventRepository,
    StudySessionRepository,
)
from studynotes.exceptions import NotFoundError


def _utcnow() -> datetime:
    # Naive UTC; DateTime columns are timezone-less
    return datetime.now(UTC).replace(tzinfo=None)


@dataclass
class FlashcardStats:
    """Aggregate review statistics for a learner."""

    total_concepts: int
    due_count: int
    learned_count: int
    average_mastery: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_concepts": self.total_concepts,
            "due_count": self.due_count,
            "learned_count": self.learned_count,
            "average_mastery": self.average_mastery,
        }


@dataclass
class SessionSummary:
    session_id: str
    cards_studied: int
    correct_count: int
    incorrect_count: int
    duration_seconds: int

    @property
    def accuracy(self) -> float:
        return self.correct_count / self.cards_studied if self.cards_studied else 0.0


class FlashcardService:
    """
    Records flashcard responses and serves the review queue.

    Writes for one (user, concept) pair are serialized by locking the mastery
    row for the duration of the transaction.
    """

    def __init__(
        self,
        session: Session,
        policy: SchedulingPolicy | None = None,
        clock: Callable[[], date] = date.today,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.session = session
        self.scheduler = MasteryScheduler(policy)
        self.clock = clock
        self.now = now
        self.mastery = MasteryRepository(session)
        self.events = ReviewEventRepository(session)
        self.sessions = StudySessionRepository(session)

    def record_response(
        self,
        user_id: str,
        concept_id: str,
        quality: Any,
        response_time_ms: int | None = None,
        session_id: str | None = None,
        notes: str | None = None,
        concept_name: str | None = None,
    ) -> ConceptMasteryState:
        """
        Record a response and persist the rescheduled state.

        Args:
            user_id: Learner
            concept_id: Concept the flashcard belongs to
            quality: Response quality 0-5 (clamped), or a ReviewResponse
                carrying its own response time
            response_time_ms: Optional answer latency
            session_id: Optional study session to attribute the response to

        Returns:
            The new ConceptMasteryState
        """
        if isinstance(quality, ReviewResponse):
            if response_time_ms is None:
                response_time_ms = quality.response_time_ms
            quality = quality.quality
        q = coerce_quality(quality)
        self.events.add(
            user_id=user_id,
            concept_id=concept_id,
            quality=q,
            response_time_ms=response_time_ms,
            session_id=session_id,
            notes=notes,
        )

        current = self.mastery.get(user_id, concept_id, for_update=True)
        if current is None:
            current = self.scheduler.new_state(concept_id)
        if concept_name:
            current = replace(current, concept_name=concept_name)

        new_state = self.scheduler.review(current, q, today=self.clock())
        self.mastery.save(user_id, new_state)

        logger.info(
            f"Review {user_id}/{concept_id}: q={q} reps={new_state.repetition_count} "
            f"ef={new_state.ease_factor:.2f} interval={new_state.interval_days}d "
            f"mastery={new_state.mastery_level:.2f}"
        )
        return new_state

    def get_due(
        self,
        user_id: str,
        limit: int = 20,
        include_new: bool = True,
        focus_on_struggling: bool = True,
    ) -> list[ConceptMasteryState]:
        """Concepts due for review today."""
        return self.mastery.list_due(
            user_id,
            today=self.clock(),
            limit=limit,
            include_new=include_new,
            focus_on_struggling=focus_on_struggling,
        )

    def get_stats(self, user_id: str) -> FlashcardStats:
        """Total, due, learned (total - due) and average mastery."""
        states = self.mastery.list_for_user(user_id)
        today = self.clock()
        due = sum(1 for state in states if is_due(state, today))
        average = sum(s.mastery_level for s in states) / len(states) if states else 0.0
        return FlashcardStats(
            total_concepts=len(states),
            due_count=due,
            learned_count=len(states) - due,
            average_mastery=average,
        )

    def start_session(self, user_id: str, focus_areas: list[str] | None = None) -> str:
        record = self.sessions.create(user_id, focus_areas or [], started_at=self.now())
        logger.info(f"Started study session {record.id} for {user_id}")
        return record.id

    def complete_session(self, session_id: str) -> SessionSummary:
        """
        Close a session and store its tallies.

        Raises:
            NotFoundError: Unknown session id
        """
        record = self.sessions.get(session_id)
        if record is None:
            raise NotFoundError("Study session", session_id)

        events = self.events.for_session(session_id)
        correct = sum(1 for e in events if e.quality >= PASS_THRESHOLD)
        finished = self.now()

        record.completed_at = finished
        record.cards_studied = len(events)
        record.correct_count = correct
        record.incorrect_count = len(events) - correct
        record.duration_seconds = max(0, int((finished - record.started_at).total_seconds()))
        self.session.flush()

        logger.info(f"Completed study session {session_id}: {correct}/{len(events)} correct")
        return SessionSummary(
            session_id=session_id,
            cards_studied=record.cards_studied,
            correct_count=record.correct_count,
            incorrect_count=record.incorrect_count,
            duration_seconds=record.duration_seconds,
        )
