"""
Repositories translating between ORM rows and core dataclasses.

Services only see ConceptMasteryState and KnowledgeGap; rows stay inside
this module.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from studynotes.core.gaps import GapStatus, GapType, KnowledgeGap
from studynotes.core.mastery import ConceptMasteryState
from studynotes.db.models import (
    KnowledgeGapRecord,
    ReviewEvent,
    StudySession,
    UserConceptMastery,
)


def _to_state(row: UserConceptMastery) -> ConceptMasteryState:
    return ConceptMasteryState(
        concept_id=row.concept_id,
        concept_name=row.concept_name,
        mastery_level=row.mastery_level if row.mastery_level is not None else 0.0,
        repetition_count=row.repetition_count or 0,
        ease_factor=row.ease_factor if row.ease_factor is not None else 2.5,
        interval_days=row.interval_days or 1,
        due_date=row.due_date,
        last_reviewed=row.last_reviewed,
        lapse_count=row.lapse_count or 0,
    )


def _to_gap(row: KnowledgeGapRecord) -> KnowledgeGap:
    return KnowledgeGap(
        id=row.id,
        note_id=row.note_id,
        user_id=row.user_id,
        concept=row.concept,
        gap_type=GapType.parse(row.gap_type),
        missing_prerequisite=row.missing_prerequisite,
        reinforcement_strategy=row.reinforcement_strategy or "",
        user_mastery=row.user_mastery,
        priority_score=row.priority_score,
        status=GapStatus(row.status or GapStatus.IDENTIFIED.value),
        resources=list(row.resources or []),
    )


class MasteryRepository:
    """Per-learner concept mastery rows."""

    def __init__(self, session: Session):
        self.session = session

    def _row(self, user_id: str, concept_id: str, for_update: bool = False) -> UserConceptMastery | None:
        stmt = select(UserConceptMastery).where(
            UserConceptMastery.user_id == user_id,
            UserConceptMastery.concept_id == concept_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.scalars(stmt).first()

    def get(self, user_id: str, concept_id: str, for_update: bool = False) -> ConceptMasteryState | None:
        """
        Load a state.

        Args:
            for_update: Lock the row until the transaction ends (no-op on SQLite)
        """
        row = self._row(user_id, concept_id, for_update=for_update)
        return _to_state(row) if row else None

    def save(self, user_id: str, state: ConceptMasteryState) -> None:
        """Insert or update the row for (user_id, state.concept_id)."""
        row = self._row(user_id, state.concept_id)
        if row is None:
            row = UserConceptMastery(user_id=user_id, concept_id=state.concept_id)
            self.session.add(row)
        if state.concept_name:
            row.concept_name = state.concept_name
        row.mastery_level = state.mastery_level
        row.repetition_count = state.repetition_count
        row.ease_factor = state.ease_factor
        row.interval_days = state.interval_days
        row.due_date = state.due_date
        row.last_reviewed = state.last_reviewed
        row.lapse_count = state.lapse_count
        self.session.flush()

    def list_for_user(self, user_id: str) -> list[ConceptMasteryState]:
        stmt = (
            select(UserConceptMastery)
            .where(UserConceptMastery.user_id == user_id)
            .order_by(UserConceptMastery.concept_id)
        )
        return [_to_state(row) for row in self.session.scalars(stmt)]

    def mastery_map(self, user_id: str) -> dict[str, float]:
        """concept_id -> mastery_level for a learner."""
        return {state.concept_id: state.mastery_level for state in self.list_for_user(user_id)}

    def list_due(
        self,
        user_id: str,
        today: date,
        limit: int = 20,
        include_new: bool = True,
        focus_on_struggling: bool = True,
    ) -> list[ConceptMasteryState]:
        """
        States whose due date has arrived.

        Ordering: weakest mastery first when focus_on_struggling, otherwise
        earliest due date first.
        """
        stmt = select(UserConceptMastery).where(
            UserConceptMastery.user_id == user_id,
            or_(UserConceptMastery.due_date.is_(None), UserConceptMastery.due_date <= today),
        )
        if not include_new:
            stmt = stmt.where(UserConceptMastery.last_reviewed.is_not(None))
        if focus_on_struggling:
            stmt = stmt.order_by(UserConceptMastery.mastery_level.asc(), UserConceptMastery.due_date.asc())
        else:
            stmt = stmt.order_by(UserConceptMastery.due_date.asc(), UserConceptMastery.mastery_level.asc())
        stmt = stmt.limit(limit)
        return [_to_state(row) for row in self.session.scalars(stmt)]


class ReviewEventRepository:
    """Append-only review log."""

    def __init__(self, session: Session):
        self.session = session

    def add(
        self,
        user_id: str,
        concept_id: str,
        quality: int,
        response_time_ms: int | None = None,
        session_id: str | None = None,
        notes: str | None = None,
    ) -> ReviewEvent:
        event = ReviewEvent(
            user_id=user_id,
            concept_id=concept_id,
            quality=quality,
            response_time_ms=response_time_ms,
            session_id=session_id,
            notes=notes,
        )
        self.session.add(event)
        self.session.flush()
        return event

    def for_session(self, session_id: str) -> list[ReviewEvent]:
        stmt = select(ReviewEvent).where(ReviewEvent.session_id == session_id)
        return list(self.session.scalars(stmt))


class StudySessionRepository:
    def __init__(self, session: Session):
        self.session = session

    def create(self, user_id: str, focus_areas: list[str], started_at: datetime) -> StudySession:
        record = StudySession(user_id=user_id, focus_areas=list(focus_areas), started_at=started_at)
        self.session.add(record)
        self.session.flush()
        return record

    def get(self, session_id: str) -> StudySession | None:
        return self.session.get(StudySession, session_id)


class GapRepository:
    """Knowledge gap rows, keyed by derived id."""

    def __init__(self, session: Session):
        self.session = session

    def upsert_many(self, gaps: Iterable[KnowledgeGap]) -> int:
        """Insert or update by id; a repeated id in one batch updates the same row."""
        pending: dict[str, KnowledgeGapRecord] = {}
        count = 0
        for gap in gaps:
            row = pending.get(gap.id) or self.session.get(KnowledgeGapRecord, gap.id)
            if row is None:
                row = KnowledgeGapRecord(id=gap.id)
                self.session.add(row)
            pending[gap.id] = row
            row.note_id = gap.note_id
            row.user_id = gap.user_id
            row.concept = gap.concept
            row.gap_type = gap.gap_type.value
            row.missing_prerequisite = gap.missing_prerequisite
            row.reinforcement_strategy = gap.reinforcement_strategy
            row.user_mastery = gap.user_mastery
            row.priority_score = gap.priority_score
            row.status = gap.status.value
            row.resources = list(gap.resources)
            count += 1
        self.session.flush()
        return count

    def list_for_note(self, note_id: str, user_id: str | None = None) -> list[KnowledgeGap]:
        stmt = select(KnowledgeGapRecord).where(KnowledgeGapRecord.note_id == note_id)
        if user_id is not None:
            stmt = stmt.where(KnowledgeGapRecord.user_id == user_id)
        stmt = stmt.order_by(KnowledgeGapRecord.priority_score.desc(), KnowledgeGapRecord.concept)
        return [_to_gap(row) for row in self.session.scalars(stmt)]
