"""
Mastery & Review Models.

SQLAlchemy models for the spaced repetition flow:
- Per-learner concept mastery and SM-2 schedule
- Raw review response log
- Flashcard study sessions
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import JSON, Date, DateTime, Float, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, new_id


class UserConceptMastery(Base):
    """
    Current mastery and review schedule per learner per concept.

    Written only with states produced by the mastery scheduler.
    """

    __tablename__ = "user_concept_mastery"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    concept_id: Mapped[str] = mapped_column(String(128), nullable=False)
    concept_name: Mapped[str | None] = mapped_column(Text)

    # Mastery (0-1 scale) and SM-2 schedule
    mastery_level: Mapped[float] = mapped_column(Float, default=0.0)
    repetition_count: Mapped[int] = mapped_column(Integer, default=0)
    ease_factor: Mapped[float] = mapped_column(Float, default=2.5)
    interval_days: Mapped[int] = mapped_column(Integer, default=1)
    due_date: Mapped[date | None] = mapped_column(Date)
    last_reviewed: Mapped[date | None] = mapped_column(Date)
    lapse_count: Mapped[int] = mapped_column(Integer, default=0)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "concept_id", name="uq_user_concept"),
        Index("idx_mastery_due", "user_id", "due_date"),
    )

    def __repr__(self) -> str:
        return f"<UserConceptMastery user={self.user_id} concept={self.concept_id} mastery={self.mastery_level}>"


class ReviewEvent(Base):
    """One recorded flashcard response. Append-only."""

    __tablename__ = "review_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    concept_id: Mapped[str] = mapped_column(String(128), nullable=False)
    session_id: Mapped[str | None] = mapped_column(String(36), index=True)
    quality: Mapped[int] = mapped_column(Integer, nullable=False)
    response_time_ms: Mapped[int | None] = mapped_column(Integer)
    notes: Mapped[str | None] = mapped_column(Text)
    reviewed_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    def __repr__(self) -> str:
        return f"<ReviewEvent concept={self.concept_id} quality={self.quality}>"


class StudySession(Base):
    """A flashcard study session and its tallies."""

    __tablename__ = "study_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    focus_areas: Mapped[list] = mapped_column(JSON, default=list)

    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)

    cards_studied: Mapped[int] = mapped_column(Integer, default=0)
    correct_count: Mapped[int] = mapped_column(Integer, default=0)
    incorrect_count: Mapped[int] = mapped_column(Integer, default=0)
    duration_seconds: Mapped[int | None] = mapped_column(Integer)

    def __repr__(self) -> str:
        return f"<StudySession {self.id} cards={self.cards_studied}>"
