"""Knowledge gap records produced by gap analysis runs."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class KnowledgeGapRecord(Base):
    """
    A scored knowledge gap.

    Ids are derived from note and concept, so re-running an analysis upserts
    the same rows instead of duplicating them.
    """

    __tablename__ = "knowledge_gaps"

    id: Mapped[str] = mapped_column(String(300), primary_key=True)
    note_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    concept: Mapped[str] = mapped_column(Text, nullable=False)
    gap_type: Mapped[str] = mapped_column(String(32), nullable=False)  # prerequisite, reinforcement, connection, general
    missing_prerequisite: Mapped[str | None] = mapped_column(Text)
    reinforcement_strategy: Mapped[str] = mapped_column(Text, default="")

    user_mastery: Mapped[float] = mapped_column(Float, nullable=False)
    priority_score: Mapped[float] = mapped_column(Float, nullable=False)

    status: Mapped[str] = mapped_column(String(32), default="identified")
    resources: Mapped[list] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    __table_args__ = (Index("idx_gaps_note_priority", "note_id", "priority_score"),)

    def __repr__(self) -> str:
        return f"<KnowledgeGapRecord {self.concept} ({self.gap_type}) priority={self.priority_score}>"
