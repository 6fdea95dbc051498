"""
Service factories for FastAPI dependency injection.

Each request gets services bound to its own database session; settings and
external collaborators are passed in explicitly.
"""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from config import get_settings
from studynotes.db.database import get_db
from studynotes.gaps.gap_service import GapAnalysisService
from studynotes.study.answer_evaluation import AnswerReviewService
from studynotes.study.flashcard_service import FlashcardService


def get_flashcard_service(db: Session = Depends(get_db)) -> FlashcardService:
    settings = get_settings()
    return FlashcardService(db, policy=settings.get_scheduling_policy())


def get_answer_review_service(request: Request, db: Session = Depends(get_db)) -> AnswerReviewService:
    settings = get_settings()
    return AnswerReviewService(
        db,
        evaluator=request.app.state.answer_evaluator,
        policy=settings.get_scheduling_policy(),
        overlap_threshold=settings.heuristic_overlap_threshold,
    )


def get_gap_service(request: Request, db: Session = Depends(get_db)) -> GapAnalysisService:
    settings = get_settings()
    return GapAnalysisService(
        db,
        top_n=settings.gap_top_n,
        default_mastery=settings.gap_default_mastery,
        analyzer=request.app.state.gap_analyzer,
    )
