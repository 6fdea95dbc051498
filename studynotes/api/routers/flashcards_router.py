"""
Flashcard review router.

Endpoints for submitting review responses, reading the due queue and
managing study sessions.
"""

from __future__ import annotations

from datetime import date
from typing import Any, List

from fastapi import APIRouter, Depends, Query
from loguru import logger
from pydantic import BaseModel, Field

from config import get_settings
from studynotes.api.dependencies import get_flashcard_service
from studynotes.core.mastery import ConceptMasteryState, ReviewResponse, quality_from_rating
from studynotes.study.flashcard_service import FlashcardService

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class ReviewSubmission(BaseModel):
    """A flashcard response. Either quality (0-5) or rating (hard/medium/easy)."""

    user_id: str
    concept_id: str
    concept_name: str | None = None
    quality: float | None = None
    rating: str | None = None
    response_time_ms: int | None = Field(default=None, ge=0)
    session_id: str | None = None
    notes: str | None = None


class MasteryStateResponse(BaseModel):
    concept_id: str | None
    concept_name: str | None
    mastery_level: float
    repetition_count: int
    ease_factor: float
    interval_days: int
    due_date: date | None
    last_reviewed: date | None
    lapse_count: int
    level: str

    @classmethod
    def from_state(cls, state: ConceptMasteryState) -> MasteryStateResponse:
        return cls(
            concept_id=state.concept_id,
            concept_name=state.concept_name,
            mastery_level=state.mastery_level,
            repetition_count=state.repetition_count,
            ease_factor=state.ease_factor,
            interval_days=state.interval_days,
            due_date=state.due_date,
            last_reviewed=state.last_reviewed,
            lapse_count=state.lapse_count,
            level=state.level.value,
        )


class SessionStart(BaseModel):
    user_id: str
    focus_areas: List[str] = Field(default_factory=list)


class SessionSummaryResponse(BaseModel):
    session_id: str
    cards_studied: int
    correct_count: int
    incorrect_count: int
    duration_seconds: int
    accuracy: float


# ========================================
# Review Endpoints
# ========================================


@router.post("/review", response_model=MasteryStateResponse, summary="Submit a flashcard response")
def submit_review(
    submission: ReviewSubmission,
    service: FlashcardService = Depends(get_flashcard_service),
) -> MasteryStateResponse:
    """
    Record a response and reschedule the concept.

    Out-of-range qualities are clamped to 0-5; a rating is used when no
    quality is given.
    """
    if submission.quality is not None:
        quality: Any = submission.quality
    else:
        quality = quality_from_rating(submission.rating or "")
    response = ReviewResponse(quality=quality, response_time_ms=submission.response_time_ms)

    state = service.record_response(
        user_id=submission.user_id,
        concept_id=submission.concept_id,
        quality=response,
        session_id=submission.session_id,
        notes=submission.notes,
        concept_name=submission.concept_name,
    )
    return MasteryStateResponse.from_state(state)


@router.get("/due", response_model=List[MasteryStateResponse], summary="Get due concepts")
def get_due(
    user_id: str,
    limit: int | None = Query(default=None, ge=1, le=1000),
    include_new: bool = True,
    focus_on_struggling: bool = True,
    service: FlashcardService = Depends(get_flashcard_service),
) -> List[MasteryStateResponse]:
    """Concepts due today; weakest first when focus_on_struggling."""
    limit = limit or get_settings().due_queue_limit
    logger.debug(f"Fetching due queue (user={user_id}, limit={limit})")
    states = service.get_due(
        user_id,
        limit=limit,
        include_new=include_new,
        focus_on_struggling=focus_on_struggling,
    )
    return [MasteryStateResponse.from_state(s) for s in states]


@router.get("/stats", summary="Get flashcard statistics")
def get_stats(
    user_id: str,
    service: FlashcardService = Depends(get_flashcard_service),
) -> dict[str, Any]:
    return service.get_stats(user_id).to_dict()


# ========================================
# Session Endpoints
# ========================================


@router.post("/sessions", summary="Start a study session")
def start_session(
    body: SessionStart,
    service: FlashcardService = Depends(get_flashcard_service),
) -> dict[str, str]:
    return {"session_id": service.start_session(body.user_id, body.focus_areas)}


@router.post(
    "/sessions/{session_id}/complete",
    response_model=SessionSummaryResponse,
    summary="Complete a study session",
)
def complete_session(
    session_id: str,
    service: FlashcardService = Depends(get_flashcard_service),
) -> SessionSummaryResponse:
    summary = service.complete_session(session_id)
    return SessionSummaryResponse(
        session_id=summary.session_id,
        cards_studied=summary.cards_studied,
        correct_count=summary.correct_count,
        incorrect_count=summary.incorrect_count,
        duration_seconds=summary.duration_seconds,
        accuracy=summary.accuracy,
    )
