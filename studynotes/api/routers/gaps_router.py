"""
Knowledge gap router.

Pure priority scoring plus storage of ranked gaps per note.
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from studynotes.api.dependencies import get_gap_service
from studynotes.core.gaps import KnowledgeGap, score_priority
from studynotes.gaps.gap_service import GapAnalysisService, parse_gap_candidates

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class GapCandidate(BaseModel):
    """Raw gap as emitted by a producer. Loosely typed: the scorer clamps values instead of rejecting them."""

    concept: str = ""
    gap_type: Any = None
    user_mastery: Any = None
    explanation: str | None = None
    reinforcement_strategy: str | None = None
    missing_prerequisite: str | None = None
    resources: List[str] = Field(default_factory=list)


class ScoreRequest(BaseModel):
    gaps: List[GapCandidate]


class NoteGapsRequest(BaseModel):
    user_id: str
    concepts: Dict[str, str] = Field(default_factory=dict, description="concept name -> concept id")
    candidates: List[GapCandidate]


class GapOut(BaseModel):
    id: str | None
    note_id: str | None
    user_id: str | None
    concept: str
    gap_type: str
    missing_prerequisite: str | None
    reinforcement_strategy: str
    user_mastery: float
    priority_score: float
    status: str
    resources: List[str]

    @classmethod
    def from_gap(cls, gap: KnowledgeGap) -> GapOut:
        return cls(**gap.to_dict())


# ========================================
# Endpoints
# ========================================


@router.post("/score", summary="Score gap candidates")
def score_gaps(body: ScoreRequest) -> dict[str, List[float]]:
    """Priority score per candidate, in input order. Nothing is stored."""
    return {"scores": [score_priority(g.model_dump()) for g in body.gaps]}


@router.post("/notes/{note_id}", response_model=List[GapOut], summary="Store ranked gaps for a note")
def save_note_gaps(
    note_id: str,
    body: NoteGapsRequest,
    service: GapAnalysisService = Depends(get_gap_service),
) -> List[GapOut]:
    """Score candidates against the learner's mastery, keep the top N, store them."""
    candidates = parse_gap_candidates([c.model_dump() for c in body.candidates])
    gaps = service.save_gaps(note_id, body.user_id, candidates, body.concepts)
    return [GapOut.from_gap(g) for g in gaps]


@router.get("/notes/{note_id}", response_model=List[GapOut], summary="List gaps for a note")
def list_note_gaps(
    note_id: str,
    user_id: str | None = None,
    service: GapAnalysisService = Depends(get_gap_service),
) -> List[GapOut]:
    return [GapOut.from_gap(g) for g in service.list_gaps(note_id, user_id)]
