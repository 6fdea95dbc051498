"""
Answer review router.

Grades practice-question answers and adjusts concept mastery.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from studynotes.api.dependencies import get_answer_review_service
from studynotes.study.answer_evaluation import (
    AnswerReviewService,
    PracticeQuestion,
    SubmittedAnswer,
)

router = APIRouter()


class QuestionIn(BaseModel):
    id: str
    question: str
    answer: str | None = None
    connects: List[str] = Field(default_factory=list)


class AnswerIn(BaseModel):
    question_id: str
    answer_text: str


class AnswerReviewRequest(BaseModel):
    user_id: str
    answers: List[AnswerIn] = Field(min_length=1)
    questions: List[QuestionIn]


class EvaluationOut(BaseModel):
    question_id: str
    is_correct: bool
    feedback: str
    source: str  # "ai_derived" or "heuristic_fallback"
    verifiable: bool


@router.post("/answers", response_model=List[EvaluationOut], summary="Review submitted answers")
def review_answers(
    body: AnswerReviewRequest,
    service: AnswerReviewService = Depends(get_answer_review_service),
) -> List[EvaluationOut]:
    """
    Evaluate answers and nudge mastery of connected concepts.

    Uses the configured evaluator when present, otherwise the heuristic
    fallback.
    """
    questions = [
        PracticeQuestion(id=q.id, question=q.question, answer=q.answer, connects=list(q.connects))
        for q in body.questions
    ]
    answers = [SubmittedAnswer(question_id=a.question_id, answer_text=a.answer_text) for a in body.answers]

    evaluations = service.review(body.user_id, answers, questions)
    return [
        EvaluationOut(
            question_id=e.question_id,
            is_correct=e.is_correct,
            feedback=e.feedback,
            source=e.source.value,
            verifiable=e.verifiable,
        )
        for e in evaluations
    ]
