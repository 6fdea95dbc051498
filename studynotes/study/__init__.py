"""
Study Module.

Provides services for:
- Flashcard review (SM-2 rescheduling, due queue, statistics, sessions)
- Practice-question answer evaluation with heuristic fallback
"""

from studynotes.study.answer_evaluation import (
    AiDerived,
    AnswerEvaluation,
    AnswerReviewService,
    HeuristicFallback,
    PracticeQuestion,
    SubmittedAnswer,
)
from studynotes.study.flashcard_service import FlashcardService, FlashcardStats, SessionSummary

__all__ = [
    "AiDerived",
    "AnswerEvaluation",
    "AnswerReviewService",
    "FlashcardService",
    "FlashcardStats",
    "HeuristicFallback",
    "PracticeQuestion",
    "SessionSummary",
    "SubmittedAnswer",
]
