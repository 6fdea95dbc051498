"""
Practice-question answer evaluation.

Evaluations are a tagged variant:
- AiDerived: produced by an external evaluator (LLM grader)
- HeuristicFallback: degraded mode when no evaluator is available or it
  fails; compares normalized answer text against the reference answer

Verified evaluations adjust the mastery of every concept the question
connects to via the scheduler's nudge.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, Union

from loguru import logger
from sqlalchemy.orm import Session

from studynotes.core.scheduling import MasteryScheduler, SchedulingPolicy
from studynotes.db.repositories import MasteryRepository
from studynotes.exceptions import EvaluationUnavailable

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


class EvaluationSource(str, Enum):
    AI_DERIVED = "ai_derived"
    HEURISTIC_FALLBACK = "heuristic_fallback"


@dataclass(frozen=True)
class PracticeQuestion:
    """A generated question; connects lists the concept ids it exercises."""

    id: str
    question: str
    answer: str | None = None
    connects: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SubmittedAnswer:
    question_id: str
    answer_text: str


@dataclass(frozen=True)
class AiDerived:
    question_id: str
    is_correct: bool
    feedback: str
    source: EvaluationSource = EvaluationSource.AI_DERIVED

    @property
    def verifiable(self) -> bool:
        return True


@dataclass(frozen=True)
class HeuristicFallback:
    question_id: str
    is_correct: bool
    feedback: str
    overlap: float = 0.0
    verifiable: bool = True
    source: EvaluationSource = EvaluationSource.HEURISTIC_FALLBACK


AnswerEvaluation = Union[AiDerived, HeuristicFallback]


class AnswerEvaluator(Protocol):
    """External grader. Raises EvaluationUnavailable when it cannot answer."""

    def evaluate(
        self,
        answers: Sequence[SubmittedAnswer],
        questions: dict[str, PracticeQuestion],
    ) -> list[AiDerived]:
        ...


def normalize_answer(text: str | None) -> str:
    """Case-fold, drop punctuation, collapse whitespace."""
    if not text:
        return ""
    cleaned = _NON_WORD.sub(" ", text.casefold())
    return _WHITESPACE.sub(" ", cleaned).strip()


def token_overlap(expected: str, actual: str) -> float:
    """Share of the expected answer's tokens present in the actual answer."""
    expected_tokens = set(expected.split())
    if not expected_tokens:
        return 0.0
    return len(expected_tokens & set(actual.split())) / len(expected_tokens)


def heuristic_evaluation(
    answer: SubmittedAnswer,
    question: PracticeQuestion | None,
    threshold: float = 0.6,
) -> HeuristicFallback:
    """
    Grade an answer without an evaluator.

    Exact normalized match or token overlap >= threshold counts as correct.
    Without a reference answer the result is unverifiable.
    """
    expected = normalize_answer(question.answer if question else None)
    actual = normalize_answer(answer.answer_text)

    if not expected:
        return HeuristicFallback(
            question_id=answer.question_id,
            is_correct=False,
            feedback="No reference answer available; this answer could not be checked automatically.",
            verifiable=False,
        )
    if not actual:
        return HeuristicFallback(
            question_id=answer.question_id,
            is_correct=False,
            feedback="No answer given.",
        )

    overlap = 1.0 if expected == actual else token_overlap(expected, actual)
    correct = overlap >= threshold
    if correct:
        feedback = "Matches the reference answer."
    else:
        feedback = f"Does not match the reference answer: {question.answer}"
    return HeuristicFallback(
        question_id=answer.question_id,
        is_correct=correct,
        feedback=feedback,
        overlap=overlap,
    )


class AnswerReviewService:
    """Evaluates submitted answers and applies the mastery adjustment."""

    def __init__(
        self,
        session: Session,
        evaluator: AnswerEvaluator | None = None,
        policy: SchedulingPolicy | None = None,
        overlap_threshold: float = 0.6,
    ):
        self.session = session
        self.evaluator = evaluator
        self.scheduler = MasteryScheduler(policy)
        self.overlap_threshold = overlap_threshold
        self.mastery = MasteryRepository(session)

    def evaluate(
        self,
        answers: Sequence[SubmittedAnswer],
        questions: Sequence[PracticeQuestion],
    ) -> list[AnswerEvaluation]:
        """
        Evaluate answers, falling back to the heuristic per missing result.

        The evaluator may return results for a subset of answers; the rest
        are graded heuristically.
        """
        by_id = {q.id: q for q in questions}
        ai_results: dict[str, AiDerived] = {}

        if self.evaluator is not None:
            try:
                ai_results = {r.question_id: r for r in self.evaluator.evaluate(answers, by_id)}
            except EvaluationUnavailable as e:
                logger.warning(f"Answer evaluator unavailable, using heuristic fallback: {e}")

        results: list[AnswerEvaluation] = []
        for answer in answers:
            result = ai_results.get(answer.question_id)
            if result is None:
                result = heuristic_evaluation(
                    answer, by_id.get(answer.question_id), self.overlap_threshold
                )
            results.append(result)
        return results

    def apply_to_mastery(
        self,
        user_id: str,
        evaluations: Sequence[AnswerEvaluation],
        questions: Sequence[PracticeQuestion],
    ) -> int:
        """
        Nudge mastery for concepts linked to each verified evaluation.

        Returns:
            Number of mastery rows written
        """
        by_id = {q.id: q for q in questions}
        written = 0
        for evaluation in evaluations:
            if not evaluation.verifiable:
                continue
            question = by_id.get(evaluation.question_id)
            if question is None or not question.connects:
                continue
            for concept_id in question.connects:
                current = self.mastery.get(user_id, concept_id, for_update=True)
                updated = self.scheduler.nudge(current, evaluation.is_correct, concept_id=concept_id)
                self.mastery.save(user_id, updated)
                written += 1
        logger.info(f"Applied {len(evaluations)} answer evaluations for {user_id} ({written} mastery updates)")
        return written

    def review(
        self,
        user_id: str,
        answers: Sequence[SubmittedAnswer],
        questions: Sequence[PracticeQuestion],
    ) -> list[AnswerEvaluation]:
        """Evaluate and apply in one step."""
        evaluations = self.evaluate(answers, questions)
        self.apply_to_mastery(user_id, evaluations, questions)
        return evaluations
