"""Integration tests for applying answer evaluations to stored mastery."""

import pytest

from studynotes.core.mastery import ConceptMasteryState
from studynotes.db.repositories import MasteryRepository
from studynotes.study.answer_evaluation import (
    AiDerived,
    AnswerReviewService,
    HeuristicFallback,
    PracticeQuestion,
)

pytestmark = pytest.mark.integration

QUESTIONS = [
    PracticeQuestion(id="q1", question="?", answer="a", connects=["c1", "c2"]),
    PracticeQuestion(id="q2", question="?", connects=[]),
]


def test_nudges_every_connected_concept(db_session):
    repo = MasteryRepository(db_session)
    repo.save("u1", ConceptMasteryState(concept_id="c1", mastery_level=0.8, interval_days=6))
    service = AnswerReviewService(db_session)

    written = service.apply_to_mastery("u1", [AiDerived("q1", True, "ok")], QUESTIONS)

    assert written == 2
    c1 = repo.get("u1", "c1")
    assert c1.mastery_level == pytest.approx(0.9)
    assert c1.interval_days == 6
    assert repo.get("u1", "c2").mastery_level == pytest.approx(0.6)


def test_unverifiable_results_are_skipped(db_session):
    service = AnswerReviewService(db_session)
    evaluation = HeuristicFallback("q1", False, "no reference", verifiable=False)

    assert service.apply_to_mastery("u1", [evaluation], QUESTIONS) == 0
    assert MasteryRepository(db_session).get("u1", "c1") is None


def test_questions_without_concepts_change_nothing(db_session):
    service = AnswerReviewService(db_session)
    assert service.apply_to_mastery("u1", [AiDerived("q2", True, "ok")], QUESTIONS) == 0
