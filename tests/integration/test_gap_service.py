"""
Integration tests for GapAnalysisService against an in-memory database.
"""

import pytest

from studynotes.core.gaps import GapType
from studynotes.core.mastery import ConceptMasteryState
from studynotes.db.repositories import MasteryRepository
from studynotes.exceptions import StudyNotesError
from studynotes.gaps.gap_service import GapAnalysisService

pytestmark = pytest.mark.integration

CONCEPTS = {"Photosynthesis": "c-photo", "Chlorophyll": "c-chloro", "Cellular respiration": "c-resp"}


class StubAnalyzer:
    def __init__(self, response):
        self.response = response
        self.seen = None

    def analyze(self, note_content, concepts):
        self.seen = concepts
        return self.response


class TestBuildGaps:
    def test_profile_mastery_wins(self, db_session, sample_gap_candidates):
        service = GapAnalysisService(db_session)

        gaps = service.build_gaps("n1", "u1", sample_gap_candidates, CONCEPTS, {"c-photo": 0.9})

        photo = gaps[0]
        assert photo.id == "gap_n1_c-photo"
        assert photo.user_mastery == pytest.approx(0.9)
        assert photo.priority_score == pytest.approx(0.3)
        assert photo.reinforcement_strategy == (
            "Confuses light and dark reactions. Strategy: Draw the Calvin cycle from memory"
        )

    def test_missing_prerequisite_only_for_prerequisite_gaps(self, db_session):
        service = GapAnalysisService(db_session)
        candidates = [
            {"concept": "A", "gap_type": "prerequisite", "missing_prerequisite": "Z"},
            {"concept": "B", "gap_type": "general", "missing_prerequisite": "Z"},
        ]

        a, b = service.build_gaps("n1", "u1", candidates)

        assert a.missing_prerequisite == "Z"
        assert b.missing_prerequisite is None
        assert a.user_mastery == pytest.approx(0.5)


class TestSaveAndList:
    def test_ranked_and_stored(self, db_session, sample_gap_candidates):
        service = GapAnalysisService(db_session)

        saved = service.save_gaps("n1", "u1", sample_gap_candidates, CONCEPTS)
        listed = service.list_gaps("n1")

        assert [g.concept for g in saved] == ["Chlorophyll", "Photosynthesis", "Cellular respiration"]
        assert [g.concept for g in listed] == [g.concept for g in saved]
        assert listed[0].gap_type is GapType.PREREQUISITE
        assert listed[0].priority_score == pytest.approx(1.0)

    def test_uses_stored_mastery(self, db_session, sample_gap_candidates):
        MasteryRepository(db_session).save("u1", ConceptMasteryState(concept_id="c-resp", mastery_level=0.0))
        service = GapAnalysisService(db_session)

        saved = service.save_gaps("n1", "u1", sample_gap_candidates, CONCEPTS)

        resp = next(g for g in saved if g.concept == "Cellular respiration")
        assert resp.priority_score == pytest.approx(1.0)

    def test_top_n(self, db_session, sample_gap_candidates):
        service = GapAnalysisService(db_session, top_n=2)
        assert len(service.save_gaps("n1", "u1", sample_gap_candidates, CONCEPTS)) == 2
        assert len(service.list_gaps("n1")) == 2

    def test_rerun_updates_in_place(self, db_session, sample_gap_candidates):
        service = GapAnalysisService(db_session)
        service.save_gaps("n1", "u1", sample_gap_candidates, CONCEPTS)
        service.save_gaps("n1", "u1", sample_gap_candidates, CONCEPTS)
        assert len(service.list_gaps("n1", "u1")) == 3


class TestAnalyzeNote:
    def test_with_analyzer(self, db_session):
        analyzer = StubAnalyzer('```json\n[{"concept": "Chlorophyll", "gap_type": "reinforcement"}]\n```')
        service = GapAnalysisService(db_session, analyzer=analyzer)

        gaps = service.analyze_note("n1", "u1", "Plants make sugar.", CONCEPTS)

        assert [g.concept for g in gaps] == ["Chlorophyll"]
        assert {c["id"] for c in analyzer.seen} == set(CONCEPTS.values())

    def test_without_concepts(self, db_session):
        service = GapAnalysisService(db_session, analyzer=StubAnalyzer([]))
        assert service.analyze_note("n1", "u1", "text", {}) == []

    def test_without_analyzer(self, db_session):
        with pytest.raises(StudyNotesError):
            GapAnalysisService(db_session).analyze_note("n1", "u1", "text", CONCEPTS)


class TestDuplicateConcepts:
    CANDIDATES = [
        {"concept": "Mitosis", "gap_type": "reinforcement"},
        {"concept": "Mitosis", "gap_type": "prerequisite"},
    ]

    def test_highest_priority_entry_kept(self, db_session):
        service = GapAnalysisService(db_session)

        saved = service.save_gaps("n1", "u1", self.CANDIDATES, {"Mitosis": "c1"})

        assert len(saved) == 1
        assert saved[0].gap_type is GapType.PREREQUISITE
        [stored] = service.list_gaps("n1")
        assert stored.id == "gap_n1_c1"
        assert stored.priority_score == pytest.approx(0.8)

    def test_duplicates_do_not_use_up_top_n(self, db_session):
        service = GapAnalysisService(db_session, top_n=2)
        candidates = self.CANDIDATES + [{"concept": "Meiosis", "gap_type": "general"}]

        saved = service.save_gaps("n1", "u1", candidates, {"Mitosis": "c1", "Meiosis": "c2"})

        assert [g.concept for g in saved] == ["Mitosis", "Meiosis"]

    def test_repository_merges_repeated_ids(self, db_session):
        from studynotes.core.gaps import KnowledgeGap
        from studynotes.db.repositories import GapRepository

        gaps = [
            KnowledgeGap(id="gap_n1_c1", note_id="n1", user_id="u1", concept="Mitosis", priority_score=0.4),
            KnowledgeGap(id="gap_n1_c1", note_id="n1", user_id="u1", concept="Mitosis", priority_score=0.9),
        ]

        GapRepository(db_session).upsert_many(gaps)

        [stored] = GapRepository(db_session).list_for_note("n1")
        assert stored.priority_score == pytest.approx(0.9)
