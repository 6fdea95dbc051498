"""Unit tests for parsing gap-analysis producer output."""

import pytest

from studynotes.gaps.gap_service import gap_id, parse_gap_candidates


class TestParseGapCandidates:
    def test_list_passthrough(self, sample_gap_candidates):
        assert parse_gap_candidates(sample_gap_candidates) == sample_gap_candidates

    def test_fenced_json(self):
        text = 'Here you go:\n```json\n[{"concept": "Osmosis", "gap_type": "general"}]\n```'
        assert parse_gap_candidates(text) == [{"concept": "Osmosis", "gap_type": "general"}]

    def test_wrapped_in_gaps_key(self):
        assert parse_gap_candidates('{"gaps": [{"concept": "Osmosis"}]}') == [{"concept": "Osmosis"}]

    def test_single_object(self):
        assert parse_gap_candidates({"concept": "Osmosis"}) == [{"concept": "Osmosis"}]

    def test_entries_without_concept_dropped(self):
        payload = [{"concept": ""}, {"gap_type": "general"}, "junk", {"concept": "Osmosis"}]
        assert parse_gap_candidates(payload) == [{"concept": "Osmosis"}]

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError):
            parse_gap_candidates("not json at all")

    def test_non_list_payload(self):
        assert parse_gap_candidates(42) == []


class TestGapId:
    def test_known_concept_is_stable(self):
        assert gap_id("n1", "c1") == "gap_n1_c1"

    def test_unknown_concept_gets_random_suffix(self):
        first, second = gap_id("n1", None), gap_id("n1", None)
        assert first.startswith("gap_n1_")
        assert first != second
