"""Knowledge gap analysis: candidate parsing, scoring, ranking and storage."""

from studynotes.gaps.gap_service import (
    GapAnalysisService,
    GapAnalyzer,
    gap_id,
    parse_gap_candidates,
)

__all__ = [
    "GapAnalysisService",
    "GapAnalyzer",
    "gap_id",
    "parse_gap_candidates",
]
