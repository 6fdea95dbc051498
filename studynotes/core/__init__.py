"""
Core Module - Pure scheduling and scoring logic.

Components:
- mastery: ConceptMasteryState, ReviewResponse, MasteryLevel
- scheduling: SM-2 mastery update engine
- gaps: KnowledgeGap and priority scoring
- numeric: clamping, rounding and date helpers

Nothing in this package performs I/O. Services in studynotes.study and
studynotes.gaps wrap it with persistence.
"""

from studynotes.core.gaps import (
    GapStatus,
    GapType,
    KnowledgeGap,
    rank_gaps,
    score_priority,
)
from studynotes.core.mastery import (
    ConceptMasteryState,
    MasteryLevel,
    ReviewResponse,
    quality_from_rating,
)
from studynotes.core.scheduling import (
    MasteryScheduler,
    SchedulingPolicy,
    is_due,
    nudge_mastery,
    update_mastery,
)

__all__ = [
    # Mastery
    "ConceptMasteryState",
    "MasteryLevel",
    "ReviewResponse",
    "quality_from_rating",
    # Scheduling
    "MasteryScheduler",
    "SchedulingPolicy",
    "is_due",
    "nudge_mastery",
    "update_mastery",
    # Gaps
    "GapStatus",
    "GapType",
    "KnowledgeGap",
    "rank_gaps",
    "score_priority",
]
