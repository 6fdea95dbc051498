"""
Knowledge gap model and priority scoring.

Priority = (1 - user_mastery) + boost(gap_type), capped at 1.0.

Gap records arrive from a text-analysis producer (typically an LLM) and are
scored once, before persistence. Producers are noisy, so the scorer clamps
and defaults instead of validating.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Union

from studynotes.core.numeric import clamp_unit, coerce_float

DEFAULT_GAP_MASTERY = 0.5


class GapType(str, Enum):
    """Closed set of diagnosed gap kinds."""

    PREREQUISITE = "prerequisite"
    REINFORCEMENT = "reinforcement"
    CONNECTION = "connection"
    GENERAL = "general"

    @classmethod
    def parse(cls, value: Any) -> GapType:
        """Parse a producer value; missing or unknown tags become GENERAL."""
        if isinstance(value, GapType):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.GENERAL

    @property
    def boost(self) -> float:
        return GAP_TYPE_BOOST[self]


GAP_TYPE_BOOST = {
    GapType.PREREQUISITE: 0.3,
    GapType.REINFORCEMENT: 0.2,
    GapType.CONNECTION: 0.0,
    GapType.GENERAL: 0.0,
}


class GapStatus(str, Enum):
    IDENTIFIED = "identified"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class KnowledgeGap:
    """
    One diagnosed weakness for a learner.

    priority_score is derived by score_priority and never taken from the
    producer.
    """

    concept: str
    gap_type: GapType = GapType.GENERAL
    user_mastery: float = DEFAULT_GAP_MASTERY
    priority_score: float = 0.0

    id: str | None = None
    note_id: str | None = None
    user_id: str | None = None
    missing_prerequisite: str | None = None
    reinforcement_strategy: str = ""
    resources: list[str] = field(default_factory=list)
    status: GapStatus = GapStatus.IDENTIFIED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "note_id": self.note_id,
            "user_id": self.user_id,
            "concept": self.concept,
            "gap_type": self.gap_type.value,
            "missing_prerequisite": self.missing_prerequisite,
            "reinforcement_strategy": self.reinforcement_strategy,
            "user_mastery": self.user_mastery,
            "priority_score": self.priority_score,
            "status": self.status.value,
            "resources": list(self.resources),
        }


GapLike = Union[KnowledgeGap, Mapping[str, Any]]


def _field(gap: GapLike, *names: str) -> Any:
    if isinstance(gap, KnowledgeGap):
        return getattr(gap, names[0])
    for name in names:
        if name in gap:
            return gap[name]
    return None


def normalize_mastery(value: Any) -> float:
    """Mastery in [0, 1]; missing or non-numeric values become 0.5."""
    return clamp_unit(coerce_float(value, DEFAULT_GAP_MASTERY))


def score_priority(gap: GapLike) -> float:
    """
    Compute the remediation priority of a gap.

    Args:
        gap: KnowledgeGap or mapping with gap_type/gapType and
            user_mastery/userMastery

    Returns:
        Score in [0, 1]; lower mastery and prerequisite gaps rank higher
    """
    gap_type = GapType.parse(_field(gap, "gap_type", "gapType"))
    mastery = normalize_mastery(_field(gap, "user_mastery", "userMastery"))
    return min(1.0, (1.0 - mastery) + gap_type.boost)


def rank_gaps(gaps: Iterable[KnowledgeGap], limit: int | None = None) -> list[KnowledgeGap]:
    """
    Score gaps and order them by descending priority.

    Ties keep their input order. Returns new KnowledgeGap objects.
    """
    scored = [
        replace(
            gap,
            user_mastery=normalize_mastery(gap.user_mastery),
            priority_score=score_priority(gap),
        )
        for gap in gaps
    ]
    scored.sort(key=lambda g: g.priority_score, reverse=True)
    if limit is not None:
        return scored[: max(0, limit)]
    return scored
