"""
Core Mastery Module.

Canonical representation of a learner's knowledge of one concept.

Design:
- MasteryLevel: Enum for categorizing mastery scores
- ConceptMasteryState: Dataclass for the full scheduling state of a concept
- ReviewResponse: Ephemeral input to the scheduler
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

DEFAULT_EASE_FACTOR = 2.5
MINIMUM_EASE_FACTOR = 1.3

# Three-button flashcard UI
RATING_QUALITY = {
    "hard": 1,
    "medium": 3,
    "easy": 5,
}


class MasteryLevel(str, Enum):
    """
    Mastery level categorization.

    Aligned with learning science research on skill acquisition stages.
    """

    NOT_STARTED = "not_started"  # 0%
    NOVICE = "novice"  # 1-39%
    DEVELOPING = "developing"  # 40-69%
    PROFICIENT = "proficient"  # 70-89%
    MASTERED = "mastered"  # 90-100%

    @classmethod
    def from_score(cls, score: float) -> MasteryLevel:
        """
        Convert a 0-1 mastery score to a level.

        Args:
            score: Mastery score between 0 and 1

        Returns:
            Corresponding MasteryLevel
        """
        if score <= 0:
            return cls.NOT_STARTED
        elif score < 0.4:
            return cls.NOVICE
        elif score < 0.7:
            return cls.DEVELOPING
        elif score < 0.9:
            return cls.PROFICIENT
        else:
            return cls.MASTERED

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.value.replace("_", " ").title()

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            MasteryLevel.NOT_STARTED: "dim",
            MasteryLevel.NOVICE: "red",
            MasteryLevel.DEVELOPING: "yellow",
            MasteryLevel.PROFICIENT: "cyan",
            MasteryLevel.MASTERED: "green",
        }[self]


@dataclass(frozen=True)
class ConceptMasteryState:
    """
    Scheduling and mastery state for one learner and one concept.

    Created on first exposure and replaced (never mutated) after every
    recorded response.
    """

    concept_id: str | None = None
    concept_name: str | None = None

    mastery_level: float = 0.0  # 0 = no knowledge, 1 = mastered
    repetition_count: int = 0  # Successful reviews in the current streak
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval_days: int = 1
    due_date: date | None = None

    last_reviewed: date | None = None
    lapse_count: int = 0

    @property
    def level(self) -> MasteryLevel:
        return MasteryLevel.from_score(self.mastery_level)

    @property
    def is_new(self) -> bool:
        """Never reviewed."""
        return self.last_reviewed is None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "concept_id": self.concept_id,
            "concept_name": self.concept_name,
            "mastery_level": self.mastery_level,
            "repetition_count": self.repetition_count,
            "ease_factor": self.ease_factor,
            "interval_days": self.interval_days,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "last_reviewed": self.last_reviewed.isoformat() if self.last_reviewed else None,
            "lapse_count": self.lapse_count,
            "level": self.level.value,
        }


@dataclass(frozen=True)
class ReviewResponse:
    """A single graded recall attempt: quality 0 (blackout) to 5 (perfect)."""

    quality: int
    response_time_ms: int | None = None

    @property
    def passed(self) -> bool:
        return self.quality >= 3


def quality_from_rating(rating: str) -> int:
    """
    Convert a flashcard button to a response quality.

    Args:
        rating: "hard", "medium" or "easy"

    Returns:
        Quality 1, 3 or 5 (3 for unknown ratings)
    """
    return RATING_QUALITY.get((rating or "").strip().lower(), 3)
