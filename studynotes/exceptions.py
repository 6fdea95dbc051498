"""
Exception hierarchy for the service layer.

The core (scheduling, gap scoring) never raises for bad input; these are
raised by services around it.
"""

from __future__ import annotations


class StudyNotesError(Exception):
    """Base class for service-layer errors."""


class NotFoundError(StudyNotesError):
    """A referenced record does not exist."""

    def __init__(self, entity: str, key: str):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class EvaluationUnavailable(StudyNotesError):
    """The answer evaluator could not produce a result; use the fallback."""
