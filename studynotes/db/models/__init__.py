# SQLAlchemy models
from .base import Base
from .gaps import KnowledgeGapRecord
from .mastery import (
    ReviewEvent,
    StudySession,
    UserConceptMastery,
)

__all__ = [
    "Base",
    "KnowledgeGapRecord",
    "ReviewEvent",
    "StudySession",
    "UserConceptMastery",
]
