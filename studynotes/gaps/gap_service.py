"""
Knowledge gap analysis service.

Takes raw gap candidates from a text-analysis producer, attaches the
learner's stored mastery, scores and ranks them, and persists the top N.

Flow:
    GapAnalyzer (external) -> candidates -> build_gaps -> rank_gaps -> GapRepository
"""

from __future__ import annotations

import json
import re
import secrets
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any, Protocol

from loguru import logger
from sqlalchemy.orm import Session

from studynotes.core.gaps import (
    DEFAULT_GAP_MASTERY,
    GapType,
    KnowledgeGap,
    rank_gaps,
    score_priority,
)
from studynotes.core.numeric import clamp_unit, coerce_float
from studynotes.db.repositories import GapRepository, MasteryRepository
from studynotes.exceptions import StudyNotesError

_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


class GapAnalyzer(Protocol):
    """
    External text-analysis collaborator.

    Returns candidate dicts with at least "concept" and "gap_type"; may
    include "explanation", "reinforcement_strategy" and
    "missing_prerequisite".
    """

    def analyze(self, note_content: str, concepts: list[dict[str, Any]]) -> list[dict[str, Any]]:
        ...


def parse_gap_candidates(payload: Any) -> list[dict[str, Any]]:
    """
    Normalize producer output into a list of candidate dicts.

    Accepts a list, or text that may wrap a JSON array in a Markdown code
    fence. Entries without a concept name are dropped.

    Raises:
        ValueError: Text that is not valid JSON
    """
    if isinstance(payload, str):
        match = _CODE_FENCE.search(payload)
        text = match.group(1) if match else payload.strip()
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Gap candidates are not valid JSON: {e}") from e

    if isinstance(payload, Mapping):
        payload = payload.get("gaps", [payload])
    if not isinstance(payload, list):
        return []

    candidates = []
    for item in payload:
        if not isinstance(item, Mapping):
            continue
        concept = item.get("concept")
        if not isinstance(concept, str) or not concept.strip():
            logger.debug(f"Skipping gap candidate without concept: {item!r}")
            continue
        candidates.append(dict(item))
    return candidates


def gap_id(note_id: str, concept_id: str | None) -> str:
    """Stable id for a (note, concept) gap; random suffix when the concept is unknown."""
    suffix = concept_id if concept_id else secrets.token_hex(4)
    return f"gap_{note_id}_{suffix}"


def _strategy_text(candidate: Mapping[str, Any]) -> str:
    explanation = (candidate.get("explanation") or "").strip()
    strategy = (candidate.get("reinforcement_strategy") or "").strip()
    if explanation and strategy:
        return f"{explanation.rstrip('.')}. Strategy: {strategy}"
    return explanation or strategy


def _first_per_id(gaps: Sequence[KnowledgeGap]) -> list[KnowledgeGap]:
    seen: set[str | None] = set()
    unique = []
    for gap in gaps:
        if gap.id in seen:
            logger.debug(f"Dropping duplicate gap {gap.id} ({gap.gap_type.value})")
            continue
        seen.add(gap.id)
        unique.append(gap)
    return unique


class GapAnalysisService:
    """Scores, ranks and stores knowledge gaps for a note."""

    def __init__(
        self,
        session: Session,
        top_n: int = 5,
        default_mastery: float = DEFAULT_GAP_MASTERY,
        analyzer: GapAnalyzer | None = None,
    ):
        self.session = session
        self.top_n = top_n
        self.default_mastery = default_mastery
        self.analyzer = analyzer
        self.gaps = GapRepository(session)
        self.mastery = MasteryRepository(session)

    def build_gaps(
        self,
        note_id: str,
        user_id: str,
        candidates: Sequence[Mapping[str, Any]],
        concept_ids_by_name: Mapping[str, str] | None = None,
        mastery_by_concept: Mapping[str, float] | None = None,
    ) -> list[KnowledgeGap]:
        """
        Turn candidates into scored KnowledgeGap records.

        Mastery is looked up from the learner's profile by concept id; the
        producer's own mastery value is ignored when the profile has one and
        used only as a fallback.
        """
        concept_ids_by_name = concept_ids_by_name or {}
        mastery_by_concept = mastery_by_concept or {}

        gaps = []
        for candidate in candidates:
            concept = candidate["concept"].strip()
            concept_id = concept_ids_by_name.get(concept)
            gap_type = GapType.parse(candidate.get("gap_type", candidate.get("gapType")))

            if concept_id is not None and concept_id in mastery_by_concept:
                mastery = mastery_by_concept[concept_id]
            else:
                mastery = candidate.get("user_mastery", candidate.get("userMastery"))
            mastery = clamp_unit(coerce_float(mastery, self.default_mastery))

            gap = KnowledgeGap(
                id=gap_id(note_id, concept_id),
                note_id=note_id,
                user_id=user_id,
                concept=concept,
                gap_type=gap_type,
                missing_prerequisite=(
                    candidate.get("missing_prerequisite") if gap_type is GapType.PREREQUISITE else None
                ),
                reinforcement_strategy=_strategy_text(candidate),
                user_mastery=mastery,
                resources=list(candidate.get("resources") or []),
            )
            gaps.append(gap)

        return [replace(gap, priority_score=score_priority(gap)) for gap in gaps]

    def save_gaps(
        self,
        note_id: str,
        user_id: str,
        candidates: Sequence[Mapping[str, Any]],
        concept_ids_by_name: Mapping[str, str] | None = None,
    ) -> list[KnowledgeGap]:
        """
        Build, rank, keep the top N and persist.

        A concept named more than once keeps only its highest-priority gap.
        """
        mastery = self.mastery.mastery_map(user_id)
        gaps = self.build_gaps(note_id, user_id, candidates, concept_ids_by_name, mastery)
        ranked = _first_per_id(rank_gaps(gaps))[: max(0, self.top_n)]
        self.gaps.upsert_many(ranked)
        logger.info(f"Stored {len(ranked)} of {len(gaps)} knowledge gaps for note {note_id}")
        return ranked

    def analyze_note(
        self,
        note_id: str,
        user_id: str,
        note_content: str,
        concept_ids_by_name: Mapping[str, str],
    ) -> list[KnowledgeGap]:
        """
        Run the injected analyzer over a note and store the ranked gaps.

        Raises:
            StudyNotesError: No analyzer configured
        """
        if self.analyzer is None:
            raise StudyNotesError("No gap analyzer configured")
        if not concept_ids_by_name:
            logger.info(f"Note {note_id} has no concepts; skipping gap analysis")
            return []

        mastery = self.mastery.mastery_map(user_id)
        concepts = [
            {"id": cid, "name": name, "mastery_level": mastery.get(cid, self.default_mastery)}
            for name, cid in concept_ids_by_name.items()
        ]
        raw = self.analyzer.analyze(note_content, concepts)
        return self.save_gaps(note_id, user_id, parse_gap_candidates(raw), concept_ids_by_name)

    def list_gaps(self, note_id: str, user_id: str | None = None) -> list[KnowledgeGap]:
        """Stored gaps for a note, highest priority first."""
        return self.gaps.list_for_note(note_id, user_id)
