"""
Profile Snapshot Codec.

Serializes a LearnerProfile to a versioned JSON document and back.

Format rules:
- knowledge_nodes is a list of {"key": concept_id, "value": node} pairs
- every datetime is ISO-8601 with a UTC offset
- profile-level misconception lists store ids; on load they are re-linked to
  the misconception objects owned by the nodes

Pydantic validates the document at the boundary. The recovering loader
(restore_profile) never raises: a corrupted cache must not block tutoring,
so any failure yields a fresh empty profile.
"""

from __future__ import annotations

from datetime import datetime

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from learner_graph.core.exceptions import SnapshotError
from learner_graph.core.models import (
    BloomsLevel,
    CurriculumReference,
    KnowledgeNode,
    LearnerProfile,
    Misconception,
    MisconceptionOccurrence,
    MisconceptionStatus,
)

SNAPSHOT_VERSION = 1


# ========================================
# Snapshot Records
# ========================================


class _Record(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")


class OccurrenceRecord(_Record):
    session_id: str
    timestamp: datetime
    student_answer: str
    expected_answer: str
    context: str
    mode: str = ""


class MisconceptionRecord(_Record):
    id: str
    name: str = ""
    description: str = ""
    pattern: str
    correct_understanding: str
    occurrences: list[OccurrenceRecord] = Field(default_factory=list)
    status: MisconceptionStatus
    first_detected: datetime
    last_detected: datetime
    resolution_attempts: int = 0
    resolved_at: datetime | None = None


class CurriculumReferenceRecord(_Record):
    exam_board: str
    subject: str
    unit: str
    topic: str
    learning_objective: str
    paper_number: str | None = None
    question_style: str | None = None


class NodeRecord(_Record):
    id: str
    concept_id: str = Field(min_length=1)
    concept_name: str
    subject: str
    topic: str
    mastery: float
    confidence: float
    student_confidence: float
    ease_factor: float
    interval: int
    review_count: int
    last_reviewed: datetime | None = None
    next_review_date: datetime | None = None
    misconceptions: list[MisconceptionRecord] = Field(default_factory=list)
    curriculum_refs: list[CurriculumReferenceRecord] = Field(default_factory=list)
    blooms_level: BloomsLevel = BloomsLevel.UNDERSTAND
    interaction_count: int
    first_encountered: datetime
    last_updated: datetime
    prerequisites: list[str] = Field(default_factory=list)
    dependents: list[str] = Field(default_factory=list)
    related_concepts: list[str] = Field(default_factory=list)


class NodeEntry(BaseModel):
    """One concept_id -> node pair."""

    key: str
    value: NodeRecord


class ProfileSnapshot(BaseModel):
    """Top-level persisted document."""

    version: int = SNAPSHOT_VERSION
    user_id: str
    knowledge_nodes: list[NodeEntry] = Field(default_factory=list)
    total_concepts_mastered: int = 0
    total_concepts_learning: int = 0
    total_concepts_struggling: int = 0
    overall_mastery: float = 0.0
    active_misconception_ids: list[str] = Field(default_factory=list)
    resolved_misconception_ids: list[str] = Field(default_factory=list)
    confidence_divergence: float = 0.0
    overconfident_topics: list[str] = Field(default_factory=list)
    underconfident_topics: list[str] = Field(default_factory=list)
    last_updated: datetime


# ========================================
# Profile -> Snapshot
# ========================================


def to_snapshot(profile: LearnerProfile) -> ProfileSnapshot:
    """Build the persisted document for a profile."""
    return ProfileSnapshot(
        user_id=profile.user_id,
        knowledge_nodes=[
            NodeEntry(key=concept_id, value=NodeRecord.model_validate(node))
            for concept_id, node in profile.knowledge_nodes.items()
        ],
        total_concepts_mastered=profile.total_concepts_mastered,
        total_concepts_learning=profile.total_concepts_learning,
        total_concepts_struggling=profile.total_concepts_struggling,
        overall_mastery=profile.overall_mastery,
        active_misconception_ids=[m.id for m in profile.active_misconceptions],
        resolved_misconception_ids=[m.id for m in profile.resolved_misconceptions],
        confidence_divergence=profile.confidence_divergence,
        overconfident_topics=list(profile.overconfident_topics),
        underconfident_topics=list(profile.underconfident_topics),
        last_updated=profile.last_updated,
    )


def dump_profile(profile: LearnerProfile) -> str:
    """Serialize a profile to snapshot JSON."""
    return to_snapshot(profile).model_dump_json()


# ========================================
# Snapshot -> Profile
# ========================================


def _build_misconception(record: MisconceptionRecord) -> Misconception:
    return Misconception(
        id=record.id,
        name=record.name,
        description=record.description,
        pattern=record.pattern,
        correct_understanding=record.correct_understanding,
        occurrences=[MisconceptionOccurrence(**o.model_dump()) for o in record.occurrences],
        status=record.status,
        first_detected=record.first_detected,
        last_detected=record.last_detected,
        resolution_attempts=record.resolution_attempts,
        resolved_at=record.resolved_at,
    )


def _build_node(record: NodeRecord) -> KnowledgeNode:
    fields = record.model_dump(exclude={"misconceptions", "curriculum_refs"})
    return KnowledgeNode(
        **fields,
        misconceptions=[_build_misconception(m) for m in record.misconceptions],
        curriculum_refs=[CurriculumReference(**ref.model_dump()) for ref in record.curriculum_refs],
    )


def from_snapshot(snapshot: ProfileSnapshot) -> LearnerProfile:
    """
    Rebuild a profile from a validated snapshot.

    Raises:
        SnapshotError: On duplicate concept keys or dangling misconception ids
    """
    if snapshot.version > SNAPSHOT_VERSION:
        raise SnapshotError(f"Unsupported snapshot version {snapshot.version}")

    nodes: dict[str, KnowledgeNode] = {}
    for entry in snapshot.knowledge_nodes:
        if entry.key in nodes:
            raise SnapshotError(f"Duplicate concept key '{entry.key}'")
        nodes[entry.key] = _build_node(entry.value)

    owned = {m.id: m for node in nodes.values() for m in node.misconceptions}

    def relink(ids: list[str]) -> list[Misconception]:
        missing = [i for i in ids if i not in owned]
        if missing:
            raise SnapshotError(f"Misconception ids not owned by any node: {missing}")
        return [owned[i] for i in ids]

    return LearnerProfile(
        user_id=snapshot.user_id,
        knowledge_nodes=nodes,
        total_concepts_mastered=snapshot.total_concepts_mastered,
        total_concepts_learning=snapshot.total_concepts_learning,
        total_concepts_struggling=snapshot.total_concepts_struggling,
        overall_mastery=snapshot.overall_mastery,
        active_misconceptions=relink(snapshot.active_misconception_ids),
        resolved_misconceptions=relink(snapshot.resolved_misconception_ids),
        confidence_divergence=snapshot.confidence_divergence,
        overconfident_topics=list(snapshot.overconfident_topics),
        underconfident_topics=list(snapshot.underconfident_topics),
        last_updated=snapshot.last_updated,
    )


def load_snapshot(data: str | bytes) -> LearnerProfile:
    """
    Strictly parse snapshot JSON.

    Raises:
        SnapshotError: If the document is not a valid snapshot
    """
    try:
        snapshot = ProfileSnapshot.model_validate_json(data)
    except ValidationError as e:
        raise SnapshotError(f"Invalid snapshot: {e.error_count()} validation error(s)") from e
    return from_snapshot(snapshot)


def restore_profile(data: str | bytes | None, user_id: str) -> LearnerProfile:
    """
    Parse snapshot JSON, falling back to an empty profile.

    Args:
        data: Snapshot text (None or empty means nothing stored yet)
        user_id: Learner the snapshot is expected to belong to

    Returns:
        The restored profile, or a fresh LearnerProfile(user_id) if the
        snapshot is missing, malformed or belongs to another learner
    """
    if not data:
        return LearnerProfile(user_id=user_id)

    try:
        profile = load_snapshot(data)
    except (SnapshotError, TypeError, ValueError) as e:
        # TypeError/ValueError: values that pass the schema but fail model construction
        logger.warning(f"Discarding snapshot for learner {user_id}: {e}")
        return LearnerProfile(user_id=user_id)

    if user_id and profile.user_id != user_id:
        logger.warning(
            f"Snapshot belongs to learner {profile.user_id}, expected {user_id}; starting fresh"
        )
        return LearnerProfile(user_id=user_id)

    return profile
