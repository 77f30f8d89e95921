"""
Learner Knowledge Graph - Data Model.

One LearnerProfile per learner, owning one KnowledgeNode per concept the
learner has touched. Each node owns its misconceptions; the profile-level
misconception lists hold references to those same objects.

Design:
- Plain dataclasses with constructor-time range checks
- MisconceptionStatus is an explicit lifecycle enum with transition methods
- All timestamps are timezone-aware UTC
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from learner_graph.core.exceptions import InvalidInteractionError, InvalidTransitionError


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def clamp_unit(value: float) -> float:
    """Clamp a probability-like value into [0, 1]."""
    return max(0.0, min(1.0, float(value)))


def new_id() -> str:
    return uuid.uuid4().hex


# ============================================================================
# Enums
# ============================================================================


class MisconceptionStatus(str, Enum):
    """
    Lifecycle of a detected misconception.

    ACTIVE -> RESOLVING on a correct answer, RESOLVING -> RESOLVED on the
    next one. A matching wrong answer while RESOLVING drops it back to ACTIVE.
    RESOLVED is terminal.
    """

    ACTIVE = "active"
    RESOLVING = "resolving"
    RESOLVED = "resolved"


class BloomsLevel(str, Enum):
    """Revised Bloom's Taxonomy cognitive level of a concept."""

    REMEMBER = "remember"
    UNDERSTAND = "understand"
    APPLY = "apply"
    ANALYZE = "analyze"
    EVALUATE = "evaluate"
    CREATE = "create"


class UpdateType(str, Enum):
    """Kinds of change reported by record_interaction."""

    CONCEPT_ENCOUNTERED = "concept_encountered"
    MASTERY_UPDATE = "mastery_update"
    MISCONCEPTION_DETECTED = "misconception_detected"
    MISCONCEPTION_RESOLVED = "misconception_resolved"
    CONFIDENCE_UPDATE = "confidence_update"
    REVIEW_SCHEDULED = "review_scheduled"


# ============================================================================
# Misconceptions
# ============================================================================


@dataclass
class MisconceptionOccurrence:
    """A single wrong answer attributed to a misconception."""

    session_id: str
    timestamp: datetime
    student_answer: str
    expected_answer: str
    context: str  # Concept name the question was about
    mode: str = ""  # Learning mode the answer was given in

    def __post_init__(self):
        self.timestamp = ensure_utc(self.timestamp)


@dataclass
class Misconception:
    """
    A recurring wrong answer pattern within one knowledge node.

    Occurrences are append-only. The record is never deleted; it only moves
    through MisconceptionStatus.
    """

    pattern: str
    correct_understanding: str
    name: str = ""
    description: str = ""
    occurrences: list[MisconceptionOccurrence] = field(default_factory=list)
    status: MisconceptionStatus = MisconceptionStatus.ACTIVE
    first_detected: datetime = field(default_factory=utc_now)
    last_detected: datetime = field(default_factory=utc_now)
    resolution_attempts: int = 0
    resolved_at: datetime | None = None
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        self.status = MisconceptionStatus(self.status)
        self.first_detected = ensure_utc(self.first_detected)
        self.last_detected = ensure_utc(self.last_detected)
        if self.resolved_at is not None:
            self.resolved_at = ensure_utc(self.resolved_at)
        self.resolution_attempts = max(0, self.resolution_attempts)

    @property
    def is_open(self) -> bool:
        """True while the misconception can still match new errors."""
        return self.status is not MisconceptionStatus.RESOLVED

    @property
    def occurrence_count(self) -> int:
        return len(self.occurrences)

    def record_occurrence(self, occurrence: MisconceptionOccurrence, now: datetime) -> None:
        """
        Attach a matching wrong answer.

        A misconception that was RESOLVING regresses to ACTIVE and counts a
        failed resolution attempt.
        """
        if self.status is MisconceptionStatus.RESOLVED:
            raise InvalidTransitionError(self.id, self.status.value, "record an occurrence on")

        self.occurrences.append(occurrence)
        self.last_detected = now
        if self.status is MisconceptionStatus.RESOLVING:
            self.status = MisconceptionStatus.ACTIVE
            self.resolution_attempts += 1

    def advance(self, now: datetime) -> MisconceptionStatus:
        """
        Move one step towards resolution after a correct answer.

        Returns:
            The new status
        """
        if self.status is MisconceptionStatus.ACTIVE:
            self.status = MisconceptionStatus.RESOLVING
        elif self.status is MisconceptionStatus.RESOLVING:
            self.status = MisconceptionStatus.RESOLVED
            self.resolved_at = now
        else:
            raise InvalidTransitionError(self.id, self.status.value, "advance")
        return self.status


# ============================================================================
# Knowledge Nodes
# ============================================================================


@dataclass
class CurriculumReference:
    """Where a concept sits in an exam board's curriculum."""

    exam_board: str  # CIE, KNEC, IB, ...
    subject: str
    unit: str
    topic: str
    learning_objective: str
    paper_number: str | None = None
    question_style: str | None = None


@dataclass
class KnowledgeNode:
    """
    Everything known about one learner's grasp of one concept.

    Attributes:
        mastery: Belief (0-1) that the learner has mastered the concept
        confidence: Engine's confidence in its own mastery estimate (0-1)
        student_confidence: Learner's self-reported confidence (0-1)
        ease_factor: SM-2 ease, never below 1.3
        interval: Days between the last review and the next
    """

    concept_id: str
    concept_name: str = ""
    subject: str = ""
    topic: str = ""

    # Mastery tracking
    mastery: float = 0.1
    confidence: float = 0.1
    student_confidence: float = 0.5

    # Spaced repetition
    ease_factor: float = 2.5
    interval: int = 1
    review_count: int = 0
    last_reviewed: datetime | None = None
    next_review_date: datetime | None = None

    misconceptions: list[Misconception] = field(default_factory=list)

    # Curriculum alignment
    curriculum_refs: list[CurriculumReference] = field(default_factory=list)
    blooms_level: BloomsLevel = BloomsLevel.UNDERSTAND

    # History
    interaction_count: int = 0
    first_encountered: datetime = field(default_factory=utc_now)
    last_updated: datetime = field(default_factory=utc_now)

    # Connected concepts (concept ids)
    prerequisites: list[str] = field(default_factory=list)
    dependents: list[str] = field(default_factory=list)
    related_concepts: list[str] = field(default_factory=list)

    id: str = field(default_factory=new_id)

    MIN_EASE = 1.3

    def __post_init__(self):
        if not self.concept_id:
            raise InvalidInteractionError("concept_id must be a non-empty string")

        self.mastery = clamp_unit(self.mastery)
        self.confidence = clamp_unit(self.confidence)
        self.student_confidence = clamp_unit(self.student_confidence)
        self.ease_factor = max(self.MIN_EASE, float(self.ease_factor))
        self.interval = max(0, int(self.interval))
        self.review_count = max(0, int(self.review_count))
        self.interaction_count = max(0, int(self.interaction_count))
        self.blooms_level = BloomsLevel(self.blooms_level)

        self.first_encountered = ensure_utc(self.first_encountered)
        self.last_updated = ensure_utc(self.last_updated)
        if self.last_reviewed is not None:
            self.last_reviewed = ensure_utc(self.last_reviewed)
        if self.next_review_date is not None:
            self.next_review_date = ensure_utc(self.next_review_date)

    @property
    def divergence(self) -> float:
        """Gap between self-reported confidence and estimated mastery."""
        return abs(self.student_confidence - self.mastery)

    @property
    def active_misconceptions(self) -> list[Misconception]:
        return [m for m in self.misconceptions if m.status is MisconceptionStatus.ACTIVE]

    def is_due(self, now: datetime) -> bool:
        """Check if this concept is due for review."""
        return self.next_review_date is not None and self.next_review_date <= now


# ============================================================================
# Learner Profile
# ============================================================================


@dataclass
class LearnerProfile:
    """
    Persistent knowledge model for a single learner.

    Rolled-up counters and confidence lists are maintained by the engine and
    must not be edited directly.
    """

    user_id: str
    knowledge_nodes: dict[str, KnowledgeNode] = field(default_factory=dict)

    total_concepts_mastered: int = 0  # mastery >= 0.8
    total_concepts_learning: int = 0  # 0.3 <= mastery < 0.8
    total_concepts_struggling: int = 0  # mastery < 0.3
    overall_mastery: float = 0.0

    active_misconceptions: list[Misconception] = field(default_factory=list)
    resolved_misconceptions: list[Misconception] = field(default_factory=list)

    confidence_divergence: float = 0.0
    overconfident_topics: list[str] = field(default_factory=list)  # Learner confident, engine not
    underconfident_topics: list[str] = field(default_factory=list)  # Engine confident, learner not

    last_updated: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        self.last_updated = ensure_utc(self.last_updated)

    @property
    def nodes(self) -> list[KnowledgeNode]:
        return list(self.knowledge_nodes.values())

    def get_node(self, concept_id: str) -> KnowledgeNode | None:
        return self.knowledge_nodes.get(concept_id)


# ============================================================================
# Update Events
# ============================================================================


@dataclass
class UpdateEvent:
    """One observable change produced by an interaction."""

    type: UpdateType
    node_id: str  # concept id of the affected node
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "node_id": self.node_id,
            "data": {
                key: value.isoformat() if isinstance(value, datetime) else value
                for key, value in self.data.items()
            },
            "timestamp": self.timestamp.isoformat(),
        }
