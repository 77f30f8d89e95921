"""
Core Module - Shared domain models.

Components:
- models: LearnerProfile, KnowledgeNode, Misconception and update events
- mastery: Bayesian Knowledge Tracing and mastery bands
- exceptions: Error hierarchy rooted at KnowledgeGraphError

The learning/ and analytics/ packages import from here rather than
redefining shared concepts.
"""

from learner_graph.core.exceptions import (
    InvalidInteractionError,
    InvalidTransitionError,
    KnowledgeGraphError,
    SnapshotError,
)
from learner_graph.core.mastery import BKTParams, MasteryBand, bayesian_update
from learner_graph.core.models import (
    BloomsLevel,
    CurriculumReference,
    KnowledgeNode,
    LearnerProfile,
    Misconception,
    MisconceptionOccurrence,
    MisconceptionStatus,
    UpdateEvent,
    UpdateType,
)

__all__ = [
    # Models
    "BloomsLevel",
    "CurriculumReference",
    "KnowledgeNode",
    "LearnerProfile",
    "Misconception",
    "MisconceptionOccurrence",
    "MisconceptionStatus",
    "UpdateEvent",
    "UpdateType",
    # Mastery
    "BKTParams",
    "MasteryBand",
    "bayesian_update",
    # Errors
    "InvalidInteractionError",
    "InvalidTransitionError",
    "KnowledgeGraphError",
    "SnapshotError",
]
