"""Exceptions raised by the learner knowledge graph."""

from __future__ import annotations


class KnowledgeGraphError(Exception):
    """Base class for learner-graph errors."""


class InvalidInteractionError(KnowledgeGraphError, ValueError):
    """Raised when an interaction cannot be attributed to a concept."""


class InvalidTransitionError(KnowledgeGraphError):
    """Raised when a misconception is moved out of a state that does not allow it."""

    def __init__(self, misconception_id: str, status: str, action: str):
        self.misconception_id = misconception_id
        self.status = status
        self.action = action
        super().__init__(f"Cannot {action} misconception {misconception_id} in status '{status}'")


class SnapshotError(KnowledgeGraphError):
    """Raised by the strict loader when a persisted snapshot is unusable."""
