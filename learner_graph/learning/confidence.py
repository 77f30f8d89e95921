"""
Confidence Divergence Tracker.

Compares what the learner believes about themselves with what the engine
believes about them. A learner who reports high confidence on a concept the
engine rates as weak is overconfident; the reverse is underconfident.
"""

from __future__ import annotations

from loguru import logger

from learner_graph.core.models import KnowledgeNode, LearnerProfile


class ConfidenceTracker:
    """Maintains node confidence and the profile's over/under-confidence lists."""

    def __init__(self, threshold: float = 0.2):
        self.threshold = threshold

    def update(self, profile: LearnerProfile, node: KnowledgeNode) -> float:
        """
        Recompute confidence for a node and refresh the profile aggregates.

        Returns:
            The node's divergence |student_confidence - mastery|
        """
        divergence = node.divergence
        node.confidence = 1.0 - divergence

        name = node.concept_name
        if node.student_confidence > node.mastery + self.threshold:
            if name not in profile.overconfident_topics:
                profile.overconfident_topics.append(name)
            profile.underconfident_topics = [t for t in profile.underconfident_topics if t != name]
            logger.debug(f"{node.concept_id} overconfident (divergence {divergence:.2f})")
        elif node.mastery > node.student_confidence + self.threshold:
            if name not in profile.underconfident_topics:
                profile.underconfident_topics.append(name)
            profile.overconfident_topics = [t for t in profile.overconfident_topics if t != name]
            logger.debug(f"{node.concept_id} underconfident (divergence {divergence:.2f})")
        else:
            profile.overconfident_topics = [t for t in profile.overconfident_topics if t != name]
            profile.underconfident_topics = [t for t in profile.underconfident_topics if t != name]

        profile.confidence_divergence = self.mean_divergence(profile)
        return divergence

    @staticmethod
    def mean_divergence(profile: LearnerProfile) -> float:
        """Mean |student_confidence - mastery| across all nodes (0 when empty)."""
        nodes = profile.nodes
        if not nodes:
            return 0.0
        return sum(n.divergence for n in nodes) / len(nodes)
