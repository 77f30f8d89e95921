"""
Aggregation & Query Layer.

Read-only views derived from a LearnerProfile on demand:
- review_due: concepts whose scheduled review has arrived, most urgent first
- subject_summaries: per-subject mastery bands, strengths and weaknesses
- concept_clusters: subject:topic groups with a suggested learning mode

Nothing here mutates the profile, and nothing is cached.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from learner_graph.core.mastery import MasteryBand
from learner_graph.core.models import KnowledgeNode, LearnerProfile, utc_now


class SuggestedMode(str, Enum):
    """Learning mode suggested for a concept cluster."""

    REVIEW = "REVIEW"  # Mostly mastered - keep it fresh
    PRACTICE = "PRACTICE"  # Nearly there - build fluency
    DEBUG = "DEBUG"  # Active misconceptions to untangle
    LEARN = "LEARN"  # Still new


@dataclass
class SubjectSummary:
    """Mastery rollup for one subject."""

    subject: str
    total_concepts: int
    mastered_concepts: int
    learning_concepts: int
    struggling_concepts: int
    avg_mastery: float
    active_misconceptions: int
    top_strengths: list[str] = field(default_factory=list)
    top_weaknesses: list[str] = field(default_factory=list)
    recommended_focus: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject": self.subject,
            "total_concepts": self.total_concepts,
            "mastered_concepts": self.mastered_concepts,
            "learning_concepts": self.learning_concepts,
            "struggling_concepts": self.struggling_concepts,
            "avg_mastery": self.avg_mastery,
            "active_misconceptions": self.active_misconceptions,
            "top_strengths": self.top_strengths,
            "top_weaknesses": self.top_weaknesses,
            "recommended_focus": self.recommended_focus,
        }


@dataclass
class ConceptCluster:
    """Concepts sharing a subject and topic."""

    id: str  # "subject:topic"
    name: str
    concepts: list[str]  # concept ids
    avg_mastery: float
    common_misconceptions: list[str] = field(default_factory=list)
    suggested_mode: SuggestedMode = SuggestedMode.LEARN

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "concepts": self.concepts,
            "avg_mastery": self.avg_mastery,
            "common_misconceptions": self.common_misconceptions,
            "suggested_mode": self.suggested_mode.value,
        }


def _mean_mastery(nodes: list[KnowledgeNode]) -> float:
    return sum(n.mastery for n in nodes) / len(nodes) if nodes else 0.0


def review_priority(node: KnowledgeNode) -> float:
    """Higher for weaker concepts and for concepts on longer intervals."""
    return (1.0 - node.mastery) * 10 + (node.interval or 1)


def review_due(profile: LearnerProfile, now: datetime | None = None) -> list[KnowledgeNode]:
    """
    Get concepts due for review.

    Args:
        profile: Learner profile to query
        now: Reference time (defaults to UTC now)

    Returns:
        Nodes with next_review_date <= now, highest priority first
    """
    now = now or utc_now()
    due = [n for n in profile.nodes if n.is_due(now)]
    return sorted(due, key=review_priority, reverse=True)


def subject_summaries(
    profile: LearnerProfile,
    top_n: int = 3,
    focus_n: int = 5,
    mastered_threshold: float = 0.8,
    learning_threshold: float = 0.3,
) -> list[SubjectSummary]:
    """
    Summarize mastery per subject.

    Strengths are the strongest mastered concepts, weaknesses and recommended
    focus the weakest struggling ones.
    """
    by_subject: dict[str, list[KnowledgeNode]] = defaultdict(list)
    for node in profile.nodes:
        by_subject[node.subject].append(node)

    summaries = []
    for subject, nodes in by_subject.items():
        bands: dict[MasteryBand, list[KnowledgeNode]] = defaultdict(list)
        for node in nodes:
            band = MasteryBand.from_score(node.mastery, mastered_threshold, learning_threshold)
            bands[band].append(node)

        strongest = sorted(bands[MasteryBand.MASTERED], key=lambda n: n.mastery, reverse=True)
        weakest = sorted(bands[MasteryBand.STRUGGLING], key=lambda n: n.mastery)

        summaries.append(
            SubjectSummary(
                subject=subject,
                total_concepts=len(nodes),
                mastered_concepts=len(bands[MasteryBand.MASTERED]),
                learning_concepts=len(bands[MasteryBand.LEARNING]),
                struggling_concepts=len(bands[MasteryBand.STRUGGLING]),
                avg_mastery=_mean_mastery(nodes),
                active_misconceptions=sum(len(n.active_misconceptions) for n in nodes),
                top_strengths=[n.concept_name for n in strongest[:top_n]],
                top_weaknesses=[n.concept_name for n in weakest[:top_n]],
                recommended_focus=[n.concept_name for n in weakest[:focus_n]],
            )
        )

    return summaries


def suggest_mode(
    avg_mastery: float,
    has_active_misconceptions: bool,
    review_threshold: float = 0.8,
    practice_threshold: float = 0.6,
) -> SuggestedMode:
    """Pick a learning mode for a cluster; mastery outranks misconceptions."""
    if avg_mastery >= review_threshold:
        return SuggestedMode.REVIEW
    elif avg_mastery >= practice_threshold:
        return SuggestedMode.PRACTICE
    elif has_active_misconceptions:
        return SuggestedMode.DEBUG
    return SuggestedMode.LEARN


def concept_clusters(
    profile: LearnerProfile,
    review_threshold: float = 0.8,
    practice_threshold: float = 0.6,
) -> list[ConceptCluster]:
    """Group concepts by subject and topic."""
    by_topic: dict[str, list[KnowledgeNode]] = defaultdict(list)
    for node in profile.nodes:
        by_topic[f"{node.subject}:{node.topic}"].append(node)

    clusters = []
    for key, nodes in by_topic.items():
        avg_mastery = _mean_mastery(nodes)
        misconceptions = [m.name for n in nodes for m in n.active_misconceptions]

        clusters.append(
            ConceptCluster(
                id=key,
                name=key.split(":", 1)[1] or key,
                concepts=[n.concept_id for n in nodes],
                avg_mastery=avg_mastery,
                common_misconceptions=misconceptions,
                suggested_mode=suggest_mode(
                    avg_mastery, bool(misconceptions), review_threshold, practice_threshold
                ),
            )
        )

    return clusters
