"""
Knowledge Graph Engine.

Maintains the persistent model of a single learner. After the tutoring
layer grades an answer it calls record_interaction(), which:

1. Creates the concept's node on first contact
2. Updates mastery with one Bayesian Knowledge Tracing step
3. Detects (wrong answer) or resolves (correct answer) misconceptions
4. Recomputes confidence divergence
5. Schedules the next SM-2 review (correct answer only)
6. Recounts the profile's rolled-up totals

and reports each change as an UpdateEvent.

One engine wraps one profile. There is no internal locking: callers must
serialize interactions for the same learner.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from loguru import logger

from learner_graph.analytics import aggregation
from learner_graph.analytics.aggregation import ConceptCluster, SubjectSummary
from learner_graph.config import Settings
from learner_graph.core.exceptions import InvalidInteractionError
from learner_graph.core.mastery import BKTParams, MasteryBand, bayesian_update
from learner_graph.core.models import (
    BloomsLevel,
    CurriculumReference,
    KnowledgeNode,
    LearnerProfile,
    UpdateEvent,
    UpdateType,
    clamp_unit,
    ensure_utc,
    utc_now,
)
from learner_graph.learning.confidence import ConfidenceTracker
from learner_graph.learning.misconceptions import MisconceptionTracker
from learner_graph.learning.scheduler import SM2Config, SM2Scheduler
from learner_graph.persistence.snapshot import dump_profile, restore_profile


@dataclass(frozen=True)
class EngineConfig:
    """Tunable parameters for the engine; defaults match Settings defaults."""

    bkt: BKTParams = field(default_factory=BKTParams)
    sm2: SM2Config = field(default_factory=SM2Config)
    initial_mastery: float = 0.1
    initial_confidence: float = 0.1
    initial_student_confidence: float = 0.5
    mastered_threshold: float = 0.8
    learning_threshold: float = 0.3
    misconception_lookback_days: int = 30
    confidence_divergence_threshold: float = 0.2
    summary_top_n: int = 3
    summary_focus_n: int = 5
    cluster_review_threshold: float = 0.8
    cluster_practice_threshold: float = 0.6
    update_history_limit: int = 500

    @classmethod
    def from_settings(cls, settings: Settings) -> EngineConfig:
        """Build engine config from application settings."""
        return cls(
            bkt=BKTParams(**settings.get_bkt_config()),
            sm2=SM2Config(**settings.get_sm2_config()),
            initial_mastery=settings.initial_mastery,
            initial_confidence=settings.initial_confidence,
            initial_student_confidence=settings.initial_student_confidence,
            mastered_threshold=settings.mastered_threshold,
            learning_threshold=settings.learning_threshold,
            misconception_lookback_days=settings.misconception_lookback_days,
            confidence_divergence_threshold=settings.confidence_divergence_threshold,
            summary_top_n=settings.summary_top_n,
            summary_focus_n=settings.summary_focus_n,
            cluster_review_threshold=settings.cluster_review_threshold,
            cluster_practice_threshold=settings.cluster_practice_threshold,
            update_history_limit=settings.update_history_limit,
        )


class KnowledgeGraphEngine:
    """
    Update engine and query facade for one learner profile.

    Usage:
        engine = KnowledgeGraphEngine("learner-42")
        events = engine.record_interaction(
            concept_id="alg-linear", concept_name="Linear equations",
            subject="Mathematics", topic="Algebra", is_correct=False,
            student_answer="2x", expected_answer="2x+1",
        )
        text = engine.serialize()
    """

    def __init__(
        self,
        user_id: str,
        profile: LearnerProfile | None = None,
        config: EngineConfig | None = None,
    ):
        """
        Initialize engine.

        Args:
            user_id: Learner the profile belongs to
            profile: Existing profile (a fresh empty profile if None)
            config: Engine parameters (defaults if None)
        """
        self.config = config or EngineConfig()
        self.profile = profile if profile is not None else LearnerProfile(user_id=user_id)

        self.scheduler = SM2Scheduler(self.config.sm2)
        self.misconceptions = MisconceptionTracker(self.config.misconception_lookback_days)
        self.confidence = ConfidenceTracker(self.config.confidence_divergence_threshold)

        self._history: deque[UpdateEvent] = deque(maxlen=self.config.update_history_limit)

    @property
    def user_id(self) -> str:
        return self.profile.user_id

    # =========================================================================
    # Ingest
    # =========================================================================

    def record_interaction(
        self,
        concept_id: str,
        concept_name: str,
        subject: str,
        topic: str,
        is_correct: bool,
        student_answer: str = "",
        expected_answer: str = "",
        student_confidence: float | None = None,
        session_id: str = "",
        mode: str = "",
        curriculum_refs: list[CurriculumReference] | None = None,
        blooms_level: BloomsLevel | str | None = None,
        now: datetime | None = None,
    ) -> list[UpdateEvent]:
        """
        Record a graded learner answer on a concept.

        Unknown concepts are not an error: a node is created for them.

        Args:
            concept_id: Curriculum concept identifier (non-empty)
            concept_name: Display name of the concept
            subject: Subject the concept belongs to
            topic: Topic within the subject
            is_correct: Whether the answer was graded correct
            student_answer: The learner's answer text (the learner_answer of
                the tutoring contract)
            expected_answer: The expected answer text
            student_confidence: Self-reported confidence 0-1, the
                learner_confidence of the tutoring contract (keeps the
                node's previous value if None)
            session_id: Tutoring session identifier
            mode: Learning mode the answer was given in
            curriculum_refs: Curriculum alignment, used when creating the node
            blooms_level: Bloom's level, used when creating the node
            now: Interaction time (defaults to UTC now)

        Returns:
            One UpdateEvent per distinct change, in the order applied

        Raises:
            InvalidInteractionError: If concept_id is empty
        """
        if not concept_id or not str(concept_id).strip():
            raise InvalidInteractionError("record_interaction requires a non-empty concept_id")

        now = ensure_utc(now) if now is not None else utc_now()
        events: list[UpdateEvent] = []

        node = self.profile.get_node(concept_id)
        if node is None:
            node = self._create_node(
                concept_id, concept_name, subject, topic, curriculum_refs, blooms_level, now
            )
            self.profile.knowledge_nodes[concept_id] = node
            events.append(
                UpdateEvent(
                    type=UpdateType.CONCEPT_ENCOUNTERED,
                    node_id=concept_id,
                    data={"concept_name": concept_name},
                    timestamp=now,
                )
            )
            logger.info(f"Learner {self.user_id} encountered concept {concept_id}")

        # Mastery
        previous_mastery = node.mastery
        node.mastery = bayesian_update(node.mastery, is_correct, self.config.bkt)
        node.interaction_count += 1
        node.last_updated = now
        if student_confidence is not None:
            node.student_confidence = clamp_unit(student_confidence)

        events.append(
            UpdateEvent(
                type=UpdateType.MASTERY_UPDATE,
                node_id=concept_id,
                data={
                    "previous_mastery": previous_mastery,
                    "new_mastery": node.mastery,
                    "is_correct": is_correct,
                },
                timestamp=now,
            )
        )
        logger.debug(
            f"{concept_id}: mastery {previous_mastery:.3f} -> {node.mastery:.3f} "
            f"({'correct' if is_correct else 'incorrect'})"
        )

        # Misconceptions
        if not is_correct:
            misconception = self.misconceptions.detect(
                self.profile, node, student_answer, expected_answer, session_id, mode, now
            )
            if misconception is not None:
                events.append(
                    UpdateEvent(
                        type=UpdateType.MISCONCEPTION_DETECTED,
                        node_id=concept_id,
                        data={
                            "misconception_id": misconception.id,
                            "name": misconception.name,
                            "occurrence_count": misconception.occurrence_count,
                        },
                        timestamp=now,
                    )
                )
        else:
            for resolved in self.misconceptions.resolve(self.profile, node, now):
                events.append(
                    UpdateEvent(
                        type=UpdateType.MISCONCEPTION_RESOLVED,
                        node_id=concept_id,
                        data={"misconception_id": resolved.id, "name": resolved.name},
                        timestamp=now,
                    )
                )

        # Confidence divergence
        divergence = self.confidence.update(self.profile, node)
        events.append(
            UpdateEvent(
                type=UpdateType.CONFIDENCE_UPDATE,
                node_id=concept_id,
                data={
                    "student_confidence": node.student_confidence,
                    "engine_confidence": node.confidence,
                    "divergence": divergence,
                },
                timestamp=now,
            )
        )

        # Spaced repetition
        if is_correct:
            self.scheduler.schedule(node, now)
            events.append(
                UpdateEvent(
                    type=UpdateType.REVIEW_SCHEDULED,
                    node_id=concept_id,
                    data={
                        "next_review_date": node.next_review_date,
                        "interval": node.interval,
                    },
                    timestamp=now,
                )
            )

        self._recount_totals(now)
        self._history.extend(events)
        return events

    def _create_node(
        self,
        concept_id: str,
        concept_name: str,
        subject: str,
        topic: str,
        curriculum_refs: list[CurriculumReference] | None,
        blooms_level: BloomsLevel | str | None,
        now: datetime,
    ) -> KnowledgeNode:
        return KnowledgeNode(
            concept_id=concept_id,
            concept_name=concept_name,
            subject=subject,
            topic=topic,
            mastery=self.config.initial_mastery,
            confidence=self.config.initial_confidence,
            student_confidence=self.config.initial_student_confidence,
            ease_factor=self.config.sm2.initial_easiness,
            interval=self.config.sm2.first_interval,
            curriculum_refs=list(curriculum_refs or []),
            blooms_level=blooms_level or BloomsLevel.UNDERSTAND,
            first_encountered=now,
            last_updated=now,
        )

    def _recount_totals(self, now: datetime) -> None:
        """Recompute band counters and overall mastery from the nodes."""
        profile = self.profile
        nodes = profile.nodes
        bands = [
            MasteryBand.from_score(
                n.mastery, self.config.mastered_threshold, self.config.learning_threshold
            )
            for n in nodes
        ]

        profile.total_concepts_mastered = bands.count(MasteryBand.MASTERED)
        profile.total_concepts_learning = bands.count(MasteryBand.LEARNING)
        profile.total_concepts_struggling = bands.count(MasteryBand.STRUGGLING)
        profile.overall_mastery = sum(n.mastery for n in nodes) / len(nodes) if nodes else 0.0
        profile.last_updated = now

    # =========================================================================
    # Queries
    # =========================================================================

    def get_profile(self) -> LearnerProfile:
        return self.profile

    def get_node_mastery(self, concept_id: str) -> float:
        """Mastery for a concept, 0.0 if the learner has never met it."""
        node = self.profile.get_node(concept_id)
        return node.mastery if node is not None else 0.0

    def review_due(self, now: datetime | None = None) -> list[KnowledgeNode]:
        """Concepts whose review date has arrived, most urgent first."""
        return aggregation.review_due(self.profile, ensure_utc(now) if now else None)

    def subject_summaries(self) -> list[SubjectSummary]:
        return aggregation.subject_summaries(
            self.profile,
            top_n=self.config.summary_top_n,
            focus_n=self.config.summary_focus_n,
            mastered_threshold=self.config.mastered_threshold,
            learning_threshold=self.config.learning_threshold,
        )

    def concept_clusters(self) -> list[ConceptCluster]:
        return aggregation.concept_clusters(
            self.profile,
            review_threshold=self.config.cluster_review_threshold,
            practice_threshold=self.config.cluster_practice_threshold,
        )

    def active_misconceptions(self) -> list[dict[str, Any]]:
        """Active misconceptions listed on the profile, for dashboards."""
        return [
            {
                "concept": m.occurrences[0].context if m.occurrences else "Unknown",
                "name": m.name,
                "occurrence_count": m.occurrence_count,
            }
            for m in self.profile.active_misconceptions
        ]

    def confidence_divergence(self) -> dict[str, Any]:
        return {
            "overconfident": list(self.profile.overconfident_topics),
            "underconfident": list(self.profile.underconfident_topics),
            "avg_divergence": self.profile.confidence_divergence,
        }

    def recent_updates(self, limit: int | None = None) -> list[UpdateEvent]:
        """Newest update events, oldest first."""
        events = list(self._history)
        if limit is not None:
            return events[-limit:] if limit > 0 else []
        return events

    # =========================================================================
    # Persistence
    # =========================================================================

    def serialize(self) -> str:
        """Snapshot the profile as JSON text."""
        return dump_profile(self.profile)

    @staticmethod
    def deserialize(data: str | bytes | None, user_id: str = "") -> LearnerProfile:
        """
        Restore a profile from snapshot text.

        Never raises: a malformed snapshot yields an empty profile for user_id.
        """
        return restore_profile(data, user_id)

    @classmethod
    def from_snapshot(
        cls,
        data: str | bytes | None,
        user_id: str,
        config: EngineConfig | None = None,
    ) -> KnowledgeGraphEngine:
        """Build an engine around a restored (or fresh) profile."""
        return cls(user_id, profile=cls.deserialize(data, user_id), config=config)
