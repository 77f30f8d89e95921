"""
Misconception Detection and Resolution.

Every wrong answer tells a story: a learner who keeps giving the same wrong
answer on a concept probably holds a specific wrong mental model.

Detection is a string heuristic, not NLP. It deliberately flags potential
misconceptions early:

1. A wrong answer matching an open misconception's pattern is recorded on it.
2. Otherwise, if the concept already has an error inside the lookback window,
   a new misconception is created from those errors plus this one.
3. Otherwise, the first error on a concept opens a monitoring placeholder so
   that the next matching error has something to attach to.

Two consecutive correct answers resolve a misconception
(ACTIVE -> RESOLVING -> RESOLVED).
"""

from __future__ import annotations

from datetime import datetime, timedelta

from loguru import logger

from learner_graph.core.models import (
    KnowledgeNode,
    LearnerProfile,
    Misconception,
    MisconceptionOccurrence,
    MisconceptionStatus,
)


def normalize_answer(answer: str) -> str:
    """Lower-case and strip an answer for pattern matching."""
    return (answer or "").lower().strip()


def is_pattern_match(pattern: str, answer: str) -> bool:
    """
    Check whether an answer matches a stored misconception pattern.

    Matches on normalized equality, or when the shorter string is contained
    in the longer one.
    """
    normalized_pattern = normalize_answer(pattern)
    normalized_answer = normalize_answer(answer)

    if normalized_pattern == normalized_answer:
        return True

    if len(normalized_pattern) < len(normalized_answer):
        shorter, longer = normalized_pattern, normalized_answer
    else:
        shorter, longer = normalized_answer, normalized_pattern
    return shorter in longer


class MisconceptionTracker:
    """
    Detects recurring wrong answers on a node and walks them through
    their lifecycle.

    Profile-level active/resolved lists are kept in step with node-level
    status changes.
    """

    def __init__(self, lookback_days: int = 30):
        self.lookback = timedelta(days=lookback_days)

    def detect(
        self,
        profile: LearnerProfile,
        node: KnowledgeNode,
        student_answer: str,
        expected_answer: str,
        session_id: str,
        mode: str,
        now: datetime,
    ) -> Misconception | None:
        """
        Process a wrong answer on a node.

        Returns:
            The misconception the answer was attributed to, or None when the
            answer only opened a monitoring placeholder
        """
        occurrence = MisconceptionOccurrence(
            session_id=session_id,
            timestamp=now,
            student_answer=student_answer,
            expected_answer=expected_answer,
            context=node.concept_name,
            mode=mode,
        )

        for misconception in node.misconceptions:
            if misconception.is_open and is_pattern_match(misconception.pattern, student_answer):
                was_resolving = misconception.status is MisconceptionStatus.RESOLVING
                misconception.record_occurrence(occurrence, now)
                # A monitoring placeholder that recurs is promoted onto the profile
                if not any(m.id == misconception.id for m in profile.active_misconceptions):
                    profile.active_misconceptions.append(misconception)
                if was_resolving:
                    logger.info(
                        f"Misconception '{misconception.name}' regressed to active "
                        f"(attempt {misconception.resolution_attempts})"
                    )
                return misconception

        recent_errors = self._recent_occurrences(node, now)
        if recent_errors:
            misconception = Misconception(
                name=f"Misconception in {node.concept_name}",
                description=(
                    f"Learner consistently provides incorrect reasoning for {node.concept_name}"
                ),
                pattern=normalize_answer(student_answer),
                correct_understanding=expected_answer,
                occurrences=[*recent_errors, occurrence],
                status=MisconceptionStatus.ACTIVE,
                first_detected=min(o.timestamp for o in recent_errors),
                last_detected=now,
            )
            node.misconceptions.append(misconception)
            profile.active_misconceptions.append(misconception)
            logger.info(
                f"New misconception on {node.concept_id} from "
                f"{misconception.occurrence_count} recent errors"
            )
            return misconception

        if not node.misconceptions:
            placeholder = Misconception(
                name=f"Potential misconception in {node.concept_name}",
                description=f"Monitoring error pattern in {node.concept_name}",
                pattern=normalize_answer(student_answer),
                correct_understanding=expected_answer,
                occurrences=[occurrence],
                status=MisconceptionStatus.ACTIVE,
                first_detected=now,
                last_detected=now,
            )
            node.misconceptions.append(placeholder)
            logger.debug(f"Monitoring first error on {node.concept_id}")

        return None

    def resolve(self, profile: LearnerProfile, node: KnowledgeNode, now: datetime) -> list[Misconception]:
        """
        Advance every open misconception on the node by one step after a
        correct answer.

        Returns:
            Misconceptions that reached RESOLVED on this answer
        """
        resolved = []
        for misconception in node.misconceptions:
            if not misconception.is_open:
                continue

            if misconception.advance(now) is MisconceptionStatus.RESOLVED:
                profile.active_misconceptions = [
                    m for m in profile.active_misconceptions if m.id != misconception.id
                ]
                profile.resolved_misconceptions.append(misconception)
                resolved.append(misconception)
                logger.info(f"Resolved misconception '{misconception.name}' on {node.concept_id}")

        return resolved

    def _recent_occurrences(self, node: KnowledgeNode, now: datetime) -> list[MisconceptionOccurrence]:
        """Occurrences on the node, across all misconceptions, inside the lookback window."""
        cutoff = now - self.lookback
        return [
            occurrence
            for misconception in node.misconceptions
            for occurrence in misconception.occurrences
            if occurrence.timestamp >= cutoff
        ]
