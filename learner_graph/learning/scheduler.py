"""
SM-2 Spaced Repetition Scheduler.

Schedules the next review of a concept after a correct answer. The SM-2
quality grade is derived from the current mastery estimate rather than a
self-graded recall score:

    quality = round(mastery * 5)

SM-2 Grade Scale:
0 - Complete blackout
1 - Incorrect, but upon seeing answer remembered
2 - Incorrect, but answer seemed easy to recall
3 - Correct, but with significant difficulty
4 - Correct, with some hesitation
5 - Correct, with perfect recall
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from loguru import logger

from learner_graph.core.mastery import round_half_up
from learner_graph.core.models import KnowledgeNode


@dataclass(frozen=True)
class SM2Config:
    """Configuration for SM-2 algorithm."""

    initial_easiness: float = 2.5
    minimum_easiness: float = 1.3
    first_interval: int = 1  # Days for first review
    second_interval: int = 6  # Days for second review
    maximum_interval: int = 36500  # Cap, keeps review dates representable


class SM2Scheduler:
    """
    Implements the SM-2 spaced repetition algorithm on knowledge nodes.

    Each node carries:
    - Ease Factor (EF): How easy the concept is (2.5 default, min 1.3)
    - Interval: Days until next review, between 1 and maximum_interval
    - Review count: Correct reviews scheduled so far
    """

    def __init__(self, config: SM2Config | None = None):
        """
        Initialize SM-2 scheduler.

        Args:
            config: Custom configuration (uses defaults if None)
        """
        self.config = config or SM2Config()

    @staticmethod
    def quality_from_mastery(mastery: float) -> int:
        """Map a 0-1 mastery estimate onto the 0-5 SM-2 grade scale."""
        return max(0, min(5, round_half_up(mastery * 5)))

    def next_ease(self, ease: float, quality: int) -> float:
        # EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
        ef_delta = 0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)
        return max(self.config.minimum_easiness, ease + ef_delta)

    def next_interval(self, review_count: int, interval: int, ease: float) -> int:
        """
        Days until the next review.

        Args:
            review_count: Correct reviews already scheduled for the node
            interval: Current interval in days
            ease: Ease factor after this review's adjustment

        Returns:
            Interval clamped to [1, maximum_interval]
        """
        if review_count == 0:
            days = self.config.first_interval
        elif review_count == 1:
            days = self.config.second_interval
        else:
            days = round_half_up(min(interval * ease, self.config.maximum_interval))
        # Never schedule a review for the same instant
        return max(1, min(self.config.maximum_interval, days))

    def schedule(self, node: KnowledgeNode, now: datetime) -> KnowledgeNode:
        """
        Update the node's SM-2 state after a correct answer.

        The node is only modified once the whole new state has been computed.

        Args:
            node: Node whose mastery has already been updated for this answer
            now: Review time

        Returns:
            The same node, with ease, interval and review dates updated
        """
        quality = self.quality_from_mastery(node.mastery)
        ease = self.next_ease(node.ease_factor, quality)
        interval = self.next_interval(node.review_count, node.interval, ease)
        next_review_date = now + timedelta(days=interval)

        node.ease_factor = ease
        node.interval = interval
        node.review_count += 1
        node.last_reviewed = now
        node.next_review_date = next_review_date

        logger.debug(
            f"Scheduled {node.concept_id}: q={quality} ease={ease:.2f} "
            f"interval={interval}d next={next_review_date.date()}"
        )
        return node
