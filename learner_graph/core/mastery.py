"""
Core Mastery Module.

Bayesian Knowledge Tracing update and mastery band classification.

Design:
- MasteryBand: Enum for categorizing mastery scores
- BKTParams: Slip/guess likelihoods
- bayesian_update: One BKT step, guarded for absorbing priors
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from loguru import logger


class MasteryBand(str, Enum):
    """
    Mastery band used by profile counters and subject summaries.

    Thresholds follow the learner dashboard: 80% mastered, 30% learning.
    """

    STRUGGLING = "struggling"  # < 30%
    LEARNING = "learning"  # 30-79%
    MASTERED = "mastered"  # 80-100%

    @classmethod
    def from_score(
        cls,
        score: float,
        mastered_threshold: float = 0.8,
        learning_threshold: float = 0.3,
    ) -> MasteryBand:
        """
        Convert a 0-1 mastery score to a band.

        Args:
            score: Mastery score between 0 and 1
            mastered_threshold: Lowest score counted as mastered
            learning_threshold: Lowest score counted as learning

        Returns:
            Corresponding MasteryBand
        """
        if score >= mastered_threshold:
            return cls.MASTERED
        elif score >= learning_threshold:
            return cls.LEARNING
        else:
            return cls.STRUGGLING

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            MasteryBand.STRUGGLING: "red",
            MasteryBand.LEARNING: "yellow",
            MasteryBand.MASTERED: "green",
        }[self]


@dataclass(frozen=True)
class BKTParams:
    """Likelihoods for a single Bayesian Knowledge Tracing step."""

    slip: float = 0.1  # P(wrong | mastered)
    guess: float = 0.25  # P(correct | not mastered)


def bayesian_update(prior: float, is_correct: bool, params: BKTParams | None = None) -> float:
    """
    Posterior mastery after one graded answer.

    correct:   (1-s)p / ((1-s)p + g(1-p))
    incorrect:  s p   / ( s p   + (1-g)(1-p))

    A prior of exactly 0 or 1 is absorbing and returned unchanged, as is the
    prior whenever the evidence has zero probability.

    Args:
        prior: Current mastery estimate (0-1)
        is_correct: Whether the answer was graded correct
        params: Slip/guess likelihoods (defaults 0.1 / 0.25)

    Returns:
        Updated mastery estimate (0-1)
    """
    params = params or BKTParams()

    if prior <= 0.0 or prior >= 1.0:
        return max(0.0, min(1.0, prior))

    if is_correct:
        likelihood_mastered = 1.0 - params.slip
        likelihood_not_mastered = params.guess
    else:
        likelihood_mastered = params.slip
        likelihood_not_mastered = 1.0 - params.guess

    evidence = likelihood_mastered * prior + likelihood_not_mastered * (1.0 - prior)
    if evidence <= 0.0:
        logger.debug(f"Zero-probability evidence for prior {prior:.4f}; keeping prior")
        return prior

    posterior = likelihood_mastered * prior / evidence
    return max(0.0, min(1.0, posterior))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))
