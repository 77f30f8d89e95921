"""
Configuration settings for learner-graph.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are read with the ``LEARNER_GRAPH_`` prefix.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LEARNER_GRAPH_",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Bayesian Knowledge Tracing
    # ========================================
    bkt_slip: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="P(wrong | mastered)",
    )
    bkt_guess: float = Field(
        default=0.25,
        ge=0.0,
        le=1.0,
        description="P(correct | not mastered)",
    )
    initial_mastery: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Mastery prior for a newly encountered concept",
    )
    initial_confidence: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Engine confidence in the estimate for a new concept",
    )
    initial_student_confidence: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Self-reported confidence assumed before the learner reports one",
    )

    # ========================================
    # Mastery Bands
    # ========================================
    mastered_threshold: float = Field(
        default=0.8,
        description="Mastery at or above this counts as mastered",
    )
    learning_threshold: float = Field(
        default=0.3,
        description="Mastery at or above this (and below mastered) counts as learning",
    )

    # ========================================
    # SM-2 Settings (for spaced repetition)
    # ========================================
    sm2_initial_ease: float = Field(
        default=2.5,
        ge=1.3,
        description="Ease factor for new concepts",
    )
    sm2_minimum_ease: float = Field(
        default=1.3,
        ge=1.3,
        description="Lower bound on the ease factor",
    )
    sm2_first_interval: int = Field(
        default=1,
        ge=1,
        description="Days until review after the first correct review",
    )
    sm2_second_interval: int = Field(
        default=6,
        ge=1,
        description="Days until review after the second correct review",
    )
    sm2_maximum_interval: int = Field(
        default=36500,
        ge=1,
        le=36500,
        description="Upper bound on the review interval in days",
    )

    # ========================================
    # Misconceptions & Confidence
    # ========================================
    misconception_lookback_days: int = Field(
        default=30,
        description="Window in which earlier errors count towards a new misconception",
    )
    confidence_divergence_threshold: float = Field(
        default=0.2,
        description="Gap between self-report and mastery that flags over/under confidence",
    )

    # ========================================
    # Aggregation
    # ========================================
    summary_top_n: int = Field(
        default=3,
        description="Strongest/weakest concepts listed per subject",
    )
    summary_focus_n: int = Field(
        default=5,
        description="Recommended-focus concepts listed per subject",
    )
    cluster_review_threshold: float = Field(
        default=0.8,
        description="Cluster average mastery that suggests REVIEW mode",
    )
    cluster_practice_threshold: float = Field(
        default=0.6,
        description="Cluster average mastery that suggests PRACTICE mode",
    )
    update_history_limit: int = Field(
        default=500,
        description="Update events kept in memory per engine",
    )

    # ========================================
    # Storage
    # ========================================
    profile_dir: Path = Field(
        default=Path.home() / ".learner_graph" / "profiles",
        description="Directory holding one snapshot file per learner",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Helper Methods
    # ========================================
    def get_bkt_config(self) -> dict[str, float]:
        """Get Bayesian Knowledge Tracing parameters."""
        return {
            "slip": self.bkt_slip,
            "guess": self.bkt_guess,
        }

    def get_sm2_config(self) -> dict[str, float | int]:
        """Get SM-2 scheduler parameters."""
        return {
            "initial_easiness": self.sm2_initial_ease,
            "minimum_easiness": self.sm2_minimum_ease,
            "first_interval": self.sm2_first_interval,
            "second_interval": self.sm2_second_interval,
            "maximum_interval": self.sm2_maximum_interval,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
