"""
Learning Module - The update engine.

Components:
- engine: KnowledgeGraphEngine, the ingest/query facade for one learner
- misconceptions: Wrong-answer pattern detection and resolution
- scheduler: SM-2 review scheduling
- confidence: Self-report vs. mastery divergence
"""

from learner_graph.learning.confidence import ConfidenceTracker
from learner_graph.learning.engine import EngineConfig, KnowledgeGraphEngine
from learner_graph.learning.misconceptions import MisconceptionTracker, is_pattern_match
from learner_graph.learning.scheduler import SM2Config, SM2Scheduler

__all__ = [
    "ConfidenceTracker",
    "EngineConfig",
    "KnowledgeGraphEngine",
    "MisconceptionTracker",
    "SM2Config",
    "SM2Scheduler",
    "is_pattern_match",
]
