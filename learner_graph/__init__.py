"""
learner-graph: persistent per-learner knowledge model.

Tracks, for every concept a learner has touched, a Bayesian mastery
estimate, an SM-2 review schedule and recurring misconceptions, and rolls
them up per topic and per subject.

Packages:
- core: Data model, mastery math, errors
- learning: KnowledgeGraphEngine and its update components
- analytics: Read-only summaries and review queues
- persistence: Snapshot codec and file-backed store
- cli: Typer/Rich command-line interface
"""

from learner_graph.core.models import LearnerProfile, UpdateEvent
from learner_graph.learning.engine import EngineConfig, KnowledgeGraphEngine

__version__ = "1.0.0"

__all__ = [
    "EngineConfig",
    "KnowledgeGraphEngine",
    "LearnerProfile",
    "UpdateEvent",
    "__version__",
]
