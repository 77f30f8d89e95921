"""
Analytics Module - Read-only views over a learner profile.
"""

from learner_graph.analytics.aggregation import (
    ConceptCluster,
    SubjectSummary,
    SuggestedMode,
    concept_clusters,
    review_due,
    subject_summaries,
)

__all__ = [
    "ConceptCluster",
    "SubjectSummary",
    "SuggestedMode",
    "concept_clusters",
    "review_due",
    "subject_summaries",
]
