"""
Unit tests for the read-only aggregation views.
"""

from datetime import timedelta

import pytest

from learner_graph.analytics.aggregation import (
    SuggestedMode,
    concept_clusters,
    review_due,
    review_priority,
    subject_summaries,
    suggest_mode,
)
from learner_graph.core.models import KnowledgeNode, LearnerProfile, Misconception


def make_profile(*nodes):
    profile = LearnerProfile(user_id="learner-001")
    for node in nodes:
        profile.knowledge_nodes[node.concept_id] = node
    return profile


def make_node(concept_id, mastery, subject="Mathematics", topic="Algebra", **kwargs):
    return KnowledgeNode(
        concept_id=concept_id,
        concept_name=f"Concept {concept_id}",
        subject=subject,
        topic=topic,
        mastery=mastery,
        **kwargs,
    )


class TestReviewDue:
    def test_only_past_due_nodes(self, now):
        profile = make_profile(
            make_node("c1", 0.5, next_review_date=now - timedelta(days=10)),
            make_node("c3", 0.5, next_review_date=now + timedelta(days=1)),
            make_node("c4", 0.5),
        )

        due = review_due(profile, now)

        assert [n.concept_id for n in due] == ["c1"]

    def test_due_exactly_now(self, now):
        profile = make_profile(make_node("c1", 0.5, next_review_date=now))
        assert len(review_due(profile, now)) == 1

    def test_weakest_and_longest_first(self, now):
        past = now - timedelta(days=1)
        profile = make_profile(
            make_node("strong", 0.9, interval=1, next_review_date=past),
            make_node("weak", 0.2, interval=1, next_review_date=past),
            make_node("long", 0.9, interval=20, next_review_date=past),
        )

        due = review_due(profile, now)

        assert [n.concept_id for n in due] == ["long", "weak", "strong"]

    def test_zero_interval_counts_as_one(self):
        node = make_node("c1", 0.5, interval=0)
        assert review_priority(node) == pytest.approx(6.0)

    def test_empty_profile(self, now):
        assert review_due(make_profile(), now) == []


class TestSubjectSummaries:
    def test_bands_and_lists(self):
        profile = make_profile(
            make_node("m1", 0.95),
            make_node("m2", 0.85),
            make_node("l1", 0.5),
            make_node("s1", 0.1),
            make_node("s2", 0.25),
            make_node("p1", 0.6, subject="Physics"),
        )

        summaries = {s.subject: s for s in subject_summaries(profile)}

        maths = summaries["Mathematics"]
        assert maths.total_concepts == 5
        assert (maths.mastered_concepts, maths.learning_concepts, maths.struggling_concepts) == (2, 1, 2)
        assert maths.avg_mastery == pytest.approx((0.95 + 0.85 + 0.5 + 0.1 + 0.25) / 5)
        assert maths.top_strengths == ["Concept m1", "Concept m2"]
        assert maths.top_weaknesses == ["Concept s1", "Concept s2"]
        assert maths.recommended_focus == ["Concept s1", "Concept s2"]

        physics = summaries["Physics"]
        assert physics.top_strengths == []
        assert physics.top_weaknesses == []

    def test_list_lengths_capped(self):
        profile = make_profile(*[make_node(f"s{i}", 0.01 * (i + 1)) for i in range(8)])

        summary = subject_summaries(profile, top_n=3, focus_n=5)[0]

        assert len(summary.top_weaknesses) == 3
        assert len(summary.recommended_focus) == 5
        assert summary.top_weaknesses[0] == "Concept s0"

    def test_counts_active_misconceptions(self, now):
        node = make_node("c1", 0.2)
        node.misconceptions.append(
            Misconception(pattern="2x", correct_understanding="2x+1", first_detected=now, last_detected=now)
        )
        summary = subject_summaries(make_profile(node))[0]
        assert summary.active_misconceptions == 1
        assert summary.to_dict()["active_misconceptions"] == 1


class TestClusters:
    @pytest.mark.parametrize(
        "avg,has_active,mode",
        [
            (0.85, True, SuggestedMode.REVIEW),
            (0.65, True, SuggestedMode.PRACTICE),
            (0.4, True, SuggestedMode.DEBUG),
            (0.4, False, SuggestedMode.LEARN),
        ],
    )
    def test_suggest_mode(self, avg, has_active, mode):
        assert suggest_mode(avg, has_active) is mode

    def test_groups_by_subject_and_topic(self, now):
        debug_node = make_node("c3", 0.2, topic="Geometry")
        debug_node.misconceptions.append(
            Misconception(
                pattern="180",
                correct_understanding="360",
                name="Angle sum",
                first_detected=now,
                last_detected=now,
            )
        )
        profile = make_profile(
            make_node("c1", 0.9),
            make_node("c2", 0.8),
            debug_node,
            make_node("c4", 0.1, subject="Physics", topic=""),
        )

        clusters = {c.id: c for c in concept_clusters(profile)}

        algebra = clusters["Mathematics:Algebra"]
        assert algebra.name == "Algebra"
        assert algebra.concepts == ["c1", "c2"]
        assert algebra.avg_mastery == pytest.approx(0.85)
        assert algebra.suggested_mode is SuggestedMode.REVIEW

        geometry = clusters["Mathematics:Geometry"]
        assert geometry.common_misconceptions == ["Angle sum"]
        assert geometry.suggested_mode is SuggestedMode.DEBUG

        physics = clusters["Physics:"]
        assert physics.name == "Physics:"
        assert physics.suggested_mode is SuggestedMode.LEARN
        assert physics.to_dict()["suggested_mode"] == "LEARN"
