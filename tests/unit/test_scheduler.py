"""
Unit tests for the SM-2 scheduler.
"""

from datetime import timedelta

import pytest

from learner_graph.core.models import KnowledgeNode
from learner_graph.learning.scheduler import SM2Config, SM2Scheduler


@pytest.fixture
def scheduler():
    return SM2Scheduler()


class TestQuality:
    @pytest.mark.parametrize(
        "mastery,quality",
        [(0.0, 0), (0.1, 1), (0.29, 1), (0.5, 3), (0.59, 3), (0.84, 4), (0.95, 5), (1.0, 5)],
    )
    def test_quality_from_mastery(self, mastery, quality):
        assert SM2Scheduler.quality_from_mastery(mastery) == quality


class TestEase:
    def test_perfect_quality_raises_ease(self, scheduler):
        assert scheduler.next_ease(2.5, 5) == pytest.approx(2.6)

    def test_quality_four_keeps_ease(self, scheduler):
        assert scheduler.next_ease(2.5, 4) == pytest.approx(2.5)

    def test_low_quality_floors_at_minimum(self, scheduler):
        assert scheduler.next_ease(1.4, 0) == pytest.approx(1.3)


class TestSchedule:
    def test_first_three_reviews(self, scheduler, now):
        node = KnowledgeNode(concept_id="c1", mastery=0.95)

        scheduler.schedule(node, now)
        assert node.interval == 1
        assert node.review_count == 1
        assert node.last_reviewed == now
        assert node.next_review_date == now + timedelta(days=1)

        scheduler.schedule(node, now)
        assert node.interval == 6

        ease_before = node.ease_factor
        scheduler.schedule(node, now)
        # q=5 adds 0.1 before the interval is computed
        assert node.interval == round(6 * (ease_before + 0.1))
        assert node.review_count == 3

    def test_interval_never_decreases_on_correct_reviews(self, scheduler, now):
        node = KnowledgeNode(concept_id="c1", mastery=0.2)
        previous = node.interval
        for _ in range(10):
            scheduler.schedule(node, now)
            assert node.interval >= previous
            assert node.ease_factor >= 1.3
            previous = node.interval

    def test_next_review_strictly_after_last_reviewed(self, scheduler, now):
        node = KnowledgeNode(concept_id="c1", interval=0, review_count=5)
        scheduler.schedule(node, now)
        assert node.interval >= 1
        assert node.next_review_date > node.last_reviewed

    def test_custom_config(self, now):
        scheduler = SM2Scheduler(SM2Config(first_interval=2, second_interval=5))
        node = KnowledgeNode(concept_id="c1", mastery=0.8)
        scheduler.schedule(node, now)
        assert node.interval == 2
        scheduler.schedule(node, now)
        assert node.interval == 5

    def test_interval_capped_at_maximum(self, now):
        scheduler = SM2Scheduler(SM2Config(maximum_interval=30))
        node = KnowledgeNode(concept_id="c1", mastery=1.0, interval=25, review_count=4)

        scheduler.schedule(node, now)

        assert node.interval == 30
        assert node.next_review_date == now + timedelta(days=30)

    def test_huge_interval_does_not_overflow(self, scheduler, now):
        node = KnowledgeNode(concept_id="c1", mastery=1.0, interval=10**9, review_count=20)

        scheduler.schedule(node, now)

        assert node.interval == SM2Config().maximum_interval
        assert node.next_review_date > node.last_reviewed

    @pytest.mark.parametrize("review_count", [0, 1])
    def test_zero_configured_interval_floors_at_one_day(self, now, review_count):
        scheduler = SM2Scheduler(SM2Config(first_interval=0, second_interval=0))
        node = KnowledgeNode(concept_id="c1", mastery=0.5, review_count=review_count)

        scheduler.schedule(node, now)

        assert node.interval == 1
        assert node.next_review_date > node.last_reviewed
