"""
Unit tests for misconception detection and lifecycle.

Tests:
- Pattern matching (equality and substring, case-insensitive)
- Placeholder creation on the first error
- Escalation on a second, non-matching error inside the lookback window
- ACTIVE -> RESOLVING -> RESOLVED and regression back to ACTIVE
"""

from datetime import timedelta

import pytest

from learner_graph.core.exceptions import InvalidTransitionError
from learner_graph.core.models import (
    KnowledgeNode,
    LearnerProfile,
    Misconception,
    MisconceptionOccurrence,
    MisconceptionStatus,
)
from learner_graph.learning.misconceptions import (
    MisconceptionTracker,
    is_pattern_match,
    normalize_answer,
)


@pytest.fixture
def profile():
    return LearnerProfile(user_id="learner-001")


@pytest.fixture
def node(profile):
    node = KnowledgeNode(concept_id="c2", concept_name="Linear expressions")
    profile.knowledge_nodes["c2"] = node
    return node


@pytest.fixture
def tracker():
    return MisconceptionTracker(lookback_days=30)


def wrong(tracker, profile, node, answer, now, expected="2x+1"):
    return tracker.detect(profile, node, answer, expected, "session-1", "PRACTICE", now)


class TestPatternMatch:
    def test_normalize(self):
        assert normalize_answer("  2X+1 ") == "2x+1"
        assert normalize_answer(None) == ""

    def test_exact_match_ignores_case_and_whitespace(self):
        assert is_pattern_match("2x", " 2X ")

    def test_substring_either_direction(self):
        assert is_pattern_match("2x", "2x + 3")
        assert is_pattern_match("the answer is 2x", "2x")

    def test_unrelated_answers_do_not_match(self):
        assert not is_pattern_match("2x", "banana")


class TestDetection:
    def test_first_error_opens_placeholder_only(self, tracker, profile, node, now):
        result = wrong(tracker, profile, node, "2x", now)

        assert result is None
        assert len(node.misconceptions) == 1
        placeholder = node.misconceptions[0]
        assert placeholder.status is MisconceptionStatus.ACTIVE
        assert placeholder.pattern == "2x"
        assert placeholder.correct_understanding == "2x+1"
        assert placeholder.occurrence_count == 1
        assert placeholder.name.startswith("Potential misconception")
        assert profile.active_misconceptions == []

    def test_matching_error_attaches_and_promotes(self, tracker, profile, node, now):
        wrong(tracker, profile, node, "2x", now)
        result = wrong(tracker, profile, node, "2X", now + timedelta(minutes=5))

        assert result is node.misconceptions[0]
        assert result.occurrence_count == 2
        assert result.last_detected == now + timedelta(minutes=5)
        assert profile.active_misconceptions == [result]

    def test_promotion_does_not_duplicate(self, tracker, profile, node, now):
        for i in range(4):
            wrong(tracker, profile, node, "2x", now + timedelta(minutes=i))

        assert len(profile.active_misconceptions) == 1
        assert profile.active_misconceptions[0].occurrence_count == 4

    def test_non_matching_recent_error_creates_misconception(self, tracker, profile, node, now):
        wrong(tracker, profile, node, "2x", now)
        result = wrong(tracker, profile, node, "banana", now + timedelta(days=3))

        assert result is not None
        assert len(node.misconceptions) == 2
        assert result.pattern == "banana"
        assert result.occurrence_count == 2
        assert result.first_detected == now
        assert result.name == "Misconception in Linear expressions"
        assert profile.active_misconceptions == [result]

    def test_errors_outside_lookback_are_ignored(self, tracker, profile, node, now):
        wrong(tracker, profile, node, "2x", now)
        result = wrong(tracker, profile, node, "banana", now + timedelta(days=31))

        assert result is None
        assert len(node.misconceptions) == 1
        assert node.misconceptions[0].occurrence_count == 1

    def test_occurrence_records_context(self, tracker, profile, node, now):
        wrong(tracker, profile, node, "2x", now)
        occurrence = node.misconceptions[0].occurrences[0]

        assert occurrence.context == "Linear expressions"
        assert occurrence.session_id == "session-1"
        assert occurrence.mode == "PRACTICE"
        assert occurrence.student_answer == "2x"
        assert occurrence.expected_answer == "2x+1"


class TestResolution:
    def test_two_correct_answers_resolve(self, tracker, profile, node, now):
        wrong(tracker, profile, node, "2x", now)
        misconception = wrong(tracker, profile, node, "2x", now)

        assert tracker.resolve(profile, node, now) == []
        assert misconception.status is MisconceptionStatus.RESOLVING
        assert profile.active_misconceptions == [misconception]

        later = now + timedelta(hours=1)
        resolved = tracker.resolve(profile, node, later)

        assert resolved == [misconception]
        assert misconception.status is MisconceptionStatus.RESOLVED
        assert misconception.resolved_at == later
        assert profile.active_misconceptions == []
        assert profile.resolved_misconceptions == [misconception]

    def test_placeholder_resolution_lands_in_resolved_list(self, tracker, profile, node, now):
        wrong(tracker, profile, node, "2x", now)
        tracker.resolve(profile, node, now)
        resolved = tracker.resolve(profile, node, now)

        assert len(resolved) == 1
        assert profile.resolved_misconceptions == resolved

    def test_matching_error_while_resolving_regresses(self, tracker, profile, node, now):
        wrong(tracker, profile, node, "2x", now)
        misconception = wrong(tracker, profile, node, "2x", now)
        tracker.resolve(profile, node, now)

        wrong(tracker, profile, node, "2x", now + timedelta(minutes=1))

        assert misconception.status is MisconceptionStatus.ACTIVE
        assert misconception.resolution_attempts == 1
        assert misconception.occurrence_count == 3

    def test_resolved_misconceptions_never_match(self, tracker, profile, node, now):
        wrong(tracker, profile, node, "2x", now)
        tracker.resolve(profile, node, now)
        tracker.resolve(profile, node, now)

        result = wrong(tracker, profile, node, "2x", now + timedelta(days=1))

        # The resolved record's occurrence still counts as recent evidence
        assert result is not None
        assert result is not node.misconceptions[0]
        assert result.occurrence_count == 2
        assert node.misconceptions[0].status is MisconceptionStatus.RESOLVED

    def test_each_misconception_moves_one_step(self, tracker, profile, node, now):
        wrong(tracker, profile, node, "2x", now)
        wrong(tracker, profile, node, "banana", now)
        first, second = node.misconceptions
        tracker.resolve(profile, node, now)
        wrong(tracker, profile, node, "banana", now)

        tracker.resolve(profile, node, now)

        assert first.status is MisconceptionStatus.RESOLVED
        assert second.status is MisconceptionStatus.RESOLVING


class TestTransitions:
    def _misconception(self, now, status=MisconceptionStatus.ACTIVE):
        return Misconception(
            pattern="2x",
            correct_understanding="2x+1",
            status=status,
            first_detected=now,
            last_detected=now,
        )

    def test_advance_from_resolved_raises(self, now):
        misconception = self._misconception(now, MisconceptionStatus.RESOLVED)
        with pytest.raises(InvalidTransitionError):
            misconception.advance(now)

    def test_record_occurrence_on_resolved_raises(self, now):
        misconception = self._misconception(now, MisconceptionStatus.RESOLVED)
        occurrence = MisconceptionOccurrence(
            session_id="s", timestamp=now, student_answer="2x", expected_answer="2x+1", context="c"
        )
        with pytest.raises(InvalidTransitionError):
            misconception.record_occurrence(occurrence, now)

    def test_status_accepts_string_values(self, now):
        misconception = self._misconception(now, "resolving")
        assert misconception.status is MisconceptionStatus.RESOLVING
