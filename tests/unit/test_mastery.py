"""
Unit tests for the Bayesian mastery update and mastery bands.

Tests:
- BKT posterior for correct and incorrect answers
- Absorbing priors at 0 and 1
- Band classification thresholds
"""

import pytest

from learner_graph.core.mastery import BKTParams, MasteryBand, bayesian_update, round_half_up


class TestBayesianUpdate:
    """Tests for the single-step BKT formula."""

    def test_correct_answer_from_initial_prior(self):
        # 0.9 * 0.1 / (0.9 * 0.1 + 0.25 * 0.9)
        result = bayesian_update(0.1, is_correct=True)
        assert result == pytest.approx(0.09 / 0.315)
        assert result > 0.1

    def test_incorrect_answer_from_initial_prior(self):
        # 0.1 * 0.1 / (0.1 * 0.1 + 0.75 * 0.9)
        result = bayesian_update(0.1, is_correct=False)
        assert result == pytest.approx(0.01 / 0.685)
        assert result < 0.1

    def test_custom_params(self):
        params = BKTParams(slip=0.2, guess=0.2)
        result = bayesian_update(0.5, is_correct=True, params=params)
        assert result == pytest.approx(0.4 / 0.5)

    @pytest.mark.parametrize("prior", [0.0, 1.0])
    @pytest.mark.parametrize("is_correct", [True, False])
    def test_absorbing_priors_unchanged(self, prior, is_correct):
        assert bayesian_update(prior, is_correct) == prior

    def test_zero_probability_evidence_keeps_prior(self):
        # No slips and certain guesses: a wrong answer has probability 0
        params = BKTParams(slip=0.0, guess=1.0)
        assert bayesian_update(0.4, is_correct=False, params=params) == 0.4

    def test_repeated_updates_stay_in_unit_interval(self):
        p = 0.1
        for i in range(200):
            p = bayesian_update(p, is_correct=(i % 3 != 0))
            assert 0.0 <= p <= 1.0


class TestMasteryBand:
    @pytest.mark.parametrize(
        "score,band",
        [
            (0.0, MasteryBand.STRUGGLING),
            (0.29, MasteryBand.STRUGGLING),
            (0.3, MasteryBand.LEARNING),
            (0.79, MasteryBand.LEARNING),
            (0.8, MasteryBand.MASTERED),
            (1.0, MasteryBand.MASTERED),
        ],
    )
    def test_from_score(self, score, band):
        assert MasteryBand.from_score(score) is band

    def test_custom_thresholds(self):
        assert MasteryBand.from_score(0.7, mastered_threshold=0.7) is MasteryBand.MASTERED


class TestRoundHalfUp:
    def test_halves_round_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3

    def test_non_halves(self):
        assert round_half_up(2.49) == 2
        assert round_half_up(10.92) == 11
