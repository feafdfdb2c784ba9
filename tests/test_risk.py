"""
Tests for risk scoring and persona classification.
"""

import pytest

from risk_reward_sim.catalog import PERSONAS, get_event
from risk_reward_sim.risk import (
    classify_persona,
    expected_value,
    max_bet_for,
    score_event_risk,
    score_risk,
)


class TestScoreRisk:
    """Tests for score_risk."""

    def test_weighted_blend(self):
        # 0.1 * 50 + 0.5 * 30 + 0.1 * 20
        assert score_risk(0.5, 1000, 100) == 22

    def test_zero_balance_scores_zero(self):
        assert score_risk(0.5, 0, 100) == 0
        assert score_risk(0.5, -10, 100) == 0

    def test_stake_factor_capped_at_one(self):
        assert score_risk(0.5, 100, 500) == 85
        assert score_risk(0.5, 100, 100) == 85

    def test_certain_event_with_no_stake(self):
        assert score_risk(1.0, 1000, 0) == 0

    def test_rounds_half_up(self):
        # 2.5 + 15 + 1 = 18.5
        assert score_risk(0.5, 1000, 50) == 19

    def test_bounds(self):
        for p in (0.01, 0.027, 0.166, 0.5, 1.0):
            for balance in (1, 50, 1000, 25000):
                for amount in (0, 1, 10, 100, 1000, 50000):
                    score = score_risk(p, balance, amount)
                    assert isinstance(score, int)
                    assert 0 <= score <= 100

    def test_monotonic_in_amount(self):
        for p in (0.05, 0.3, 0.5):
            previous = -1
            for amount in range(0, 1001, 25):
                score = score_risk(p, 1000, amount)
                assert score >= previous
                previous = score

    def test_event_risk_uses_event_probability(self):
        roulette = get_event("roulette")
        assert score_event_risk(roulette, 1000, 100) == score_risk(0.027, 1000, 100)


class TestClassifyPersona:
    """Tests for classify_persona."""

    @pytest.mark.parametrize("risk,expected", [
        (0, "conservative"),
        (30, "conservative"),
        (31, "balanced"),
        (70, "balanced"),
        (71, "aggressive"),
        (100, "aggressive"),
    ])
    def test_range_boundaries(self, risk, expected):
        assert classify_persona(risk).id == expected

    def test_every_score_has_exactly_one_persona(self):
        for risk in range(101):
            matches = [p for p in PERSONAS if p.contains(risk)]
            assert len(matches) == 1


class TestMaxBet:
    """Tests for max_bet_for."""

    def test_caps_by_persona(self):
        conservative, balanced, aggressive = PERSONAS
        assert max_bet_for(1000, conservative) == 100
        assert max_bet_for(1000, balanced) == 300
        assert max_bet_for(1000, aggressive) == 1000

    def test_floors_fractional_caps(self):
        assert max_bet_for(999.9, PERSONAS[0]) == 99

    def test_zero_balance(self):
        assert max_bet_for(0, PERSONAS[2]) == 0

    def test_low_risk_persona_caps_large_stake(self):
        # A wager scored at 25 risk is held to 10% of the bankroll
        assert max_bet_for(1000, classify_persona(25)) == 100


class TestExpectedValue:
    """Tests for expected_value."""

    def test_fair_coin_is_zero(self):
        assert expected_value(100, 2.0, 0.5) == pytest.approx(0.0)

    def test_dice_roll_slightly_negative(self):
        assert expected_value(100, 6.0, 0.166) == pytest.approx(-0.4)
