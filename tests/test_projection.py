"""
Tests for the projection engine.
"""

import random

import pytest

from risk_reward_sim.projection import (
    ProjectionConfig,
    ProjectionEngine,
    bankruptcy_risk_breakdown,
    map_risk_category,
    profit_potential,
    project,
    value_at_risk,
)


class ConstantRandom:
    """Every draw is 0.5: zero perturbation, outcome decided by win rate alone."""

    def random(self) -> float:
        return 0.5


@pytest.fixture
def steady_history(make_history):
    return make_history([(50, i % 2 == 0, 30) for i in range(12)])


class TestValueAtRisk:
    """Tests for value_at_risk."""

    def test_empty(self):
        assert value_at_risk([]) == 0.0

    def test_reads_fifth_percentile(self):
        changes = [-100, -50] + [10] * 18
        # floor(20 * 0.05) = 1 -> second smallest
        assert value_at_risk(changes) == 50

    def test_small_series_uses_worst(self):
        assert value_at_risk([30, -20, 10]) == 20

    def test_absolute_value(self):
        assert value_at_risk([5, 10, 15]) == 5


class TestScoring:
    """Tests for category mapping and risk breakdown."""

    @pytest.mark.parametrize("score,category", [
        (0, "Very Low"),
        (19.99, "Very Low"),
        (20, "Low"),
        (40, "Medium"),
        (60, "High"),
        (79.9, "High"),
        (80, "Very High"),
        (100, "Very High"),
    ])
    def test_map_risk_category(self, score, category):
        assert map_risk_category(score) == category

    def test_profit_potential(self):
        assert profit_potential(1501, 1000) == "High"
        assert profit_potential(1500, 1000) == "Medium"
        assert profit_potential(1101, 1000) == "Medium"
        assert profit_potential(1100, 1000) == "Low"

    def test_breakdown_caps(self):
        breakdown = bankruptcy_risk_breakdown(
            final_balance=0,
            min_balance=0,
            start_balance=1000,
            balance_volatility=5.0,
            var_amount=10000,
            avg_balance=100,
            bet_size_std_dev=3.0,
        )
        assert breakdown.final_balance_contribution == 30
        assert breakdown.min_balance_contribution == 25
        assert breakdown.volatility_contribution == 20
        assert breakdown.var_contribution == 15
        assert breakdown.bet_sizing_contribution == 10
        assert breakdown.total == 100

    def test_breakdown_floors_gains_at_zero(self):
        breakdown = bankruptcy_risk_breakdown(
            final_balance=2000,
            min_balance=1000,
            start_balance=1000,
            balance_volatility=0.0,
            var_amount=0.0,
            avg_balance=1500,
            bet_size_std_dev=0.0,
        )
        assert breakdown.total == 0

    def test_dominant_factor(self):
        breakdown = bankruptcy_risk_breakdown(
            final_balance=1000,
            min_balance=500,
            start_balance=1000,
            balance_volatility=0.0,
            var_amount=0.0,
            avg_balance=900,
            bet_size_std_dev=0.0,
        )
        assert breakdown.dominant_factor() == "min_balance_contribution"


class TestProjectionEngine:
    """Tests for ProjectionEngine.project."""

    def test_short_history_returns_none(self, make_history):
        engine = ProjectionEngine(rng=random.Random(1))
        assert engine.project(make_history([(50, True, 30)] * 4), 1000, 25) is None

    @pytest.mark.parametrize("horizon", [0, 5, 20, 100])
    def test_invalid_horizon(self, steady_history, horizon):
        with pytest.raises(ValueError):
            ProjectionEngine(rng=random.Random(1)).project(steady_history, 1000, horizon)

    @pytest.mark.parametrize("horizon", [10, 25, 50])
    def test_result_structure(self, steady_history, horizon):
        result = ProjectionEngine(rng=random.Random(42)).project(steady_history, 1000, horizon)

        assert result.horizon == horizon
        assert len(result.trajectory) == horizon + 1
        assert len(result.steps) == horizon
        assert result.trajectory[0] == 1000
        assert result.final_balance == result.trajectory[-1]
        assert all(balance >= 0 for balance in result.trajectory)
        assert result.min_balance <= result.final_balance <= result.max_balance
        assert 0 <= result.projected_win_rate <= 1
        assert all(step.bet_size >= 10 for step in result.steps)
        assert all(5 <= step.risk_level <= 95 for step in result.steps)

    def test_score_is_sum_of_capped_components(self, steady_history):
        cfg = ProjectionConfig()
        engine = ProjectionEngine(rng=random.Random(7))
        for _ in range(30):
            result = engine.project(steady_history, 1000, 25)
            b = result.risk_breakdown
            assert 0 <= b.final_balance_contribution <= cfg.CAP_FINAL_BALANCE
            assert 0 <= b.min_balance_contribution <= cfg.CAP_MIN_BALANCE
            assert 0 <= b.volatility_contribution <= cfg.CAP_VOLATILITY
            assert 0 <= b.var_contribution <= cfg.CAP_VAR
            assert 0 <= b.bet_sizing_contribution <= cfg.CAP_BET_SIZING
            assert result.bankruptcy_risk_score == pytest.approx(b.total)
            assert 0 <= result.bankruptcy_risk_score <= 100
            assert result.bankruptcy_risk_category == map_risk_category(result.bankruptcy_risk_score)

    def test_seeded_runs_are_reproducible(self, steady_history):
        first = ProjectionEngine(rng=random.Random(99)).project(steady_history, 1000, 50)
        second = ProjectionEngine(rng=random.Random(99)).project(steady_history, 1000, 50)
        assert first.trajectory == second.trajectory
        assert first.bankruptcy_risk_score == second.bankruptcy_risk_score

    def test_does_not_mutate_history(self, steady_history):
        before = list(steady_history)
        ProjectionEngine(rng=random.Random(3)).project(steady_history, 1000, 25)
        assert steady_history == before

    def test_winning_streak_projects_growth(self, make_history):
        history = make_history([(50, True, 30)] * 10)
        result = ProjectionEngine(rng=ConstantRandom()).project(history, 1000, 10)

        # Win rate clamps to 0.95; each step wins 50 * 1.3 * 0.8 = 52
        assert result.trajectory == pytest.approx([1000 + 52 * i for i in range(11)])
        assert result.projected_win_rate == 1.0
        assert result.value_at_risk == pytest.approx(52)
        assert result.profit_potential == "High"
        assert result.risk_breakdown.final_balance_contribution == 0
        assert result.risk_breakdown.min_balance_contribution == 0
        assert result.bankruptcy_risk_category == "Very Low"

    def test_losing_streak_projects_bankruptcy(self, make_history):
        history = make_history([(100, False, 40)] * 10)
        result = ProjectionEngine(rng=ConstantRandom()).project(history, 1000, 25)

        # Win rate clamps to 0.01; ten losses of 100 empty the balance
        assert result.trajectory[10] == 0
        assert result.final_balance == 0
        assert result.min_balance == 0
        assert result.profit_potential == "Low"
        assert result.risk_breakdown.final_balance_contribution == 30
        assert result.risk_breakdown.min_balance_contribution == 25
        assert result.bankruptcy_risk_category == "Very High"

    def test_category_distribution(self, steady_history):
        engine = ProjectionEngine(rng=random.Random(5))
        counts = engine.category_distribution(steady_history, 1000, 10, runs=50)
        assert sum(counts.values()) == 50

    def test_to_dict(self, steady_history):
        data = project(steady_history, 1000, 10, rng=random.Random(8)).to_dict()
        assert data["horizon"] == 10
        assert len(data["trajectory"]) == 11
        assert set(data["risk_breakdown"]) == {
            "final_balance_contribution",
            "min_balance_contribution",
            "volatility_contribution",
            "var_contribution",
            "bet_sizing_contribution",
        }
