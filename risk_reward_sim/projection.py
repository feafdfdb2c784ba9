"""
Projection engine for future balance trajectories.

Extrapolates the player's recent behavior into a run of synthetic wagers
and scores how close the run comes to bankruptcy:

1. Trend metrics from the history (win rate, stake, risk and their
   recent drift).
2. A step-by-step random walk where each step nudges win rate, stake and
   risk by trend / horizon plus a bounded random perturbation.
3. Summary statistics of the trajectory, including an empirical 95%
   Value-at-Risk over the step-to-step balance changes.
4. A 0-100 bankruptcy risk score built from five capped components:

       final balance shortfall     <= 30
       minimum balance shortfall   <= 25
       balance volatility          <= 20
       VaR relative to mean        <= 15
       bet sizing erraticism       <= 10

The walk is a heuristic extrapolation, not a financial model. Its VaR and
volatility figures are internally consistent but should not be presented
as statistically rigorous risk measures. Results are stochastic:
only distributional properties are stable across calls.
"""

import logging
import math
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .config import settings
from .metrics import TrendMetrics, calculate_trend_metrics
from .models import BetRecord
from .utils import RandomSource, clamp, mean, standard_deviation

logger = logging.getLogger(__name__)


SUPPORTED_HORIZONS = (10, 25, 50)
VAR_CONFIDENCE = 0.95


@dataclass
class ProjectionConfig:
    """Simulation bounds and scoring caps."""

    MIN_HISTORY: int = settings.min_history_for_analysis

    # Domain clamps
    MIN_WIN_RATE: float = 0.01
    MAX_WIN_RATE: float = 0.95
    MIN_BET_SIZE: float = 10.0
    MIN_RISK: float = 5.0
    MAX_RISK: float = 95.0

    # Perturbation scales applied to a uniform draw in [-0.1, 0.1)
    WIN_RATE_NOISE: float = 0.05
    BET_SIZE_NOISE: float = 0.1
    RISK_NOISE: float = 1.0

    # Winning steps pay stake * (1 + risk/100) * PAYOUT_DISCOUNT
    PAYOUT_DISCOUNT: float = 0.8

    # Bankruptcy score caps
    CAP_FINAL_BALANCE: float = 30.0
    CAP_MIN_BALANCE: float = 25.0
    CAP_VOLATILITY: float = 20.0
    CAP_VAR: float = 15.0
    CAP_BET_SIZING: float = 10.0
    BET_SIZING_SCALE: float = 5.0


@dataclass
class ProjectedBet:
    """One simulated wager."""
    bet_number: int
    is_win: bool
    bet_size: float
    risk_level: float
    balance: float

    def to_dict(self) -> dict:
        return {
            "bet_number": self.bet_number,
            "outcome": "win" if self.is_win else "loss",
            "bet_size": round(self.bet_size, 2),
            "risk_level": round(self.risk_level, 2),
            "balance": round(self.balance, 2),
        }


@dataclass
class RiskBreakdown:
    """Per-component contributions to the bankruptcy risk score."""
    final_balance_contribution: float = 0.0  # 0-30
    min_balance_contribution: float = 0.0    # 0-25
    volatility_contribution: float = 0.0     # 0-20
    var_contribution: float = 0.0            # 0-15
    bet_sizing_contribution: float = 0.0     # 0-10

    @property
    def total(self) -> float:
        return (
            self.final_balance_contribution
            + self.min_balance_contribution
            + self.volatility_contribution
            + self.var_contribution
            + self.bet_sizing_contribution
        )

    def dominant_factor(self) -> str:
        """Name of the component contributing the most points."""
        contributions = self.to_dict()
        return max(contributions, key=contributions.get)

    def to_dict(self) -> dict:
        return {
            "final_balance_contribution": self.final_balance_contribution,
            "min_balance_contribution": self.min_balance_contribution,
            "volatility_contribution": self.volatility_contribution,
            "var_contribution": self.var_contribution,
            "bet_sizing_contribution": self.bet_sizing_contribution,
        }


@dataclass
class ProjectionResult:
    """Summary of one simulated trajectory."""
    horizon: int
    start_balance: float
    final_balance: float
    projected_win_rate: float
    max_balance: float
    min_balance: float
    average_bet_size: float
    average_risk_level: float
    balance_std_dev: float
    balance_volatility: float
    value_at_risk: float
    bankruptcy_risk_score: float
    bankruptcy_risk_category: str
    profit_potential: str
    risk_breakdown: RiskBreakdown
    trajectory: list = field(default_factory=list)  # Balances, start included
    steps: list = field(default_factory=list)       # ProjectedBet per step

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "horizon": self.horizon,
            "start_balance": round(self.start_balance, 2),
            "final_balance": round(self.final_balance, 2),
            "projected_win_rate": round(self.projected_win_rate, 4),
            "max_balance": round(self.max_balance, 2),
            "min_balance": round(self.min_balance, 2),
            "average_bet_size": round(self.average_bet_size, 2),
            "average_risk_level": round(self.average_risk_level, 2),
            "balance_std_dev": round(self.balance_std_dev, 2),
            "balance_volatility": round(self.balance_volatility, 4),
            "value_at_risk": round(self.value_at_risk, 2),
            "bankruptcy_risk_score": round(self.bankruptcy_risk_score, 2),
            "bankruptcy_risk_category": self.bankruptcy_risk_category,
            "profit_potential": self.profit_potential,
            "risk_breakdown": {k: round(v, 2) for k, v in self.risk_breakdown.to_dict().items()},
            "trajectory": [round(b, 2) for b in self.trajectory],
        }


def value_at_risk(balance_changes: Sequence[float], confidence: float = VAR_CONFIDENCE) -> float:
    """
    Empirical Value-at-Risk of a series of balance changes.

    Args:
        balance_changes: Step-to-step balance deltas.
        confidence: Confidence level (0.95 reads the 5th percentile).

    Returns:
        Absolute value of the change at index floor(n * (1 - confidence))
        of the ascending sort; 0.0 for an empty series.
    """
    if not balance_changes:
        return 0.0
    ordered = sorted(balance_changes)
    index = math.floor(len(ordered) * (1 - confidence))
    return abs(ordered[max(0, min(index, len(ordered) - 1))])


def map_risk_category(score: float) -> str:
    """Map a 0-100 bankruptcy risk score to a category label."""
    if score < 20:
        return "Very Low"
    if score < 40:
        return "Low"
    if score < 60:
        return "Medium"
    if score < 80:
        return "High"
    return "Very High"


def profit_potential(final_balance: float, start_balance: float) -> str:
    """High above 1.5x the start, Medium above 1.1x, otherwise Low."""
    if final_balance > start_balance * 1.5:
        return "High"
    if final_balance > start_balance * 1.1:
        return "Medium"
    return "Low"


def bankruptcy_risk_breakdown(
    final_balance: float,
    min_balance: float,
    start_balance: float,
    balance_volatility: float,
    var_amount: float,
    avg_balance: float,
    bet_size_std_dev: float,
    config: Optional[ProjectionConfig] = None,
) -> RiskBreakdown:
    """
    Score the five bankruptcy risk components, each clamped to [0, cap].

    Args:
        final_balance: Balance at the end of the run.
        min_balance: Lowest balance reached.
        start_balance: Balance the run started from.
        balance_volatility: Std dev of balances divided by their mean.
        var_amount: Value-at-Risk of the step changes.
        avg_balance: Mean balance over the run.
        bet_size_std_dev: Std dev of historical stake/balance ratios.
        config: Caps and scales.

    Returns:
        RiskBreakdown whose total is the bankruptcy risk score.
    """
    cfg = config or ProjectionConfig()

    final_ratio = final_balance / start_balance if start_balance > 0 else 0.0
    min_ratio = min_balance / start_balance if start_balance > 0 else 0.0
    var_ratio = var_amount / avg_balance if avg_balance > 0 else 0.0

    return RiskBreakdown(
        final_balance_contribution=clamp(cfg.CAP_FINAL_BALANCE * (1 - final_ratio), 0.0, cfg.CAP_FINAL_BALANCE),
        min_balance_contribution=clamp(cfg.CAP_MIN_BALANCE * (1 - min_ratio), 0.0, cfg.CAP_MIN_BALANCE),
        volatility_contribution=clamp(cfg.CAP_VOLATILITY * balance_volatility, 0.0, cfg.CAP_VOLATILITY),
        var_contribution=clamp(cfg.CAP_VAR * var_ratio, 0.0, cfg.CAP_VAR),
        bet_sizing_contribution=clamp(
            cfg.CAP_BET_SIZING * bet_size_std_dev * cfg.BET_SIZING_SCALE, 0.0, cfg.CAP_BET_SIZING
        ),
    )


class ProjectionEngine:
    """
    Runs stochastic projections of future betting from a history snapshot.

    The engine never touches a ledger; it works on whatever history and
    balance it is handed.
    """

    def __init__(
        self,
        rng: Optional[RandomSource] = None,
        config: Optional[ProjectionConfig] = None,
    ):
        """
        Initialize the engine.

        Args:
            rng: Random source. Defaults to random.Random().
            config: Simulation configuration.
        """
        self.rng = rng or random.Random()
        self.config = config or ProjectionConfig()

    def _variation(self) -> float:
        """Uniform perturbation in [-0.1, 0.1)."""
        return self.rng.random() * 0.2 - 0.1

    def simulate(
        self,
        trends: TrendMetrics,
        start_balance: float,
        horizon: int,
    ) -> list[ProjectedBet]:
        """
        Walk `horizon` synthetic wagers forward from start_balance.

        Args:
            trends: Baseline and trend metrics.
            start_balance: Balance before the first step.
            horizon: Number of steps.

        Returns:
            One ProjectedBet per step.
        """
        cfg = self.config
        balance = start_balance
        win_rate = trends.win_rate
        bet_size = trends.avg_bet_size
        risk_level = trends.avg_risk_level
        steps: list[ProjectedBet] = []

        for i in range(horizon):
            win_rate = clamp(
                win_rate + trends.win_rate_trend / horizon + self._variation() * cfg.WIN_RATE_NOISE,
                cfg.MIN_WIN_RATE,
                cfg.MAX_WIN_RATE,
            )
            bet_size = max(
                cfg.MIN_BET_SIZE,
                bet_size * (1 + trends.bet_size_trend / horizon + self._variation() * cfg.BET_SIZE_NOISE),
            )
            risk_level = clamp(
                risk_level + trends.risk_trend / horizon + self._variation() * cfg.RISK_NOISE,
                cfg.MIN_RISK,
                cfg.MAX_RISK,
            )

            is_win = self.rng.random() < win_rate
            if is_win:
                balance += bet_size * (1 + risk_level / 100) * cfg.PAYOUT_DISCOUNT
            else:
                balance -= bet_size
            balance = max(0.0, balance)

            steps.append(ProjectedBet(i + 1, is_win, bet_size, risk_level, balance))

        return steps

    def project(
        self,
        history: Sequence[BetRecord],
        current_balance: float,
        horizon: int = 25,
    ) -> Optional[ProjectionResult]:
        """
        Project the next `horizon` bets and score bankruptcy risk.

        Args:
            history: Settled bets (read-only snapshot).
            current_balance: Balance the projection starts from.
            horizon: 10, 25 or 50 bets.

        Returns:
            ProjectionResult, or None when the history is too short.

        Raises:
            ValueError: If the horizon is not supported.
        """
        if horizon not in SUPPORTED_HORIZONS:
            raise ValueError(f"Unsupported horizon {horizon}; choose one of {SUPPORTED_HORIZONS}")
        if len(history) < self.config.MIN_HISTORY:
            return None

        trends = calculate_trend_metrics(history)
        steps = self.simulate(trends, current_balance, horizon)

        trajectory = [current_balance] + [step.balance for step in steps]
        changes = [b - a for a, b in zip(trajectory, trajectory[1:])]

        avg_balance = mean(trajectory)
        std_dev = standard_deviation(trajectory)
        volatility = std_dev / avg_balance if avg_balance > 0 else 0.0
        var_amount = value_at_risk(changes)
        final_balance = trajectory[-1]
        min_balance = min(trajectory)

        breakdown = bankruptcy_risk_breakdown(
            final_balance=final_balance,
            min_balance=min_balance,
            start_balance=current_balance,
            balance_volatility=volatility,
            var_amount=var_amount,
            avg_balance=avg_balance,
            bet_size_std_dev=trends.bet_size_std_dev,
            config=self.config,
        )
        score = breakdown.total

        result = ProjectionResult(
            horizon=horizon,
            start_balance=current_balance,
            final_balance=final_balance,
            projected_win_rate=sum(1 for step in steps if step.is_win) / horizon,
            max_balance=max(trajectory),
            min_balance=min_balance,
            average_bet_size=mean([step.bet_size for step in steps]),
            average_risk_level=mean([step.risk_level for step in steps]),
            balance_std_dev=std_dev,
            balance_volatility=volatility,
            value_at_risk=var_amount,
            bankruptcy_risk_score=score,
            bankruptcy_risk_category=map_risk_category(score),
            profit_potential=profit_potential(final_balance, current_balance),
            risk_breakdown=breakdown,
            trajectory=trajectory,
            steps=steps,
        )

        logger.debug(
            f"Projected {horizon} bets from {current_balance:g}: final {final_balance:.2f}, "
            f"risk {score:.1f} ({result.bankruptcy_risk_category})"
        )
        return result

    def category_distribution(
        self,
        history: Sequence[BetRecord],
        current_balance: float,
        horizon: int = 25,
        runs: int = 200,
    ) -> Counter:
        """
        Repeat the projection and tally the bankruptcy risk categories.

        Returns:
            Counter of category label -> number of runs; empty when the
            history is too short.
        """
        counts: Counter = Counter()
        for _ in range(runs):
            result = self.project(history, current_balance, horizon)
            if result is None:
                return counts
            counts[result.bankruptcy_risk_category] += 1
        return counts


def project(
    history: Sequence[BetRecord],
    current_balance: float,
    horizon: int = 25,
    rng: Optional[RandomSource] = None,
) -> Optional[ProjectionResult]:
    """Run a single projection with the default configuration."""
    return ProjectionEngine(rng=rng).project(history, current_balance, horizon)
