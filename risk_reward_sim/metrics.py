"""
Metrics aggregation for betting histories.

Every function here is a pure function of the bet history:
- Win/loss counts, win rate and win/loss ratio
- Net profit and ROI
- Stake-as-fraction-of-balance series
- Maximum drawdown of the balance_after series
- Winning and losing streaks
- Recovery rate after losses
- Diversification across events (1 - Gini of per-event bet shares)
- Per-event breakdown
- Trend metrics comparing the most recent bets against the whole history

Histories are ordered by timestamp before any order-sensitive calculation.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .models import BetRecord
from .utils import gini_coefficient, mean, standard_deviation

logger = logging.getLogger(__name__)


RECENT_WINDOW = 5  # Bets compared against the full history for trends

# Trend weights
WIN_RATE_TREND_WEIGHT = 0.5
BET_SIZE_TREND_WEIGHT = 0.3
RISK_TREND_WEIGHT = 0.2


@dataclass
class StreakData:
    """Tracks winning and losing streaks."""
    current_streak: int = 0          # Positive = winning, negative = losing
    current_streak_type: str = "none"  # "winning", "losing", "none"
    longest_winning_streak: int = 0
    longest_losing_streak: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "current_streak": self.current_streak,
            "current_streak_type": self.current_streak_type,
            "longest_winning_streak": self.longest_winning_streak,
            "longest_losing_streak": self.longest_losing_streak,
        }


@dataclass
class EventStats:
    """Per-event activity for one history."""
    event_id: str
    event_name: str
    bets: int = 0
    wins: int = 0
    total_staked: float = 0.0
    net_profit: float = 0.0

    @property
    def success_rate(self) -> float:
        """Win rate on this event (0-1)."""
        return self.wins / self.bets if self.bets else 0.0

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "event_name": self.event_name,
            "bets": self.bets,
            "wins": self.wins,
            "success_rate": round(self.success_rate, 4),
            "total_staked": round(self.total_staked, 2),
            "net_profit": round(self.net_profit, 2),
        }


@dataclass
class TrendMetrics:
    """Baseline and recent-trend behavior, used to drive projections."""
    win_rate: float = 0.0
    avg_bet_size: float = 0.0
    avg_risk_level: float = 0.0
    recent_win_rate: float = 0.0
    win_rate_trend: float = 0.0
    bet_size_trend: float = 0.0
    risk_trend: float = 0.0
    avg_betting_interval_days: float = 0.0
    avg_bet_size_ratio: float = 0.0
    bet_size_std_dev: float = 0.0


@dataclass
class MetricsSummary:
    """Financial and behavioral summary of a betting history."""
    total_bets: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    win_loss_ratio: float = 0.0
    total_won: float = 0.0
    total_lost: float = 0.0
    total_staked: float = 0.0
    net_profit: float = 0.0
    roi: float = 0.0  # Fraction of total staked
    stake_fractions: list = field(default_factory=list)
    avg_stake_fraction: float = 0.0
    max_stake_fraction: float = 0.0
    max_drawdown: float = 0.0  # Percent
    streaks: StreakData = field(default_factory=StreakData)
    recovery_rate: float = 0.0  # Fraction of losses followed by a win
    diversification_index: float = 0.0
    avg_risk_level: float = 0.0
    event_breakdown: dict = field(default_factory=dict)  # event_id -> EventStats

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "total_bets": self.total_bets,
            "wins": self.wins,
            "losses": self.losses,
            "win_rate": round(self.win_rate, 4),
            "win_loss_ratio": round(self.win_loss_ratio, 4),
            "total_won": round(self.total_won, 2),
            "total_lost": round(self.total_lost, 2),
            "total_staked": round(self.total_staked, 2),
            "net_profit": round(self.net_profit, 2),
            "roi": round(self.roi, 4),
            "avg_stake_fraction": round(self.avg_stake_fraction, 4),
            "max_stake_fraction": round(self.max_stake_fraction, 4),
            "max_drawdown": round(self.max_drawdown, 2),
            "streaks": self.streaks.to_dict(),
            "recovery_rate": round(self.recovery_rate, 4),
            "diversification_index": round(self.diversification_index, 4),
            "avg_risk_level": round(self.avg_risk_level, 2),
            "event_breakdown": {k: v.to_dict() for k, v in self.event_breakdown.items()},
        }


def sort_history(history: Sequence[BetRecord]) -> list[BetRecord]:
    """Stable chronological ordering of a history."""
    return sorted(history, key=lambda bet: bet.timestamp)


def count_outcomes(history: Sequence[BetRecord]) -> tuple[int, int]:
    """Return (wins, losses)."""
    wins = sum(1 for bet in history if bet.is_win)
    return wins, len(history) - wins


def win_loss_ratio(history: Sequence[BetRecord]) -> float:
    """Wins divided by losses; the win count itself when there are no losses."""
    wins, losses = count_outcomes(history)
    if losses == 0:
        return float(wins)
    return wins / losses


def net_profit(history: Sequence[BetRecord]) -> float:
    """Sum of winning settlements minus sum of lost stakes."""
    won = sum(bet.settlement_amount for bet in history if bet.is_win)
    lost = sum(bet.bet_amount for bet in history if not bet.is_win)
    return won - lost


def return_on_investment(history: Sequence[BetRecord]) -> float:
    """Net profit as a fraction of the total amount staked."""
    staked = sum(bet.bet_amount for bet in history)
    if staked <= 0:
        return 0.0
    return net_profit(history) / staked


def stake_fractions(history: Sequence[BetRecord]) -> list[float]:
    """Stake as a fraction of balance_after for each bet."""
    return [bet.stake_fraction for bet in history]


def max_drawdown(history: Sequence[BetRecord]) -> float:
    """
    Largest peak-to-trough decline of the balance_after series, in percent.

    The first bet's balance seeds the running peak.
    """
    ordered = sort_history(history)
    if not ordered:
        return 0.0

    peak = ordered[0].balance_after
    worst = 0.0
    for bet in ordered:
        if bet.balance_after > peak:
            peak = bet.balance_after
        if peak > 0:
            drawdown = (peak - bet.balance_after) / peak * 100
            worst = max(worst, drawdown)
    return worst


def calculate_streaks(history: Sequence[BetRecord]) -> StreakData:
    """
    Calculate winning and losing streaks from a history.

    Returns:
        StreakData whose current_streak is positive for a run of wins
        and negative for a run of losses.
    """
    streaks = StreakData()
    run = 0
    run_is_win: Optional[bool] = None

    for bet in sort_history(history):
        if bet.is_win == run_is_win:
            run += 1
        else:
            run = 1
            run_is_win = bet.is_win

        if run_is_win:
            streaks.longest_winning_streak = max(streaks.longest_winning_streak, run)
        else:
            streaks.longest_losing_streak = max(streaks.longest_losing_streak, run)

    if run_is_win is not None:
        streaks.current_streak = run if run_is_win else -run
        streaks.current_streak_type = "winning" if run_is_win else "losing"

    return streaks


def recovery_rate(history: Sequence[BetRecord]) -> float:
    """Fraction of losses (with a following bet) that were followed by a win."""
    ordered = sort_history(history)
    losses_followed = 0
    recovered = 0
    for previous, current in zip(ordered, ordered[1:]):
        if not previous.is_win:
            losses_followed += 1
            if current.is_win:
                recovered += 1
    if losses_followed == 0:
        return 0.0
    return recovered / losses_followed


def diversification_index(history: Sequence[BetRecord]) -> float:
    """
    1 - Gini coefficient of the per-event share of bets.

    Only events that were actually played contribute a share.
    """
    if not history:
        return 0.0
    counts: dict[str, int] = defaultdict(int)
    for bet in history:
        counts[bet.event_id] += 1
    shares = [count / len(history) for count in counts.values()]
    return 1 - gini_coefficient(shares)


def event_breakdown(history: Sequence[BetRecord]) -> dict[str, EventStats]:
    """Group activity by event id, in first-played order."""
    breakdown: dict[str, EventStats] = {}
    for bet in sort_history(history):
        stats = breakdown.get(bet.event_id)
        if stats is None:
            stats = breakdown[bet.event_id] = EventStats(bet.event_id, bet.event_name)
        stats.bets += 1
        stats.total_staked += bet.bet_amount
        if bet.is_win:
            stats.wins += 1
            stats.net_profit += bet.settlement_amount
        else:
            stats.net_profit -= bet.bet_amount
    return breakdown


def most_played_event(history: Sequence[BetRecord]) -> Optional[EventStats]:
    """Event with the most bets, or None for an empty history."""
    breakdown = event_breakdown(history)
    if not breakdown:
        return None
    return max(breakdown.values(), key=lambda stats: stats.bets)


def success_extremes(
    history: Sequence[BetRecord],
    min_bets: int = 2
) -> tuple[Optional[EventStats], Optional[EventStats]]:
    """
    Most and least successful events among those with enough bets.

    Returns:
        Tuple of (best, worst); both None if no event has min_bets bets.
    """
    eligible = [s for s in event_breakdown(history).values() if s.bets >= min_bets]
    if not eligible:
        return None, None
    ranked = sorted(eligible, key=lambda stats: stats.success_rate, reverse=True)
    return ranked[0], ranked[-1]


def calculate_trend_metrics(history: Sequence[BetRecord]) -> TrendMetrics:
    """
    Baseline averages plus weighted trend deltas of the latest bets.

    Trend deltas compare the most recent RECENT_WINDOW bets against the
    full history: win rate difference (weight 0.5), relative bet size
    difference (weight 0.3) and relative risk difference (weight 0.2).
    """
    if not history:
        return TrendMetrics()

    ordered = sort_history(history)
    win_rate = sum(1 for bet in ordered if bet.is_win) / len(ordered)
    avg_bet_size = mean([bet.bet_amount for bet in ordered])
    avg_risk = mean([bet.risk_percentage for bet in ordered])

    recent = ordered[-RECENT_WINDOW:]
    recent_win_rate = sum(1 for bet in recent if bet.is_win) / len(recent)
    recent_bet_size = mean([bet.bet_amount for bet in recent])
    recent_risk = mean([bet.risk_percentage for bet in recent])

    win_rate_trend = (recent_win_rate - win_rate) * WIN_RATE_TREND_WEIGHT
    bet_size_trend = (
        (recent_bet_size - avg_bet_size) / avg_bet_size * BET_SIZE_TREND_WEIGHT
        if avg_bet_size > 0 else 0.0
    )
    risk_trend = (
        (recent_risk - avg_risk) / avg_risk * RISK_TREND_WEIGHT
        if avg_risk > 0 else 0.0
    )

    gaps = [
        (current.timestamp - previous.timestamp).total_seconds() / 86400
        for previous, current in zip(ordered, ordered[1:])
    ]

    ratios = stake_fractions(ordered)

    return TrendMetrics(
        win_rate=win_rate,
        avg_bet_size=avg_bet_size,
        avg_risk_level=avg_risk,
        recent_win_rate=recent_win_rate,
        win_rate_trend=win_rate_trend,
        bet_size_trend=bet_size_trend,
        risk_trend=risk_trend,
        avg_betting_interval_days=mean(gaps),
        avg_bet_size_ratio=mean(ratios),
        bet_size_std_dev=standard_deviation(ratios),
    )


def calculate_metrics(history: Sequence[BetRecord]) -> MetricsSummary:
    """
    Build the full metrics summary for a history.

    Args:
        history: Settled bets in any order.

    Returns:
        MetricsSummary; all fields are zero for an empty history.
    """
    summary = MetricsSummary()
    if not history:
        return summary

    ordered = sort_history(history)
    wins, losses = count_outcomes(ordered)
    fractions = stake_fractions(ordered)

    summary.total_bets = len(ordered)
    summary.wins = wins
    summary.losses = losses
    summary.win_rate = wins / len(ordered)
    summary.win_loss_ratio = win_loss_ratio(ordered)
    summary.total_won = sum(bet.settlement_amount for bet in ordered if bet.is_win)
    summary.total_lost = sum(bet.bet_amount for bet in ordered if not bet.is_win)
    summary.total_staked = sum(bet.bet_amount for bet in ordered)
    summary.net_profit = summary.total_won - summary.total_lost
    summary.roi = summary.net_profit / summary.total_staked if summary.total_staked > 0 else 0.0
    summary.stake_fractions = fractions
    summary.avg_stake_fraction = mean(fractions)
    summary.max_stake_fraction = max(fractions)
    summary.max_drawdown = max_drawdown(ordered)
    summary.streaks = calculate_streaks(ordered)
    summary.recovery_rate = recovery_rate(ordered)
    summary.diversification_index = diversification_index(ordered)
    summary.avg_risk_level = mean([bet.risk_percentage for bet in ordered])
    summary.event_breakdown = event_breakdown(ordered)

    logger.debug(f"Calculated metrics for {len(ordered)} bets")
    return summary
