"""
Behavior analysis for the Risk Reward Simulator.

Looks at how a player bets rather than what they win:
- Behavioral profile: pacing, reactions to losses, risk consistency
  and the traits derived from them
- Sessions: runs of bets separated by gaps longer than 30 minutes
- Time-of-day distribution
- Comparison against responsible gambling benchmarks with an overall
  0-100 score
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional, Sequence

from .metrics import diversification_index, sort_history, stake_fractions
from .models import BetRecord
from .utils import mean, standard_deviation

logger = logging.getLogger(__name__)


MIN_BETS_FOR_PROFILE = 3
MIN_BETS_FOR_BENCHMARKS = 5
SESSION_GAP = timedelta(minutes=30)

# Stake change after a loss
ACCELERATED_RATIO = 1.2
CAUTIOUS_RATIO = 0.8

# Seconds between bets
RAPID_INTERVAL = 30
METHODICAL_INTERVAL = 120

# Risk std dev bounds for traits
CONSISTENT_RISK_STD = 15
EXPLORER_RISK_STD = 25

# Post-outcome risk shift, in risk points
EMOTIONAL_SHIFT = 10


class Benchmarks:
    """Responsible gambling reference values."""
    MAX_RISK_LEVEL = 40               # Percent
    MAX_BANKROLL_PERCENTAGE = 10      # Percent of balance per bet
    MAX_SESSION_DURATION = 60         # Minutes
    MIN_BREAK_FREQUENCY = 4           # Bets per session
    WIN_RATE_EXPECTATION = 0.45
    RISK_DIVERSIFICATION = 0.3
    CHASE_FREQUENCY = 0.15


def _round_opt(value: Optional[float]) -> Optional[float]:
    return round(value, 2) if value is not None else None


@dataclass
class LossReactions:
    """How the stake changed on the bet after each loss."""
    accelerated: int = 0
    cautious: int = 0
    unchanged: int = 0

    def to_dict(self) -> dict:
        return {
            "accelerated": self.accelerated,
            "cautious": self.cautious,
            "unchanged": self.unchanged,
        }


@dataclass
class BehavioralProfile:
    """Pacing, emotional reactions and the traits they imply."""
    avg_betting_interval: int  # Seconds
    loss_reactions: LossReactions
    avg_risk: float
    risk_std_dev: float
    risk_consistency: str
    avg_post_win_risk: Optional[float]   # None without a bet after a win
    avg_post_loss_risk: Optional[float]  # None without a bet after a loss
    traits: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "avg_betting_interval": self.avg_betting_interval,
            "loss_reactions": self.loss_reactions.to_dict(),
            "avg_risk": round(self.avg_risk, 2),
            "risk_std_dev": round(self.risk_std_dev, 2),
            "risk_consistency": self.risk_consistency,
            "avg_post_win_risk": _round_opt(self.avg_post_win_risk),
            "avg_post_loss_risk": _round_opt(self.avg_post_loss_risk),
            "traits": list(self.traits),
        }


@dataclass
class BenchmarkComparison:
    """One user metric against its responsible gambling benchmark."""
    name: str
    user_value: float
    benchmark: float
    score: Optional[float]  # None for informational comparisons
    better: bool

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "user_value": round(self.user_value, 4),
            "benchmark": self.benchmark,
            "score": round(self.score, 2) if self.score is not None else None,
            "better": self.better,
        }


@dataclass
class BenchmarkReport:
    """All comparisons plus the overall responsible gambling score."""
    comparisons: dict  # name -> BenchmarkComparison
    overall_score: int

    def to_dict(self) -> dict:
        return {
            "overall_score": self.overall_score,
            "comparisons": {k: v.to_dict() for k, v in self.comparisons.items()},
        }


def risk_consistency_label(deviation: float) -> str:
    """Describe a standard deviation of risk percentages."""
    if deviation < 10:
        return "Very Consistent"
    if deviation < 20:
        return "Somewhat Consistent"
    if deviation < 30:
        return "Variable"
    return "Highly Variable"


def betting_intervals(history: Sequence[BetRecord]) -> list[float]:
    """Seconds between consecutive bets in chronological order."""
    ordered = sort_history(history)
    return [
        (curr.timestamp - prev.timestamp).total_seconds()
        for prev, curr in zip(ordered, ordered[1:])
    ]


def classify_loss_reactions(history: Sequence[BetRecord]) -> LossReactions:
    """Tally stake changes on the bet that follows each loss."""
    reactions = LossReactions()
    ordered = sort_history(history)
    for prev, curr in zip(ordered, ordered[1:]):
        if prev.is_win:
            continue
        if curr.bet_amount > prev.bet_amount * ACCELERATED_RATIO:
            reactions.accelerated += 1
        elif curr.bet_amount < prev.bet_amount * CAUTIOUS_RATIO:
            reactions.cautious += 1
        else:
            reactions.unchanged += 1
    return reactions


def _derive_traits(
    avg_interval: float,
    reactions: LossReactions,
    risk_std_dev: float,
    avg_risk: float,
    post_win_risk: Optional[float],
    post_loss_risk: Optional[float],
) -> list[str]:
    traits = []

    if avg_interval < RAPID_INTERVAL:
        traits.append("Rapid Bettor")
    elif avg_interval > METHODICAL_INTERVAL:
        traits.append("Methodical Bettor")

    if reactions.accelerated > reactions.cautious and reactions.accelerated > reactions.unchanged:
        traits.append("Loss Chaser")
    elif reactions.cautious > reactions.accelerated and reactions.cautious > reactions.unchanged:
        traits.append("Loss Avoider")

    if risk_std_dev < CONSISTENT_RISK_STD:
        traits.append("Risk Consistent")
    elif risk_std_dev > EXPLORER_RISK_STD:
        traits.append("Risk Explorer")

    # At most one emotional trait, checked in this order
    if post_win_risk is not None and post_win_risk > avg_risk + EMOTIONAL_SHIFT:
        traits.append("Confidence After Wins")
    elif post_loss_risk is not None and post_loss_risk > avg_risk + EMOTIONAL_SHIFT:
        traits.append("Aggressive After Losses")
    elif post_loss_risk is not None and post_loss_risk < avg_risk - EMOTIONAL_SHIFT:
        traits.append("Conservative After Losses")

    return traits


def analyze_behavior(history: Sequence[BetRecord]) -> Optional[BehavioralProfile]:
    """
    Build a behavioral profile from a bet history.

    Args:
        history: Settled bets in any order.

    Returns:
        BehavioralProfile, or None with fewer than 3 bets.
    """
    if len(history) < MIN_BETS_FOR_PROFILE:
        return None

    ordered = sort_history(history)
    intervals = betting_intervals(ordered)
    avg_interval = math.floor(mean(intervals)) if intervals else 0

    reactions = classify_loss_reactions(ordered)

    risks = [bet.risk_percentage for bet in ordered]
    avg_risk = mean(risks)
    risk_std = standard_deviation(risks)

    post_win = [curr.risk_percentage for prev, curr in zip(ordered, ordered[1:]) if prev.is_win]
    post_loss = [curr.risk_percentage for prev, curr in zip(ordered, ordered[1:]) if not prev.is_win]
    post_win_risk = mean(post_win) if post_win else None
    post_loss_risk = mean(post_loss) if post_loss else None

    profile = BehavioralProfile(
        avg_betting_interval=avg_interval,
        loss_reactions=reactions,
        avg_risk=avg_risk,
        risk_std_dev=risk_std,
        risk_consistency=risk_consistency_label(risk_std),
        avg_post_win_risk=post_win_risk,
        avg_post_loss_risk=post_loss_risk,
        traits=_derive_traits(avg_interval, reactions, risk_std, avg_risk, post_win_risk, post_loss_risk),
    )
    logger.debug(f"Behavioral profile over {len(ordered)} bets: {profile.traits}")
    return profile


# ========== Sessions and timing ==========

def split_sessions(history: Sequence[BetRecord], gap: timedelta = SESSION_GAP) -> list[list[BetRecord]]:
    """
    Group bets into sessions.

    A new session starts whenever the gap to the previous bet is
    strictly greater than `gap`.
    """
    sessions: list[list[BetRecord]] = []
    for bet in sort_history(history):
        if sessions and bet.timestamp - sessions[-1][-1].timestamp <= gap:
            sessions[-1].append(bet)
        else:
            sessions.append([bet])
    return sessions


def session_duration_minutes(session: Sequence[BetRecord]) -> float:
    """Minutes from the first to the last bet of a session."""
    if len(session) < 2:
        return 0.0
    return (session[-1].timestamp - session[0].timestamp).total_seconds() / 60


def time_of_day_bucket(hour: int) -> str:
    """night before 6, morning before 12, afternoon before 18, else evening."""
    if hour < 6:
        return "night"
    if hour < 12:
        return "morning"
    if hour < 18:
        return "afternoon"
    return "evening"


def time_of_day_distribution(history: Sequence[BetRecord]) -> dict[str, int]:
    """Count bets per time-of-day bucket."""
    counts = Counter(time_of_day_bucket(bet.timestamp.hour) for bet in history)
    return {bucket: counts.get(bucket, 0) for bucket in ("night", "morning", "afternoon", "evening")}


def chase_frequency(history: Sequence[BetRecord]) -> float:
    """Share of transitions where a loss is followed by a stake above 1.2x."""
    ordered = sort_history(history)
    if len(ordered) < 2:
        return 0.0
    chases = sum(
        1 for prev, curr in zip(ordered, ordered[1:])
        if not prev.is_win and curr.bet_amount > prev.bet_amount * ACCELERATED_RATIO
    )
    return chases / (len(ordered) - 1)


# ========== Benchmarks ==========

def _score_below(user_value: float, benchmark: float) -> float:
    return max(0.0, 100 - (user_value / benchmark) * 100)


def compare_benchmarks(history: Sequence[BetRecord]) -> Optional[BenchmarkReport]:
    """
    Compare a history against responsible gambling benchmarks.

    Six comparisons are scored; win rate is reported but not scored.
    The overall score is the rounded mean of the six scores.

    Args:
        history: Settled bets in any order.

    Returns:
        BenchmarkReport, or None with fewer than 5 bets.
    """
    if len(history) < MIN_BETS_FOR_BENCHMARKS:
        return None

    ordered = sort_history(history)
    sessions = split_sessions(ordered)

    avg_risk = mean([bet.risk_percentage for bet in ordered])
    max_stake_pct = max(stake_fractions(ordered)) * 100

    # Single-bet sessions have no duration
    durations = [session_duration_minutes(s) for s in sessions if len(s) > 1]
    avg_session = mean(durations)
    bets_per_session = len(ordered) / len(sessions)

    win_rate = sum(1 for bet in ordered if bet.is_win) / len(ordered)
    diversification = diversification_index(ordered)
    chase = chase_frequency(ordered)

    b = Benchmarks
    comparisons = {
        "risk_level": BenchmarkComparison(
            "risk_level", avg_risk, b.MAX_RISK_LEVEL,
            _score_below(avg_risk, b.MAX_RISK_LEVEL), avg_risk <= b.MAX_RISK_LEVEL,
        ),
        "bet_size": BenchmarkComparison(
            "bet_size", max_stake_pct, b.MAX_BANKROLL_PERCENTAGE,
            _score_below(max_stake_pct, b.MAX_BANKROLL_PERCENTAGE),
            max_stake_pct <= b.MAX_BANKROLL_PERCENTAGE,
        ),
        "session_duration": BenchmarkComparison(
            "session_duration", avg_session, b.MAX_SESSION_DURATION,
            _score_below(avg_session, b.MAX_SESSION_DURATION), avg_session <= b.MAX_SESSION_DURATION,
        ),
        "break_frequency": BenchmarkComparison(
            "break_frequency", bets_per_session, b.MIN_BREAK_FREQUENCY,
            _score_below(bets_per_session, b.MIN_BREAK_FREQUENCY),
            bets_per_session <= b.MIN_BREAK_FREQUENCY,
        ),
        "win_rate": BenchmarkComparison(
            "win_rate", win_rate, b.WIN_RATE_EXPECTATION, None, win_rate >= b.WIN_RATE_EXPECTATION,
        ),
        "diversification": BenchmarkComparison(
            "diversification", diversification, b.RISK_DIVERSIFICATION,
            min(100.0, (diversification / b.RISK_DIVERSIFICATION) * 100),
            diversification >= b.RISK_DIVERSIFICATION,
        ),
        "chase_losses": BenchmarkComparison(
            "chase_losses", chase, b.CHASE_FREQUENCY,
            _score_below(chase, b.CHASE_FREQUENCY), chase <= b.CHASE_FREQUENCY,
        ),
    }

    scored = [c.score for c in comparisons.values() if c.score is not None]
    overall = int(math.floor(mean(scored) + 0.5))

    return BenchmarkReport(comparisons=comparisons, overall_score=overall)
