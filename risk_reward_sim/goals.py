"""
Responsible gambling goals.

Goals are user-adjustable thresholds. Evaluating them against a history
fills in the measured value of each goal and whether it is met.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Sequence

from .behavior import session_duration_minutes, split_sessions
from .metrics import sort_history, stake_fractions
from .models import BetRecord, Goal, GoalType
from .utils import mean

logger = logging.getLogger(__name__)


MIN_BETS_FOR_GOALS = 3
CONSECUTIVE_GAP = timedelta(minutes=10)


DEFAULT_GOALS: tuple[Goal, ...] = (
    Goal(
        id="max-bet",
        title="Maximum Bet Size",
        description="Set a maximum percentage of your bankroll for any single bet",
        type=GoalType.PERCENTAGE,
        target_value=10,
    ),
    Goal(
        id="session-limit",
        title="Session Time Limit",
        description="Set a maximum duration for your betting sessions",
        type=GoalType.MINUTES,
        target_value=60,
    ),
    Goal(
        id="bet-frequency",
        title="Daily Bet Limit",
        description="Set a maximum number of bets you want to place per day",
        type=GoalType.COUNT,
        target_value=20,
    ),
    Goal(
        id="risk-level",
        title="Average Risk Level",
        description="Keep your average risk level below this percentage",
        type=GoalType.PERCENTAGE,
        target_value=40,
    ),
    Goal(
        id="break-frequency",
        title="Break Frequency",
        description="Take a break after this many consecutive bets",
        type=GoalType.COUNT,
        target_value=5,
    ),
    Goal(
        id="profit-target",
        title="Profit Target",
        description="Stop when you reach this profit percentage in a session",
        type=GoalType.PERCENTAGE,
        target_value=50,
        is_active=False,
    ),
    Goal(
        id="loss-limit",
        title="Loss Limit",
        description="Stop when you lose this percentage of your bankroll",
        type=GoalType.PERCENTAGE,
        target_value=20,
        is_active=False,
    ),
)


@dataclass
class GoalResult:
    """A goal with its measured value."""
    goal: Goal
    is_met: bool

    @property
    def current_value(self) -> Optional[float]:
        return self.goal.current_value

    def to_dict(self) -> dict:
        return {
            **self.goal.model_dump(mode="json", by_alias=True),
            "isMet": self.is_met,
        }


def default_goals() -> list[Goal]:
    """Fresh copies of the default goal set."""
    return [goal.model_copy() for goal in DEFAULT_GOALS]


def max_consecutive_bets(history: Sequence[BetRecord], gap: timedelta = CONSECUTIVE_GAP) -> int:
    """Longest run of bets each placed less than `gap` after the previous one."""
    ordered = sort_history(history)
    if not ordered:
        return 0
    longest = current = 1
    for prev, curr in zip(ordered, ordered[1:]):
        if curr.timestamp - prev.timestamp < gap:
            current += 1
        else:
            current = 1
        longest = max(longest, current)
    return longest


def max_bets_per_day(history: Sequence[BetRecord]) -> int:
    """Highest number of bets placed on a single calendar day."""
    if not history:
        return 0
    return max(Counter(bet.timestamp.date() for bet in history).values())


def measure_goals(history: Sequence[BetRecord]) -> dict[str, float]:
    """
    Measure every goal metric over a history.

    Returns:
        Dictionary keyed by goal id. Percentages are on a 0-100 scale.
    """
    ordered = sort_history(history)
    sessions = split_sessions(ordered)

    initial_balance = ordered[0].balance_before
    final_balance = ordered[-1].balance_after
    lowest_balance = min(bet.balance_after for bet in ordered)

    if initial_balance > 0:
        profit_pct = (final_balance - initial_balance) / initial_balance * 100
        loss_pct = (initial_balance - lowest_balance) / initial_balance * 100
    else:
        profit_pct = 0.0
        loss_pct = 0.0

    return {
        "max-bet": max(stake_fractions(ordered)) * 100,
        "session-limit": max((session_duration_minutes(s) for s in sessions), default=0.0),
        "bet-frequency": max_bets_per_day(ordered),
        "risk-level": mean([bet.risk_percentage for bet in ordered]),
        "break-frequency": max_consecutive_bets(ordered),
        "profit-target": profit_pct,
        "loss-limit": loss_pct,
    }


def _is_met(goal_id: str, measured: float, target: float) -> bool:
    if goal_id == "profit-target":
        return measured >= target
    return measured <= target


def evaluate_goals(
    history: Sequence[BetRecord],
    goals: Optional[Sequence[Goal]] = None,
) -> list[GoalResult]:
    """
    Evaluate active goals against a history.

    Args:
        history: Settled bets in any order.
        goals: Goals to evaluate. Defaults to DEFAULT_GOALS.

    Returns:
        One GoalResult per active goal with a known id; empty with
        fewer than 3 bets.
    """
    if len(history) < MIN_BETS_FOR_GOALS:
        return []

    measured = measure_goals(history)
    results = []
    for goal in goals if goals is not None else DEFAULT_GOALS:
        if not goal.is_active:
            continue
        if goal.id not in measured:
            logger.warning(f"No measurement for goal '{goal.id}', skipping")
            continue
        value = measured[goal.id]
        results.append(GoalResult(
            goal=goal.model_copy(update={"current_value": value}),
            is_met=_is_met(goal.id, value, goal.target_value),
        ))

    met = sum(1 for r in results if r.is_met)
    logger.debug(f"Goals met: {met}/{len(results)}")
    return results


def goal_progress(results: Sequence[GoalResult]) -> float:
    """Fraction of evaluated goals that are met (0.0 when none)."""
    if not results:
        return 0.0
    return sum(1 for r in results if r.is_met) / len(results)
