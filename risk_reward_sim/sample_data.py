"""
Sample data generator for testing and demonstration.

This module plays synthetic wagers through a simulator so the analytics
views have a realistic history to work on without manual betting.
"""

import logging
import random
from datetime import datetime, timedelta
from typing import Optional

from .catalog import list_events
from .errors import WagerError
from .models import GameState
from .simulator import BettingSimulator

logger = logging.getLogger(__name__)


# Fraction of balance staked per bet, by play style
PLAY_STYLES = {
    "cautious": (0.02, 0.06),
    "balanced": (0.05, 0.15),
    "reckless": (0.15, 0.45),
}


def spawn_seeds(seed: Optional[int], count: int) -> list[int]:
    """
    Derive independent child seeds from one parent seed.

    Each random stream gets its own seed, so one user-facing seed stays
    reproducible while the streams draw independently.
    """
    parent = random.Random(seed)
    return [parent.getrandbits(64) for _ in range(count)]


class SteppingClock:
    """Clock that advances by a random gap on every call."""

    def __init__(
        self,
        rng: random.Random,
        start: Optional[datetime] = None,
        break_chance: float = 0.1,
    ):
        self.rng = rng
        self.current = start or datetime.utcnow() - timedelta(days=2)
        self.break_chance = break_chance

    def __call__(self) -> datetime:
        if self.rng.random() < self.break_chance:
            gap = timedelta(minutes=self.rng.randint(31, 240))
        else:
            gap = timedelta(seconds=self.rng.randint(10, 300))
        self.current += gap
        return self.current


def generate_sample_history(
    simulator: Optional[BettingSimulator] = None,
    num_bets: int = 30,
    style: str = "balanced",
    seed: Optional[int] = None,
    start: Optional[datetime] = None,
) -> dict:
    """
    Generate a synthetic betting history.

    Args:
        simulator: Simulator to play on. A fresh one with a stepping clock is
            created if not provided.
        num_bets: Number of wagers to attempt.
        style: Key of PLAY_STYLES controlling stake sizes.
        seed: Seed for reproducible histories.
        start: Timestamp before the first bet.

    Returns:
        Dictionary with generation statistics.

    Raises:
        ValueError: If the style is unknown.
    """
    if style not in PLAY_STYLES:
        raise ValueError(f"Unknown play style '{style}'; choose one of {sorted(PLAY_STYLES)}")

    rng = random.Random(seed)
    if simulator is None:
        simulator = BettingSimulator(rng=rng, clock=SteppingClock(rng, start))

    low, high = PLAY_STYLES[style]
    events = list_events()

    stats = {
        "bets_placed": 0,
        "bets_rejected": 0,
        "final_balance": simulator.balance,
        "state": simulator.state.value,
    }

    for _ in range(num_bets):
        if simulator.state != GameState.PLAYING:
            break

        event = rng.choice(events)
        amount = round(simulator.balance * rng.uniform(low, high))
        amount = max(amount, event.min_bet)
        if event.max_bet is not None:
            amount = min(amount, event.max_bet)

        try:
            simulator.place_wager(event.id, amount)
            stats["bets_placed"] += 1
        except WagerError as e:
            stats["bets_rejected"] += 1
            logger.debug(f"Sample wager skipped: {e}")

    stats["final_balance"] = simulator.balance
    stats["state"] = simulator.state.value

    logger.info(
        f"Generated {stats['bets_placed']} sample bets "
        f"({stats['bets_rejected']} rejected), balance {simulator.balance:g}"
    )
    return stats


def clear_sample_history(simulator: BettingSimulator) -> None:
    """Reset the simulator's ledger and any stored history."""
    simulator.reset_ledger()
