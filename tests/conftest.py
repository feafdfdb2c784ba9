"""
Shared fixtures for the Risk Reward Simulator tests.
"""

import os
import tempfile
from datetime import datetime, timedelta

import pytest

from risk_reward_sim.database import Database
from risk_reward_sim.models import BetRecord, Outcome


BASE_TIME = datetime(2024, 3, 1, 14, 0, 0)


class ScriptedRandom:
    """Random source that replays a fixed list of draws."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls]
        self.calls += 1
        return value


class FixedClock:
    """Clock returning a preset sequence of timestamps."""

    def __init__(self, start=BASE_TIME, step=timedelta(minutes=5)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current += self.step
        return now


def build_history(steps, start_balance=1000.0, gap=timedelta(minutes=5), start=BASE_TIME):
    """
    Build a chained history from (amount, won, risk) or
    (amount, won, risk, event_id) tuples.

    Every bet pays 1:1 on a win, balances chain from start_balance
    and timestamps are `gap` apart.
    """
    history = []
    balance = start_balance
    for i, step in enumerate(steps):
        amount, won, risk = step[:3]
        event_id = step[3] if len(step) > 3 else "coin-flip"
        settlement = amount if won else -amount
        balance = max(0.0, balance + settlement)
        history.append(BetRecord(
            id=f"bet-{i}",
            event_id=event_id,
            event_name=event_id.replace("-", " ").title(),
            bet_amount=amount,
            outcome=Outcome.WIN if won else Outcome.LOSS,
            settlement_amount=settlement,
            balance_after=balance,
            risk_percentage=risk,
            timestamp=start + gap * i,
        ))
    return history


@pytest.fixture
def scripted_random():
    """Factory for scripted random sources."""
    return ScriptedRandom


@pytest.fixture
def fixed_clock():
    """Clock advancing five minutes per call from BASE_TIME."""
    return FixedClock()


@pytest.fixture
def make_history():
    """Factory for chained bet histories."""
    return build_history


@pytest.fixture
def test_db():
    """Create a temporary test database."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    db = Database(db_path=path)
    yield db
    os.unlink(path)
