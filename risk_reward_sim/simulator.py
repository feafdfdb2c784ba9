"""
Betting simulator facade.

Combines the wager engine with the pull-based analytics (metrics,
patterns, projection, behavior, goals) behind one object. When a
Database is attached, every settled wager and reset is written through
and the ledger is restored from storage on startup.

Module-level functions with the same names work on plain data and do
not need a simulator instance.
"""

import logging
import sqlite3
from datetime import datetime
from typing import Callable, Optional, Sequence

from .behavior import BehavioralProfile, BenchmarkReport
from .behavior import analyze_behavior as _analyze_behavior
from .behavior import compare_benchmarks as _compare_benchmarks
from .catalog import PERSONAS, get_event
from .config import settings
from .database import Database
from .goals import GoalResult, default_goals
from .goals import evaluate_goals as _evaluate_goals
from .metrics import MetricsSummary, calculate_metrics
from .models import BetRecord, GameState, Goal, Persona
from .patterns import PatternDetector, PatternWarning
from .projection import ProjectionEngine, ProjectionResult
from .risk import classify_persona, score_event_risk
from .utils import RandomSource
from .wager import WagerEngine

logger = logging.getLogger(__name__)


class BettingSimulator:
    """
    Single-player betting simulation with analytics.

    Example:
        sim = BettingSimulator()
        sim.place_wager("coin-flip", 50)
        warnings = sim.detect_patterns()
    """

    def __init__(
        self,
        database: Optional[Database] = None,
        rng: Optional[RandomSource] = None,
        projection_rng: Optional[RandomSource] = None,
        clock: Optional[Callable[[], datetime]] = None,
        initial_balance: Optional[float] = None,
        win_goal: Optional[float] = None,
    ):
        """
        Initialize the simulator.

        Args:
            database: Optional storage. When given, the ledger is restored from it.
            rng: Random source for wager outcomes.
            projection_rng: Random source for projections. Defaults to rng.
            clock: Callable returning the current time for bet timestamps.
            initial_balance: Starting and reset balance.
            win_goal: Balance that ends the game as WON.
        """
        self.engine = WagerEngine(
            rng=rng,
            clock=clock,
            initial_balance=initial_balance,
            win_goal=win_goal,
        )
        self.projection_engine = ProjectionEngine(rng=projection_rng or rng)
        self.pattern_detector = PatternDetector()
        self.db = database

        if self.db is not None:
            self._load_from_database()

    def _load_from_database(self) -> None:
        stored = self.db.load_ledger_state()
        if stored is None:
            self.db.save_ledger_state(self.engine.balance, self.engine.state)
            return
        balance, _ = stored
        history = self.db.get_history()
        self.engine.restore(balance, history)
        logger.info(
            f"Restored ledger from {self.db.db_path}: {len(history)} bets, "
            f"balance {balance:g}, state {self.engine.state.value}"
        )

    # ========== Ledger views ==========

    @property
    def balance(self) -> float:
        return self.engine.balance

    @property
    def state(self) -> GameState:
        return self.engine.state

    @property
    def history(self) -> tuple[BetRecord, ...]:
        return self.engine.history

    def _resolve_history(self, history: Optional[Sequence[BetRecord]]) -> Sequence[BetRecord]:
        return self.engine.history if history is None else history

    # ========== Wagers ==========

    def score_risk(self, event_id: str, amount: float) -> int:
        """Risk score of a candidate wager against the current balance (0 for unknown events)."""
        return self.engine.score_risk(event_id, amount)

    def current_persona(self, event_id: Optional[str] = None, amount: Optional[float] = None) -> Persona:
        """
        Persona in effect.

        With a candidate wager, the persona that wager would be classified
        into. Otherwise the persona of the most recent bet, or the first
        persona when there is no history yet.
        """
        if event_id is not None and amount is not None:
            return self.engine.persona_for(event_id, amount)
        history = self.engine.ledger.history
        if not history:
            return PERSONAS[0]
        return classify_persona(history[-1].risk_percentage)

    def place_wager(self, event_id: str, amount: float) -> BetRecord:
        """
        Place a wager and persist it when storage is attached.

        Raises:
            WagerError: When the wager is rejected. Nothing is stored.
            sqlite3.Error: When storing fails. The wager is undone in memory.
        """
        balance, state = self.engine.balance, self.engine.state
        record = self.engine.place_wager(event_id, amount)
        if self.db is not None:
            try:
                self.db.record_wager(record, self.engine.balance, self.engine.state)
            except sqlite3.Error as e:
                logger.error(f"Failed to store wager {record.id}: {e}")
                self.engine.revert(record, balance, state)
                raise
        return record

    def reset_ledger(self) -> None:
        """Restore the initial balance, clear history and resume play."""
        self.engine.reset()
        if self.db is not None:
            self.db.clear_history(self.engine.balance)

    def load_history(self, history: Sequence[BetRecord]) -> None:
        """
        Replace the ledger with an existing history.

        The balance is taken from the last bet; an empty history resets.
        """
        if not history:
            self.reset_ledger()
            return
        self.engine.restore(history[-1].balance_after, history)
        if self.db is not None:
            self.db.replace_history(self.engine.history, self.engine.balance, self.engine.state)

    # ========== Analytics ==========

    def get_metrics(self, history: Optional[Sequence[BetRecord]] = None) -> MetricsSummary:
        """Metrics summary of the given history, or of the ledger."""
        return calculate_metrics(self._resolve_history(history))

    def detect_patterns(self, history: Optional[Sequence[BetRecord]] = None) -> list[PatternWarning]:
        """Pattern warnings, empty below the minimum history length."""
        return self.pattern_detector.detect(self._resolve_history(history))

    def project(
        self,
        history: Optional[Sequence[BetRecord]] = None,
        balance: Optional[float] = None,
        horizon: Optional[int] = None,
    ) -> Optional[ProjectionResult]:
        """
        Project future betting from a history snapshot.

        Args:
            history: Defaults to the ledger history.
            balance: Defaults to the ledger balance.
            horizon: 10, 25 or 50. Defaults to settings.default_projection_horizon.

        Returns:
            ProjectionResult, or None when the history is too short.
        """
        snapshot = tuple(self._resolve_history(history))
        start = self.engine.balance if balance is None else balance
        steps = horizon if horizon is not None else settings.default_projection_horizon
        return self.projection_engine.project(snapshot, start, steps)

    def analyze_behavior(self, history: Optional[Sequence[BetRecord]] = None) -> Optional[BehavioralProfile]:
        return _analyze_behavior(self._resolve_history(history))

    def compare_benchmarks(self, history: Optional[Sequence[BetRecord]] = None) -> Optional[BenchmarkReport]:
        return _compare_benchmarks(self._resolve_history(history))

    # ========== Goals ==========

    def get_goals(self) -> list[Goal]:
        """Stored goals merged over the defaults, or the defaults without storage."""
        goals = {goal.id: goal for goal in default_goals()}
        if self.db is not None:
            for goal in self.db.get_goals():
                goals[goal.id] = goal
        return list(goals.values())

    def update_goal(
        self,
        goal_id: str,
        target_value: Optional[float] = None,
        is_active: Optional[bool] = None,
    ) -> Goal:
        """
        Change a goal's threshold or active flag.

        Raises:
            KeyError: If no goal has this id.
        """
        goals = {goal.id: goal for goal in self.get_goals()}
        if goal_id not in goals:
            raise KeyError(f"Unknown goal: {goal_id}")

        changes = {}
        if target_value is not None:
            changes["target_value"] = target_value
        if is_active is not None:
            changes["is_active"] = is_active
        goal = goals[goal_id].model_copy(update=changes)

        if self.db is not None:
            self.db.upsert_goal(goal)
        logger.info(f"Goal {goal_id} updated: target={goal.target_value:g}, active={goal.is_active}")
        return goal

    def evaluate_goals(
        self,
        history: Optional[Sequence[BetRecord]] = None,
        goals: Optional[Sequence[Goal]] = None,
    ) -> list[GoalResult]:
        """Evaluate active goals; empty below three bets."""
        return _evaluate_goals(
            self._resolve_history(history),
            goals if goals is not None else self.get_goals(),
        )


# ========== Plain-data API ==========

def score_risk(event_id: str, amount: float, balance: float) -> int:
    """Risk score of a wager on a catalog event at a given balance."""
    event = get_event(event_id)
    if event is None:
        return 0
    return score_event_risk(event, balance, amount)


def get_metrics(history: Sequence[BetRecord]) -> MetricsSummary:
    return calculate_metrics(history)


def detect_patterns(history: Sequence[BetRecord]) -> list[PatternWarning]:
    return PatternDetector().detect(history)


def project(
    history: Sequence[BetRecord],
    balance: float,
    horizon: int = 25,
    rng: Optional[RandomSource] = None,
) -> Optional[ProjectionResult]:
    return ProjectionEngine(rng=rng).project(tuple(history), balance, horizon)


def analyze_behavior(history: Sequence[BetRecord]) -> Optional[BehavioralProfile]:
    return _analyze_behavior(history)


def compare_benchmarks(history: Sequence[BetRecord]) -> Optional[BenchmarkReport]:
    return _compare_benchmarks(history)


def evaluate_goals(history: Sequence[BetRecord], goals: Optional[Sequence[Goal]] = None) -> list[GoalResult]:
    return _evaluate_goals(history, goals)
