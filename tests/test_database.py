"""
Tests for the database module.
"""

import sqlite3

import pytest

from risk_reward_sim.database import Database
from risk_reward_sim.goals import DEFAULT_GOALS
from risk_reward_sim.models import GameState, Outcome


class TestDatabase:
    """Tests for Database class."""

    def test_init_creates_tables(self, test_db):
        """Test that initialization creates all required tables."""
        stats = test_db.get_stats()
        assert stats["total_bets"] == 0
        assert stats["total_wins"] == 0
        assert stats["total_goals"] == 0

    def test_ledger_state_round_trip(self, test_db):
        assert test_db.load_ledger_state() is None

        test_db.save_ledger_state(1234.5, GameState.PLAYING)
        assert test_db.load_ledger_state() == (1234.5, GameState.PLAYING)

        test_db.save_ledger_state(0.0, GameState.LOST)
        assert test_db.load_ledger_state() == (0.0, GameState.LOST)

    def test_bet_round_trip(self, test_db, make_history):
        bet = make_history([(100, True, 22)])[0]
        test_db.record_wager(bet, 1100.0, GameState.PLAYING)

        stored = test_db.get_history()
        assert stored == [bet]
        assert stored[0].outcome == Outcome.WIN
        assert stored[0].timestamp == bet.timestamp

    def test_history_keeps_placement_order(self, test_db, make_history):
        history = make_history([(10, i % 2 == 0, 20 + i) for i in range(6)])
        for bet in history:
            test_db.record_wager(bet, bet.balance_after, GameState.PLAYING)

        assert [b.id for b in test_db.get_history()] == [b.id for b in history]
        assert [b.id for b in test_db.get_history(limit=2)] == ["bet-4", "bet-5"]

    def test_record_wager_writes_bet_and_state(self, test_db, make_history):
        bet = make_history([(100, False, 22)])[0]
        test_db.record_wager(bet, 900.0, GameState.PLAYING)

        assert test_db.get_history() == [bet]
        assert test_db.load_ledger_state() == (900.0, GameState.PLAYING)

    def test_record_wager_rolls_back_on_duplicate(self, test_db, make_history):
        bet = make_history([(100, False, 22)])[0]
        test_db.record_wager(bet, 900.0, GameState.PLAYING)

        with pytest.raises(sqlite3.IntegrityError):
            test_db.record_wager(bet, 800.0, GameState.PLAYING)
        assert test_db.load_ledger_state() == (900.0, GameState.PLAYING)

    def test_replace_and_clear_history(self, test_db, make_history):
        history = make_history([(10, True, 20)] * 3)
        test_db.replace_history(history, 1030.0, GameState.PLAYING)
        assert len(test_db.get_history()) == 3

        test_db.clear_history(1000.0)
        assert test_db.get_history() == []
        assert test_db.load_ledger_state() == (1000.0, GameState.PLAYING)

    def test_stats_count_bets_and_events(self, test_db, make_history):
        history = make_history([
            (10, True, 20, "coin-flip"),
            (100, False, 40, "roulette"),
            (10, True, 20, "coin-flip"),
        ])
        test_db.replace_history(history, 920.0, GameState.PLAYING)

        stats = test_db.get_stats()
        assert stats["total_bets"] == 3
        assert stats["total_wins"] == 2
        assert stats["events_played"] == 2

    def test_goals_round_trip(self, test_db):
        goal = DEFAULT_GOALS[0].model_copy(update={"target_value": 15, "is_active": False})
        test_db.upsert_goal(goal)
        test_db.upsert_goal(goal.model_copy(update={"target_value": 12}))

        stored = test_db.get_goals()
        assert len(stored) == 1
        assert stored[0].id == "max-bet"
        assert stored[0].target_value == 12
        assert stored[0].is_active is False
        assert stored[0].type == goal.type

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "sim.db"
        Database(db_path=str(path))
        assert path.exists()
