"""
SQLite storage for the Risk Reward Simulator.

This module handles local persistence of:
- The ledger snapshot (balance and game state)
- The settled bet history, in placement order
- Responsible gambling goals
"""

import sqlite3
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Generator, Sequence

from .config import settings
from .models import BetRecord, GameState, Goal, Outcome
from .utils import parse_timestamp, safe_float

logger = logging.getLogger(__name__)


# SQL schema for all tables
SCHEMA = """
-- Ledger state: small key/value store for balance and game state
CREATE TABLE IF NOT EXISTS ledger_state (
    key TEXT PRIMARY KEY,
    value TEXT,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Bets table: append-only settled wager history
CREATE TABLE IF NOT EXISTS bets (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    bet_id TEXT UNIQUE NOT NULL,
    event_id TEXT NOT NULL,
    event_name TEXT NOT NULL,
    bet_amount REAL NOT NULL,
    outcome TEXT NOT NULL,                -- win or loss
    settlement_amount REAL NOT NULL,      -- Signed balance change
    balance_after REAL NOT NULL,
    risk_percentage INTEGER NOT NULL,
    timestamp TEXT NOT NULL,              -- ISO 8601
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Goals table: user-adjusted responsible gambling thresholds
CREATE TABLE IF NOT EXISTS goals (
    goal_id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    goal_type TEXT NOT NULL,              -- percentage, minutes, count
    target_value REAL NOT NULL,
    is_active INTEGER DEFAULT 1,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Indexes for common queries
CREATE INDEX IF NOT EXISTS idx_bets_event ON bets(event_id);
CREATE INDEX IF NOT EXISTS idx_bets_timestamp ON bets(timestamp);
"""

BALANCE_KEY = "balance"
STATE_KEY = "state"

INSERT_BET_SQL = """
INSERT INTO bets (
    bet_id, event_id, event_name, bet_amount, outcome,
    settlement_amount, balance_after, risk_percentage, timestamp
)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


def _bet_params(bet: BetRecord) -> tuple:
    return (
        bet.id, bet.event_id, bet.event_name, bet.bet_amount,
        bet.outcome.value, bet.settlement_amount, bet.balance_after,
        bet.risk_percentage, bet.timestamp.isoformat()
    )


def row_to_bet(row: sqlite3.Row) -> BetRecord:
    """Convert a bets row to a BetRecord."""
    return BetRecord(
        id=row["bet_id"],
        event_id=row["event_id"],
        event_name=row["event_name"],
        bet_amount=row["bet_amount"],
        outcome=Outcome(row["outcome"]),
        settlement_amount=row["settlement_amount"],
        balance_after=row["balance_after"],
        risk_percentage=row["risk_percentage"],
        timestamp=parse_timestamp(row["timestamp"]),
    )


class Database:
    """SQLite database manager for the simulator's local state."""

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file. Uses settings default if not provided.
        """
        self.db_path = db_path or settings.database_path
        self._ensure_db_directory()
        self._init_schema()

    def _ensure_db_directory(self) -> None:
        """Ensure the database directory exists."""
        db_dir = Path(self.db_path).parent
        if db_dir and not db_dir.exists():
            db_dir.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Get a database connection with automatic cleanup.

        Yields:
            sqlite3.Connection: Database connection.
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self.get_connection() as conn:
            conn.executescript(SCHEMA)
        logger.info(f"Database initialized at {self.db_path}")

    # ========== Ledger Operations ==========

    def _set_state_value(self, conn: sqlite3.Connection, key: str, value: str) -> None:
        conn.execute(
            """
            INSERT INTO ledger_state (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = CURRENT_TIMESTAMP
            """,
            (key, value)
        )

    def save_ledger_state(self, balance: float, state: GameState) -> None:
        """
        Persist the ledger balance and game state.

        Args:
            balance: Current balance.
            state: Current game state.
        """
        with self.get_connection() as conn:
            self._set_state_value(conn, BALANCE_KEY, repr(float(balance)))
            self._set_state_value(conn, STATE_KEY, state.value)

    def load_ledger_state(self) -> Optional[tuple[float, GameState]]:
        """
        Load the stored ledger balance and game state.

        Returns:
            (balance, state) or None if nothing has been saved yet.
        """
        with self.get_connection() as conn:
            cursor = conn.execute("SELECT key, value FROM ledger_state")
            values = {row["key"]: row["value"] for row in cursor.fetchall()}

        if BALANCE_KEY not in values:
            return None
        balance = safe_float(values[BALANCE_KEY])
        state = GameState(values.get(STATE_KEY, GameState.PLAYING.value))
        return balance, state

    # ========== Bet Operations ==========

    def record_wager(self, bet: BetRecord, balance: float, state: GameState) -> None:
        """
        Store a new bet and the ledger snapshot it produced in one transaction.

        Args:
            bet: Settled bet record.
            balance: Ledger balance after the bet.
            state: Ledger state after the bet.
        """
        with self.get_connection() as conn:
            conn.execute(INSERT_BET_SQL, _bet_params(bet))
            self._set_state_value(conn, BALANCE_KEY, repr(float(balance)))
            self._set_state_value(conn, STATE_KEY, state.value)

    def get_history(self, limit: Optional[int] = None) -> list[BetRecord]:
        """
        Get the bet history in placement order.

        Args:
            limit: Return only the most recent `limit` bets.

        Returns:
            List of BetRecord, oldest first.
        """
        with self.get_connection() as conn:
            if limit is None:
                cursor = conn.execute("SELECT * FROM bets ORDER BY seq ASC")
                rows = cursor.fetchall()
            else:
                cursor = conn.execute(
                    "SELECT * FROM bets ORDER BY seq DESC LIMIT ?",
                    (limit,)
                )
                rows = list(reversed(cursor.fetchall()))
        return [row_to_bet(row) for row in rows]

    def replace_history(self, history: Sequence[BetRecord], balance: float, state: GameState) -> None:
        """
        Overwrite the stored history and ledger snapshot.

        Args:
            history: Full bet history, oldest first.
            balance: Ledger balance.
            state: Ledger state.
        """
        with self.get_connection() as conn:
            conn.execute("DELETE FROM bets")
            conn.executemany(INSERT_BET_SQL, [_bet_params(bet) for bet in history])
            self._set_state_value(conn, BALANCE_KEY, repr(float(balance)))
            self._set_state_value(conn, STATE_KEY, state.value)
        logger.info(f"Stored history replaced with {len(history)} bets")

    def clear_history(self, balance: float) -> None:
        """
        Delete all bets and reset the ledger snapshot.

        Args:
            balance: Balance to store after the reset.
        """
        with self.get_connection() as conn:
            conn.execute("DELETE FROM bets")
            self._set_state_value(conn, BALANCE_KEY, repr(float(balance)))
            self._set_state_value(conn, STATE_KEY, GameState.PLAYING.value)
        logger.info("Bet history cleared")

    # ========== Goal Operations ==========

    def upsert_goal(self, goal: Goal) -> None:
        """
        Insert or update a goal's threshold and active flag.

        Args:
            goal: Goal to store. The measured value is not persisted.
        """
        with self.get_connection() as conn:
            conn.execute(
                """
                INSERT INTO goals (goal_id, title, description, goal_type, target_value, is_active)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(goal_id) DO UPDATE SET
                    title = excluded.title,
                    description = excluded.description,
                    goal_type = excluded.goal_type,
                    target_value = excluded.target_value,
                    is_active = excluded.is_active,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (
                    goal.id, goal.title, goal.description, goal.type.value,
                    goal.target_value, 1 if goal.is_active else 0
                )
            )

    def get_goals(self) -> list[Goal]:
        """
        Get all stored goals.

        Returns:
            List of Goal ordered by id.
        """
        with self.get_connection() as conn:
            cursor = conn.execute("SELECT * FROM goals ORDER BY goal_id")
            return [
                Goal(
                    id=row["goal_id"],
                    title=row["title"],
                    description=row["description"] or "",
                    type=row["goal_type"],
                    target_value=row["target_value"],
                    is_active=bool(row["is_active"]),
                )
                for row in cursor.fetchall()
            ]

    # ========== Statistics ==========

    def get_stats(self) -> dict:
        """
        Get database statistics.

        Returns:
            Dictionary with counts and totals.
        """
        with self.get_connection() as conn:
            stats = {}

            cursor = conn.execute("SELECT COUNT(*) as count FROM bets")
            stats["total_bets"] = cursor.fetchone()["count"]

            cursor = conn.execute("SELECT COUNT(*) as count FROM bets WHERE outcome = 'win'")
            stats["total_wins"] = cursor.fetchone()["count"]

            cursor = conn.execute("SELECT SUM(bet_amount) as total FROM bets")
            row = cursor.fetchone()
            stats["total_staked"] = row["total"] or 0.0

            cursor = conn.execute("SELECT COUNT(DISTINCT event_id) as count FROM bets")
            stats["events_played"] = cursor.fetchone()["count"]

            cursor = conn.execute("SELECT COUNT(*) as count FROM goals")
            stats["total_goals"] = cursor.fetchone()["count"]

            return stats
