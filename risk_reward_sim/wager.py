"""
Ledger and wager engine for the Risk Reward Simulator.

The ledger holds the balance, the append-only bet history and the game
state. Only the WagerEngine mutates it, through place_wager, reset and
restore. Placing a wager is all-or-nothing: validation runs to completion
before any field of the ledger changes.

Validation order (first violation wins):
1. Ledger must be PLAYING                      -> GameOverError
2. Event must exist                            -> UnknownEventError
3. minBet <= amount <= maxBet                  -> BetLimitError
4. amount <= balance                           -> InsufficientBalanceError
5. amount <= cap of this wager's persona       -> PersonaLimitError
"""

import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Sequence

from .catalog import get_event
from .config import settings
from .errors import (
    BetLimitError,
    GameOverError,
    InsufficientBalanceError,
    PersonaLimitError,
    UnknownEventError,
    WagerError,
)
from .models import BetRecord, BettingEvent, GameState, Outcome, Persona
from .risk import classify_persona, max_bet_for, score_event_risk
from .utils import RandomSource

logger = logging.getLogger(__name__)


@dataclass
class Ledger:
    """Current balance, settled history and lifecycle state."""
    balance: float = field(default_factory=lambda: settings.initial_balance)
    history: list[BetRecord] = field(default_factory=list)
    state: GameState = GameState.PLAYING

    @property
    def is_playing(self) -> bool:
        return self.state == GameState.PLAYING

    def snapshot(self) -> tuple[BetRecord, ...]:
        """Read-only copy of the history for analytics consumers."""
        return tuple(self.history)


def resolve_state(balance: float, win_goal: float, current: GameState = GameState.PLAYING) -> GameState:
    """
    Derive the ledger state from a balance.

    Args:
        balance: Post-settlement balance.
        win_goal: Balance at or above which the game is won.
        current: State to keep when neither threshold is crossed.

    Returns:
        LOST at or below zero, WON at or above the goal, otherwise current.
    """
    if balance <= 0:
        return GameState.LOST
    if balance >= win_goal:
        return GameState.WON
    return current


class WagerEngine:
    """
    Validates, resolves and records wagers against a single ledger.

    Randomness and time are injected so tests can script outcomes and
    timestamps without changing the algorithm.
    """

    def __init__(
        self,
        ledger: Optional[Ledger] = None,
        rng: Optional[RandomSource] = None,
        clock: Optional[Callable[[], datetime]] = None,
        initial_balance: Optional[float] = None,
        win_goal: Optional[float] = None,
    ):
        """
        Initialize the engine.

        Args:
            ledger: Ledger to manage. A fresh one is created if not provided.
            rng: Random source for outcome draws. Defaults to random.Random().
            clock: Callable returning the current time. Defaults to datetime.utcnow.
            initial_balance: Balance used on creation and reset.
            win_goal: Balance that ends the game as WON.
        """
        self.initial_balance = initial_balance if initial_balance is not None else settings.initial_balance
        self.win_goal = win_goal if win_goal is not None else settings.win_goal_balance
        self.ledger = ledger or Ledger(balance=self.initial_balance)
        self.rng = rng or random.Random()
        self.clock = clock or datetime.utcnow

    # ========== Read-only views ==========

    @property
    def balance(self) -> float:
        return self.ledger.balance

    @property
    def state(self) -> GameState:
        return self.ledger.state

    @property
    def history(self) -> tuple[BetRecord, ...]:
        return self.ledger.snapshot()

    def score_risk(self, event_id: str, amount: float) -> int:
        """
        Preview the risk of a wager against the current balance.

        Returns 0 for an unknown event, mirroring the zero-balance guard.
        """
        event = get_event(event_id)
        if event is None:
            return 0
        return score_event_risk(event, self.ledger.balance, amount)

    def persona_for(self, event_id: str, amount: float) -> Persona:
        """Persona that would govern this candidate wager."""
        return classify_persona(self.score_risk(event_id, amount))

    # ========== Mutations ==========

    def _validate(self, event_id: str, amount: float) -> tuple[BettingEvent, int]:
        ledger = self.ledger

        if not ledger.is_playing:
            raise GameOverError(ledger.state.value)

        event = get_event(event_id)
        if event is None:
            raise UnknownEventError(event_id)

        if amount < event.min_bet:
            raise BetLimitError(event.name, amount, "minBet", event.min_bet)
        if event.max_bet is not None and amount > event.max_bet:
            raise BetLimitError(event.name, amount, "maxBet", event.max_bet)

        if amount > ledger.balance:
            raise InsufficientBalanceError(amount, ledger.balance)

        risk_percentage = score_event_risk(event, ledger.balance, amount)
        persona = classify_persona(risk_percentage)
        cap = max_bet_for(ledger.balance, persona)
        if amount > cap:
            raise PersonaLimitError(
                persona.name, persona.max_bet_fraction, cap, amount, risk_percentage
            )

        return event, risk_percentage

    def _next_timestamp(self) -> datetime:
        now = self.clock()
        if self.ledger.history and now < self.ledger.history[-1].timestamp:
            return self.ledger.history[-1].timestamp
        return now

    def place_wager(self, event_id: str, amount: float) -> BetRecord:
        """
        Validate, resolve and record a wager.

        Args:
            event_id: Catalog id of the event.
            amount: Stake.

        Returns:
            The settled BetRecord, already appended to the history.

        Raises:
            WagerError: One of its subclasses when the wager is rejected.
                The ledger is left untouched.
        """
        try:
            event, risk_percentage = self._validate(event_id, amount)
        except WagerError as e:
            logger.warning(f"Wager rejected ({event_id}, {amount}): {e}")
            raise

        is_win = self.rng.random() < event.win_probability
        if is_win:
            settlement = amount * (event.multiplier - 1)
        else:
            settlement = -amount

        ledger = self.ledger
        new_balance = max(0.0, ledger.balance + settlement)

        record = BetRecord(
            id=f"bet-{uuid.uuid4().hex[:12]}",
            event_id=event.id,
            event_name=event.name,
            bet_amount=amount,
            outcome=Outcome.WIN if is_win else Outcome.LOSS,
            settlement_amount=settlement,
            balance_after=new_balance,
            risk_percentage=risk_percentage,
            timestamp=self._next_timestamp(),
        )

        ledger.balance = new_balance
        ledger.history.append(record)
        ledger.state = resolve_state(new_balance, self.win_goal, ledger.state)

        logger.info(
            f"{record.event_name}: {record.outcome.value} {amount:g} "
            f"(risk {risk_percentage}%) -> balance {new_balance:g}"
        )
        if not ledger.is_playing:
            logger.info(f"Game over: {ledger.state.value} with balance {new_balance:g}")

        return record

    def reset(self) -> None:
        """Restore the initial balance, clear history and resume play."""
        self.ledger.balance = self.initial_balance
        self.ledger.history = []
        self.ledger.state = GameState.PLAYING
        logger.info(f"Ledger reset to {self.initial_balance:g}")

    def revert(self, record: BetRecord, balance: float, state: GameState) -> None:
        """
        Undo the most recent wager.

        Args:
            record: The record returned by place_wager. Must be the last one.
            balance: Balance before that wager.
            state: State before that wager.

        Raises:
            ValueError: If record is not the most recent bet.
        """
        history = self.ledger.history
        if not history or history[-1].id != record.id:
            raise ValueError(f"Bet {record.id} is not the most recent wager")
        history.pop()
        self.ledger.balance = balance
        self.ledger.state = state
        logger.warning(f"Wager {record.id} reverted, balance back to {balance:g}")

    def restore(self, balance: float, history: Sequence[BetRecord]) -> None:
        """
        Rebuild the ledger from stored data.

        The state is re-derived from the balance rather than trusted.
        """
        self.ledger.balance = max(0.0, balance)
        self.ledger.history = list(history)
        self.ledger.state = resolve_state(self.ledger.balance, self.win_goal)
        logger.debug(f"Ledger restored: {len(history)} bets, balance {balance:g}")
