"""
Wager rejection errors.

Every rejection is an expected, recoverable outcome for the caller. The
wager engine raises one of these before touching the ledger, so a caught
WagerError always means the balance, history and state are unchanged.
"""

from typing import Optional


class WagerError(Exception):
    """Base class for rejected wagers."""

    code = "wager_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class GameOverError(WagerError):
    """Wager attempted after the ledger reached a terminal state."""

    code = "game_over"

    def __init__(self, state: str):
        self.state = state
        super().__init__(f"Game is over ({state}). Reset the ledger to keep playing.")


class UnknownEventError(WagerError):
    """The event id is not in the catalog."""

    code = "unknown_event"

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"Unknown betting event: {event_id!r}")


class BetLimitError(WagerError):
    """Amount outside the event's [minBet, maxBet] window."""

    code = "bet_limit"

    def __init__(self, event_name: str, amount: float, bound: str, limit: float):
        self.event_name = event_name
        self.amount = amount
        self.bound = bound  # "minBet" or "maxBet"
        self.limit = limit
        relation = "below" if bound == "minBet" else "above"
        super().__init__(
            f"Bet of {amount:g} is {relation} the {event_name} limit {bound}={limit:g}"
        )


class InsufficientBalanceError(WagerError):
    """Amount exceeds the current balance."""

    code = "insufficient_balance"

    def __init__(self, amount: float, balance: float):
        self.amount = amount
        self.balance = balance
        super().__init__(f"Bet of {amount:g} exceeds current balance of {balance:g}")


class PersonaLimitError(WagerError):
    """Amount exceeds the cap of the persona derived from this wager's risk."""

    code = "persona_limit"

    def __init__(
        self,
        persona_name: str,
        max_bet_fraction: float,
        cap: float,
        amount: float,
        risk_percentage: Optional[int] = None,
    ):
        self.persona_name = persona_name
        self.max_bet_fraction = max_bet_fraction
        self.cap = cap
        self.amount = amount
        self.risk_percentage = risk_percentage
        super().__init__(
            f"Bet of {amount:g} exceeds the {persona_name} persona cap of "
            f"{max_bet_fraction:.0%} of bankroll ({cap:g})"
        )
