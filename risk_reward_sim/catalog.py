"""
Static catalogs for the Risk Reward Simulator.

The betting events and personas are fixed lookup tables seeded at import
time. Persona risk ranges partition 0-100 with no gaps and no overlaps,
so every risk percentage maps to exactly one persona.
"""

from typing import Optional

from .models import BettingEvent, Persona, RiskLevel


BETTING_EVENTS: tuple[BettingEvent, ...] = (
    BettingEvent(
        id="coin-flip",
        name="Coin Flip",
        multiplier=2.0,
        win_probability=0.5,
        min_bet=10,
        max_bet=None,
        risk_level=RiskLevel.LOW,
        description="Heads or tails? Classic 50/50 chance to double your money.",
    ),
    BettingEvent(
        id="dice-roll",
        name="Dice Roll",
        multiplier=6.0,
        win_probability=0.166,
        min_bet=50,
        max_bet=2000,
        risk_level=RiskLevel.MEDIUM,
        description="Roll a six to win big! Can you beat the odds?",
    ),
    BettingEvent(
        id="bullseye",
        name="Bullseye",
        multiplier=3.0,
        win_probability=0.33,
        min_bet=30,
        max_bet=1500,
        risk_level=RiskLevel.LOW,
        description="Hit the target and triple your bet. Steady hands win.",
    ),
    BettingEvent(
        id="roulette",
        name="Roulette",
        multiplier=35.0,
        win_probability=0.027,
        min_bet=100,
        max_bet=1000,
        risk_level=RiskLevel.HIGH,
        description="Hit your number and win 35x your bet! High risk, high reward.",
    ),
    BettingEvent(
        id="sports-match",
        name="Sports Match",
        multiplier=3.5,
        win_probability=0.3,
        min_bet=25,
        max_bet=5000,
        risk_level=RiskLevel.MEDIUM,
        description="Bet on the underdog team and get 3.5x your money if they win.",
    ),
    BettingEvent(
        id="mega-jackpot",
        name="Mega Jackpot",
        multiplier=20.0,
        win_probability=0.05,
        min_bet=200,
        max_bet=2000,
        risk_level=RiskLevel.HIGH,
        description="Go for the mega jackpot! Low chance but massive rewards await.",
    ),
)


# Ordered from most to least conservative
PERSONAS: tuple[Persona, ...] = (
    Persona(
        id="conservative",
        name="Conservative",
        description="Safe bets, max 10% of bankroll",
        max_bet_fraction=0.1,
        risk_range=(0, 30),
        traits=("Cautious", "Smart", "Patient"),
    ),
    Persona(
        id="balanced",
        name="Balanced",
        description="Moderate risk, max 30% of bankroll",
        max_bet_fraction=0.3,
        risk_range=(31, 70),
        traits=("Impulsive", "Calculated", "Strategic"),
    ),
    Persona(
        id="aggressive",
        name="Aggressive",
        description="High risk, often all-in",
        max_bet_fraction=1.0,
        risk_range=(71, 100),
        traits=("Reckless", "Daring", "All or Nothing"),
    ),
)

_EVENTS_BY_ID: dict[str, BettingEvent] = {event.id: event for event in BETTING_EVENTS}


def get_event(event_id: str) -> Optional[BettingEvent]:
    """
    Look up a betting event by id.

    Args:
        event_id: Catalog identifier such as "coin-flip".

    Returns:
        The event, or None if the id is unknown.
    """
    return _EVENTS_BY_ID.get(event_id)


def list_events() -> list[BettingEvent]:
    """Return the event catalog in display order."""
    return list(BETTING_EVENTS)
