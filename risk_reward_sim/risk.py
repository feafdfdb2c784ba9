"""
Risk scoring and persona classification.

The risk score is a weighted linear blend, not a probability-theoretic
measure:

    bet_size_factor          = min(bet / balance, 1)        weight 50
    event_probability_factor = 1 - win_probability          weight 30
    loss_impact_factor       = min(bet / balance, 1)        weight 20

The loss impact factor is currently the same quantity as the bet size
factor, so stake size is counted twice (70 of the 100 points). The
formula is kept as-is for compatibility with recorded histories.

Personas are derived from the score on every call and never stored.
"""

import logging
import math
from decimal import Decimal, ROUND_HALF_UP

from .catalog import PERSONAS
from .models import BettingEvent, Persona

logger = logging.getLogger(__name__)


WEIGHT_BET_SIZE = 50
WEIGHT_EVENT_PROBABILITY = 30
WEIGHT_LOSS_IMPACT = 20


def score_risk(win_probability: float, balance: float, bet_amount: float) -> int:
    """
    Compute the 0-100 risk percentage of a candidate wager.

    Args:
        win_probability: Probability of the event paying out (0 < p <= 1).
        balance: Current bankroll.
        bet_amount: Proposed stake.

    Returns:
        Integer risk percentage, rounded half up and clamped to [0, 100].
        Always 0 when the balance is zero or negative.
    """
    if balance <= 0:
        return 0

    bet_size_factor = min(bet_amount / balance, 1.0)
    event_probability_factor = 1 - win_probability
    loss_impact_factor = min(bet_amount / balance, 1.0)

    raw = (
        bet_size_factor * WEIGHT_BET_SIZE
        + event_probability_factor * WEIGHT_EVENT_PROBABILITY
        + loss_impact_factor * WEIGHT_LOSS_IMPACT
    )
    rounded = int(Decimal(str(raw)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return max(0, min(100, rounded))


def score_event_risk(event: BettingEvent, balance: float, bet_amount: float) -> int:
    """Score a wager on a catalog event."""
    return score_risk(event.win_probability, balance, bet_amount)


def classify_persona(risk_percentage: int) -> Persona:
    """
    Map a risk percentage to the persona whose range contains it.

    Falls back to the most conservative persona if nothing matches,
    which cannot happen while the catalog ranges partition 0-100.
    """
    for persona in PERSONAS:
        if persona.contains(risk_percentage):
            return persona
    logger.warning(f"No persona covers risk {risk_percentage}, using {PERSONAS[0].name}")
    return PERSONAS[0]


def max_bet_for(balance: float, persona: Persona) -> int:
    """
    Largest stake a persona may place against the given balance.

    Returns:
        floor(balance * persona.max_bet_fraction), never negative.
    """
    if balance <= 0:
        return 0
    return math.floor(balance * persona.max_bet_fraction)


def expected_value(bet_amount: float, multiplier: float, probability: float) -> float:
    """
    Expected net result of a wager.

    EV = p * (stake * (multiplier - 1)) - (1 - p) * stake
    """
    win_amount = bet_amount * (multiplier - 1)
    return probability * win_amount - (1 - probability) * bet_amount
