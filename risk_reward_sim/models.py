"""
Pydantic models for the Risk Reward Simulator.

These models describe the static catalogs (betting events, personas),
the settled bet records kept in the ledger history, and the responsible
gambling goals stored alongside them. Field aliases follow the camelCase
shape used by the presentation layer and the JSON exports.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RiskLevel(str, Enum):
    """Informational risk label attached to a betting event."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Outcome(str, Enum):
    """Result of a settled wager."""
    WIN = "win"
    LOSS = "loss"


class GameState(str, Enum):
    """Ledger lifecycle state. WON and LOST are terminal."""
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"


class GoalType(str, Enum):
    """Unit of a responsible gambling goal."""
    PERCENTAGE = "percentage"
    MINUTES = "minutes"
    COUNT = "count"


class BettingEvent(BaseModel):
    """A wager the player can place. Defined once in the catalog."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    multiplier: float = Field(ge=1.0)
    win_probability: float = Field(gt=0.0, le=1.0, alias="winProbability")
    min_bet: float = Field(gt=0.0, alias="minBet")
    max_bet: Optional[float] = Field(default=None, alias="maxBet")
    risk_level: RiskLevel = Field(alias="riskLevel")
    description: str = ""

    @model_validator(mode="after")
    def _check_bet_limits(self) -> "BettingEvent":
        if self.max_bet is not None and self.max_bet < self.min_bet:
            raise ValueError("max_bet must be >= min_bet")
        return self


class Persona(BaseModel):
    """Behavioral profile derived from a risk percentage."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    description: str = ""
    max_bet_fraction: float = Field(gt=0.0, le=1.0, alias="maxBetFraction")
    risk_range: tuple[int, int] = Field(alias="riskRange")
    traits: tuple[str, ...] = ()

    @field_validator("risk_range")
    @classmethod
    def _check_range(cls, value: tuple[int, int]) -> tuple[int, int]:
        low, high = value
        if not 0 <= low <= high <= 100:
            raise ValueError(f"invalid risk range {value}")
        return value

    def contains(self, risk_percentage: int) -> bool:
        """Check whether a risk percentage falls in this persona's range."""
        low, high = self.risk_range
        return low <= risk_percentage <= high


class BetRecord(BaseModel):
    """A settled wager. Created by the wager engine and never mutated."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    event_id: str = Field(alias="eventId")
    event_name: str = Field(alias="eventName")
    bet_amount: float = Field(gt=0.0, alias="betAmount")
    outcome: Outcome
    settlement_amount: float = Field(alias="settlementAmount")  # + net win, - stake lost
    balance_after: float = Field(ge=0.0, alias="balanceAfter")
    risk_percentage: int = Field(ge=0, le=100, alias="riskPercentage")
    timestamp: datetime

    @property
    def is_win(self) -> bool:
        return self.outcome == Outcome.WIN

    @property
    def balance_before(self) -> float:
        """Balance immediately before this wager was settled."""
        return self.balance_after - self.settlement_amount

    @property
    def stake_fraction(self) -> float:
        """Stake as a fraction of the post-settlement balance (1.0 when broke)."""
        if self.balance_after <= 0:
            return 1.0
        return self.bet_amount / self.balance_after


class Goal(BaseModel):
    """A user-adjustable responsible gambling threshold."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str = ""
    type: GoalType
    target_value: float = Field(alias="targetValue")
    current_value: Optional[float] = Field(default=None, alias="currentValue")
    is_active: bool = Field(default=True, alias="isActive")
