"""
Problem-gambling pattern detection for the Risk Reward Simulator.

Scans a bet history for known problematic signatures and emits
severity-tagged warnings with a recommendation:

1. Stake escalation:
   - Chasing losses (stake up 30%+ right after a loss)
   - Martingale progression (stake roughly doubled after a loss)

2. Exposure:
   - Consistently high-risk betting
   - Large stakes relative to the remaining bankroll

3. Tempo and tilt:
   - Rapid-fire betting (under 2 minutes between bets)
   - Post-win overconfidence (risk up 30%+ right after a win)
   - Extended loss streaks

Each rule is independent; several warnings may fire for one history.
Histories shorter than MIN_HISTORY return no warnings at all.

DISCLAIMER: These are heuristics meant to prompt reflection, not a
clinical assessment.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .config import settings
from .metrics import calculate_streaks, sort_history
from .models import BetRecord

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Constants
# ============================================================================

class DetectionConfig:
    """Configuration parameters for detection thresholds."""

    MIN_HISTORY = settings.min_history_for_analysis

    # Chasing losses
    CHASE_STAKE_INCREASE = 1.3
    CHASE_THRESHOLDS = (0.4, 0.3, 0.2)  # high, medium, low

    # High-risk betting
    HIGH_RISK_MEAN = 50
    HIGH_RISK_BET = 60
    HIGH_RISK_SHARE = 0.4
    HIGH_RISK_MEAN_HIGH = 70
    HIGH_RISK_MEAN_MEDIUM = 60

    # Rapid betting
    RAPID_GAP_MINUTES = 2
    RAPID_THRESHOLDS = (0.6, 0.45, 0.3)

    # Martingale
    MARTINGALE_FACTOR = 2.0
    MARTINGALE_TOLERANCE = 0.3
    MARTINGALE_THRESHOLDS = (0.3, 0.2, 0.15)

    # Large stakes
    LARGE_STAKE_FRACTION = 0.2
    LARGE_STAKE_THRESHOLDS = (0.3, 0.2, 0.15)

    # Post-win overconfidence
    OVERCONFIDENCE_RISK_INCREASE = 1.3
    OVERCONFIDENCE_THRESHOLDS = (0.5, 0.4, 0.3)

    # Loss streaks (run lengths, inclusive)
    LOSS_STREAK_THRESHOLDS = (6, 5, 4)


# ============================================================================
# Data Classes
# ============================================================================

class PatternSeverity(Enum):
    """Severity levels for pattern warnings."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PatternType(Enum):
    """Detected pattern identifiers."""
    CHASE_LOSSES = "chase-losses"
    HIGH_RISK = "high-risk"
    RAPID_BETTING = "rapid-betting"
    MARTINGALE = "martingale"
    LARGE_STAKES = "large-stakes"
    OVERCONFIDENCE = "overconfidence"
    LOSS_STREAK = "loss-streak"


_SEVERITY_ORDER = {
    PatternSeverity.HIGH: 0,
    PatternSeverity.MEDIUM: 1,
    PatternSeverity.LOW: 2,
}


@dataclass
class PatternWarning:
    """A detected betting pattern."""
    id: str
    title: str
    description: str
    severity: PatternSeverity
    recommendation: str
    ratio: Optional[float] = None  # Share of eligible transitions/bets that matched

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "severity": self.severity.value,
            "recommendation": self.recommendation,
            "ratio": round(self.ratio, 4) if self.ratio is not None else None,
        }


def severity_for_ratio(
    ratio: float,
    thresholds: tuple[float, float, float]
) -> Optional[PatternSeverity]:
    """
    Map a ratio to a severity using strict (high, medium, low) thresholds.

    Returns:
        The severity, or None when the ratio does not clear the low bar.
    """
    high, medium, low = thresholds
    if ratio > high:
        return PatternSeverity.HIGH
    if ratio > medium:
        return PatternSeverity.MEDIUM
    if ratio > low:
        return PatternSeverity.LOW
    return None


# ============================================================================
# Main Detection Engine
# ============================================================================

class PatternDetector:
    """
    Detects problematic betting patterns in a history.

    The detector holds no state between calls and never mutates the
    history it is given.
    """

    def __init__(self, config: Optional[DetectionConfig] = None):
        """
        Initialize the detector.

        Args:
            config: Detection configuration.
        """
        self.config = config or DetectionConfig()

    # ========================================================================
    # Stake Escalation
    # ========================================================================

    def check_chasing_losses(self, bets: Sequence[BetRecord]) -> Optional[PatternWarning]:
        """Stake raised by 30%+ immediately after a loss."""
        transitions = len(bets) - 1
        if transitions <= 0:
            return None

        count = sum(
            1 for previous, current in zip(bets, bets[1:])
            if not previous.is_win
            and current.bet_amount > previous.bet_amount * self.config.CHASE_STAKE_INCREASE
        )
        ratio = count / transitions
        severity = severity_for_ratio(ratio, self.config.CHASE_THRESHOLDS)
        if severity is None:
            return None

        return PatternWarning(
            id=PatternType.CHASE_LOSSES.value,
            title="Chasing Losses",
            description=(
                f"You increased your bet size after a loss {round(ratio * 100)}% of the time. "
                "This pattern often leads to larger losses."
            ),
            severity=severity,
            recommendation=(
                "Try to maintain consistent bet sizes regardless of previous outcomes. "
                "Consider taking a break after losses before placing your next bet."
            ),
            ratio=ratio,
        )

    def check_martingale(self, bets: Sequence[BetRecord]) -> Optional[PatternWarning]:
        """Stake roughly doubled (2x +/- 0.3) immediately after a loss."""
        transitions = len(bets) - 1
        if transitions <= 0:
            return None

        count = sum(
            1 for previous, current in zip(bets, bets[1:])
            if not previous.is_win
            and abs(current.bet_amount / previous.bet_amount - self.config.MARTINGALE_FACTOR)
            < self.config.MARTINGALE_TOLERANCE
        )
        ratio = count / transitions
        severity = severity_for_ratio(ratio, self.config.MARTINGALE_THRESHOLDS)
        if severity is None:
            return None

        return PatternWarning(
            id=PatternType.MARTINGALE.value,
            title="Martingale Strategy",
            description=(
                "You appear to be using a Martingale-like strategy (doubling after losses) "
                f"{round(ratio * 100)}% of the time. This is high-risk over the long term."
            ),
            severity=severity,
            recommendation=(
                "Avoid doubling your bet after losses. This strategy can quickly deplete "
                "your bankroll with a series of consecutive losses."
            ),
            ratio=ratio,
        )

    # ========================================================================
    # Exposure
    # ========================================================================

    def check_high_risk(self, bets: Sequence[BetRecord]) -> Optional[PatternWarning]:
        """Mean risk above 50 or more than 40% of bets above 60 risk."""
        if not bets:
            return None

        avg_risk = sum(bet.risk_percentage for bet in bets) / len(bets)
        high_risk_share = sum(
            1 for bet in bets if bet.risk_percentage > self.config.HIGH_RISK_BET
        ) / len(bets)

        if avg_risk <= self.config.HIGH_RISK_MEAN and high_risk_share <= self.config.HIGH_RISK_SHARE:
            return None

        if avg_risk > self.config.HIGH_RISK_MEAN_HIGH:
            severity = PatternSeverity.HIGH
        elif avg_risk > self.config.HIGH_RISK_MEAN_MEDIUM:
            severity = PatternSeverity.MEDIUM
        else:
            severity = PatternSeverity.LOW

        return PatternWarning(
            id=PatternType.HIGH_RISK.value,
            title="High-Risk Betting",
            description=(
                f"{round(high_risk_share * 100)}% of your bets are high-risk (above "
                f"{self.config.HIGH_RISK_BET}% risk level). Your average risk level is "
                f"{round(avg_risk)}%."
            ),
            severity=severity,
            recommendation=(
                "Balance your portfolio with more low and medium risk bets to protect "
                "your bankroll from significant losses."
            ),
            ratio=high_risk_share,
        )

    def check_large_stakes(self, bets: Sequence[BetRecord]) -> Optional[PatternWarning]:
        """Stake above 20% of the balance left after settlement."""
        if not bets:
            return None

        count = sum(
            1 for bet in bets
            if bet.balance_after <= 0
            or bet.bet_amount > bet.balance_after * self.config.LARGE_STAKE_FRACTION
        )
        ratio = count / len(bets)
        severity = severity_for_ratio(ratio, self.config.LARGE_STAKE_THRESHOLDS)
        if severity is None:
            return None

        return PatternWarning(
            id=PatternType.LARGE_STAKES.value,
            title="Large Stakes",
            description=(
                f"{round(ratio * 100)}% of your bets exceed "
                f"{round(self.config.LARGE_STAKE_FRACTION * 100)}% of your bankroll. "
                "Large stakes increase your risk of significant losses."
            ),
            severity=severity,
            recommendation=(
                "Limit your bet sizes to 5-10% of your bankroll to ensure longevity "
                "and reduce the impact of losing streaks."
            ),
            ratio=ratio,
        )

    # ========================================================================
    # Tempo and Tilt
    # ========================================================================

    def check_rapid_betting(self, bets: Sequence[BetRecord]) -> Optional[PatternWarning]:
        """Consecutive bets placed less than 2 minutes apart."""
        transitions = len(bets) - 1
        if transitions <= 0:
            return None

        limit_seconds = self.config.RAPID_GAP_MINUTES * 60
        count = sum(
            1 for previous, current in zip(bets, bets[1:])
            if (current.timestamp - previous.timestamp).total_seconds() < limit_seconds
        )
        ratio = count / transitions
        severity = severity_for_ratio(ratio, self.config.RAPID_THRESHOLDS)
        if severity is None:
            return None

        return PatternWarning(
            id=PatternType.RAPID_BETTING.value,
            title="Rapid Betting",
            description=(
                f"{round(ratio * 100)}% of your bets are placed within "
                f"{self.config.RAPID_GAP_MINUTES} minutes of the previous bet. "
                "This may indicate impulsive betting."
            ),
            severity=severity,
            recommendation=(
                "Take more time between bets to make thoughtful decisions. Consider "
                "setting a 5-minute cooling-off period between bets."
            ),
            ratio=ratio,
        )

    def check_overconfidence(self, bets: Sequence[BetRecord]) -> Optional[PatternWarning]:
        """Risk raised by 30%+ right after a win, as a share of all wins."""
        wins = sum(1 for bet in bets if bet.is_win)
        if wins == 0:
            return None

        count = sum(
            1 for previous, current in zip(bets, bets[1:])
            if previous.is_win
            and current.risk_percentage > previous.risk_percentage * self.config.OVERCONFIDENCE_RISK_INCREASE
        )
        ratio = count / wins
        severity = severity_for_ratio(ratio, self.config.OVERCONFIDENCE_THRESHOLDS)
        if severity is None:
            return None

        return PatternWarning(
            id=PatternType.OVERCONFIDENCE.value,
            title="Post-Win Overconfidence",
            description=(
                "You tend to take significantly higher risks after winning "
                f"({round(ratio * 100)}% of the time). This can lead to giving back wins."
            ),
            severity=severity,
            recommendation=(
                "Maintain consistent risk levels regardless of previous outcomes. "
                "Consider taking some profits off the table after significant wins."
            ),
            ratio=ratio,
        )

    def check_loss_streak(self, bets: Sequence[BetRecord]) -> Optional[PatternWarning]:
        """Longest run of consecutive losses of 4 or more."""
        longest = calculate_streaks(bets).longest_losing_streak
        high, medium, low = self.config.LOSS_STREAK_THRESHOLDS

        if longest >= high:
            severity = PatternSeverity.HIGH
        elif longest >= medium:
            severity = PatternSeverity.MEDIUM
        elif longest >= low:
            severity = PatternSeverity.LOW
        else:
            return None

        return PatternWarning(
            id=PatternType.LOSS_STREAK.value,
            title="Extended Loss Streak",
            description=(
                f"You experienced a streak of {longest} consecutive losses without taking "
                "a break. This can lead to emotional decision-making."
            ),
            severity=severity,
            recommendation=(
                "Take a break after 3 consecutive losses to reset your mindset and "
                "prevent emotional decisions."
            ),
        )

    # ========================================================================
    # Entry Point
    # ========================================================================

    def detect(self, history: Sequence[BetRecord]) -> list[PatternWarning]:
        """
        Run every rule against a history.

        Args:
            history: Settled bets in any order.

        Returns:
            Warnings ordered high, medium, low (rule order within a level).
            Empty when the history is shorter than MIN_HISTORY.
        """
        if len(history) < self.config.MIN_HISTORY:
            return []

        bets = sort_history(history)
        checks = (
            self.check_chasing_losses,
            self.check_high_risk,
            self.check_rapid_betting,
            self.check_martingale,
            self.check_large_stakes,
            self.check_overconfidence,
            self.check_loss_streak,
        )

        warnings = [w for w in (check(bets) for check in checks) if w is not None]
        warnings.sort(key=lambda w: _SEVERITY_ORDER[w.severity])

        if warnings:
            logger.info(
                f"Detected {len(warnings)} pattern(s) in {len(bets)} bets: "
                f"{', '.join(w.id for w in warnings)}"
            )
        return warnings


def count_by_severity(warnings: Sequence[PatternWarning]) -> dict[str, int]:
    """Tally warnings per severity level."""
    counts = {severity.value: 0 for severity in PatternSeverity}
    for warning in warnings:
        counts[warning.severity.value] += 1
    return counts


def detect_patterns(history: Sequence[BetRecord]) -> list[PatternWarning]:
    """Detect patterns with the default configuration."""
    return PatternDetector().detect(history)
