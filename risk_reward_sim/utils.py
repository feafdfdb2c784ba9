"""
Utility functions for the Risk Reward Simulator.

This module provides helper functions for common operations
like formatting, timestamp parsing, and small statistics helpers
shared by the analytics modules.
"""

import logging
import math
from datetime import datetime
from typing import Any, Iterable, Optional, Protocol, Sequence, Union

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    """Anything that yields uniform floats in [0, 1). random.Random qualifies."""

    def random(self) -> float: ...


def safe_float(value: Any, default: float = 0.0) -> float:
    """
    Safely convert a value to float.

    Args:
        value: Value to convert.
        default: Default value if conversion fails.

    Returns:
        Float value or default.
    """
    if value is None:
        return default
    try:
        return float(value)
    except (ValueError, TypeError):
        return default


def parse_timestamp(
    value: Union[str, int, float, datetime, None],
    default: Optional[datetime] = None
) -> Optional[datetime]:
    """
    Parse various timestamp formats to datetime.

    Handles:
    - datetime instances (returned as-is)
    - ISO format strings
    - Unix timestamps (seconds or milliseconds)

    Args:
        value: Timestamp value to parse.
        default: Default value if parsing fails.

    Returns:
        Parsed datetime or default.
    """
    if value is None:
        return default
    if isinstance(value, datetime):
        return value

    try:
        if isinstance(value, str):
            value = value.replace("Z", "+00:00")
            return datetime.fromisoformat(value)

        ts = float(value)
        if ts > 1e12:  # Milliseconds
            ts = ts / 1000
        return datetime.fromtimestamp(ts)

    except (ValueError, TypeError, OSError):
        return default


def format_currency(value: float, symbol: str = "$", decimals: int = 2) -> str:
    """
    Format a number as a currency string.

    Args:
        value: Amount to format.
        symbol: Currency symbol prefix.
        decimals: Decimal places.

    Returns:
        Formatted string like "$1,234.50" or "-$20.00".
    """
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.{decimals}f}"


def format_percentage(value: float, decimals: int = 1, include_symbol: bool = True) -> str:
    """
    Format a fraction as a percentage string.

    Args:
        value: Fraction to format (0.25 for 25%).
        decimals: Decimal places.
        include_symbol: Append a % sign.

    Returns:
        Formatted string like "25.0%".
    """
    formatted = f"{value * 100:.{decimals}f}"
    return f"{formatted}%" if include_symbol else formatted


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def standard_deviation(values: Sequence[float]) -> float:
    """
    Population standard deviation.

    Returns 0.0 for fewer than two values.
    """
    if len(values) <= 1:
        return 0.0
    avg = mean(values)
    variance = sum((v - avg) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def gini_coefficient(values: Iterable[float]) -> float:
    """
    Gini coefficient of a set of non-negative values.

    0 means perfectly even, values approaching 1 mean concentrated.
    Returns 0.0 for empty input or an all-zero total.
    """
    ordered = sorted(values)
    n = len(ordered)
    if n == 0:
        return 0.0
    total = sum(ordered)
    if total == 0:
        return 0.0
    weighted = sum(value * (i + 1) for i, value in enumerate(ordered))
    return (2 * weighted) / (n * total) - (n + 1) / n
