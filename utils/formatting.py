"""
Formatting utilities.

Every formatter renders a missing value as an empty string.
"""

from typing import Optional

from core.filters import WATER_NEAR_FEET


def format_currency(amount: Optional[float], currency: str = "USD", decimals: int = 0) -> str:
    """
    Format an amount as currency.

    Args:
        amount: The amount in whole units (e.g., dollars, not cents).
        currency: Currency code (default USD).
        decimals: Number of decimal places.

    Returns:
        Formatted currency string.
    """
    if amount is None:
        return ""
    symbols = {
        "GBP": "£",
        "USD": "$",
        "EUR": "€",
    }
    symbol = symbols.get(currency, currency + " ")
    return f"{symbol}{amount:,.{decimals}f}"


def format_number(value: Optional[float], decimals: int = 0) -> str:
    if value is None:
        return ""
    return f"{value:,.{decimals}f}"


def format_score(value: Optional[float]) -> str:
    """Scores are shown to three decimals."""
    return format_number(value, 3)


def format_percent(value: Optional[float], decimals: int = 1) -> str:
    """
    Format a number as a percentage.

    Args:
        value: The percentage value.
        decimals: Number of decimal places.

    Returns:
        Formatted percentage string.
    """
    if value is None:
        return ""
    return f"{value:.{decimals}f}%"


def water_label(feet: Optional[float]) -> str:
    """Bucket water proximity into adjacent / near / far."""
    if feet is None:
        return ""
    if feet == 0:
        return "adjacent"
    if feet <= WATER_NEAR_FEET:
        return "near"
    return "far"
