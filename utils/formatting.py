"""
Formatting utilities.
"""

from typing import Optional


FEET_PER_MILE = 5280


def format_currency(amount: int, currency: str = "USD") -> str:
    """
    Format an integer amount as currency.

    Args:
        amount: The amount in whole units (e.g., dollars, not cents).
        currency: Currency code (default USD).

    Returns:
        Formatted currency string.
    """
    symbols = {
        "USD": "$",
        "GBP": "£",
        "EUR": "€",
    }
    symbol = symbols.get(currency, currency + " ")
    if amount < 0:
        return f"-{symbol}{abs(amount):,}"
    return f"{symbol}{amount:,}"


def format_percent(value: float, decimals: int = 1) -> str:
    """
    Format a number as a percentage.

    Args:
        value: The percentage value.
        decimals: Number of decimal places.

    Returns:
        Formatted percentage string.
    """
    return f"{value:.{decimals}f}%"


def format_distance(miles: Optional[float]) -> str:
    """
    Format a distance for display.

    Under 0.1 miles is shown in feet, otherwise miles to two places.
    Returns an empty string when the distance is unknown.
    """
    if miles is None:
        return ""
    if miles < 0.1:
        return f"{round(miles * FEET_PER_MILE)} ft"
    return f"{miles:.2f} mi"
