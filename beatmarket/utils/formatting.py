"""
Display formatting utilities for CLI output.

Provides consistent formatting for:
- Currency values
- Signed percentages (already expressed in percent units)
- Rich colour names for gains/losses
"""
from __future__ import annotations

from typing import Optional


def fmt_usd(x: Optional[float], show_cents: bool = True) -> str:
    """Format as USD currency."""
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    if show_cents:
        return f"${float(x):,.2f}"
    return f"${float(x):,.0f}"


def fmt_signed_pct(x: Optional[float], decimals: int = 2) -> str:
    """Format a percent value with + prefix for non-negatives (10.0 -> '+10.00%')."""
    if x is None or not isinstance(x, (int, float)):
        return "n/a"
    value = float(x)
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{decimals}f}%"


def change_style(x: Optional[float]) -> str:
    """Rich style for a percent change: green when >= 0, red otherwise."""
    if x is None:
        return "dim"
    return "green" if float(x) >= 0 else "red"
