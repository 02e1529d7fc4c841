"""Exception hierarchy.

Every error raised on purpose by the package derives from `BeatMarketError`,
so the CLI can catch one type at the command boundary. Out-of-range removals
use the builtin `IndexError`.
"""
from __future__ import annotations


class BeatMarketError(Exception):
    """Base class for recoverable errors raised by beatmarket."""


class ValidationError(BeatMarketError, ValueError):
    """Bad insertion input: missing/invalid date, non-positive or non-numeric value, duplicate date."""


class EmptyDataError(BeatMarketError):
    """A bundle was requested but the store holds no valuation points."""


class ProviderError(BeatMarketError):
    """Reference data could not be fetched (transport-level failure)."""


class ChartError(BeatMarketError):
    """The chart sink was asked to do something it cannot (e.g. export before render)."""


class BaselineError(BeatMarketError, ZeroDivisionError):
    """A series cannot be normalized because its baseline is zero or not finite."""
