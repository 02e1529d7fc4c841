"""Ordered, date-unique storage of portfolio valuations.

The store is the only mutable piece of the core. It is owned by a single
session and is not designed for concurrent writers.
"""
from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Iterator

import pandas as pd

from beatmarket.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValuationPoint:
    date: str  # ISO-8601 calendar date, YYYY-MM-DD
    value: float


def parse_date(raw: str | date | None) -> date:
    """Parse a calendar date, raising ValidationError for missing or malformed input."""
    if raw is None:
        raise ValidationError("Invalid date: a date is required")
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    s = str(raw).strip()
    if not s:
        raise ValidationError("Invalid date: a date is required")
    try:
        return date.fromisoformat(s)
    except ValueError as e:
        raise ValidationError(f"Invalid date: {s!r} is not an ISO calendar date (YYYY-MM-DD)") from e


def check_value(raw: object) -> float:
    """Return `raw` as a float if it is a finite number > 0, else raise ValidationError."""
    if isinstance(raw, bool) or not isinstance(raw, numbers.Real):
        raise ValidationError(f"Invalid value: {raw!r} is not a number")
    v = float(raw)
    if not math.isfinite(v):
        raise ValidationError(f"Invalid value: {raw!r} is not finite")
    if v <= 0:
        raise ValidationError(f"Invalid value: {v} must be greater than zero")
    return v


class TimeSeriesStore:
    """Valuation points kept in ascending date order with unique dates.

    Failed operations leave the store untouched.
    """

    def __init__(self, points: Iterable[ValuationPoint | tuple[str, float]] = ()):
        self._points: list[ValuationPoint] = []
        for p in points:
            if isinstance(p, ValuationPoint):
                self.insert(p.date, p.value)
            else:
                d, v = p
                self.insert(d, v)

    def insert(self, date: str | date | None, value: object) -> ValuationPoint:
        """Add a point and keep the sequence sorted ascending by date."""
        day = parse_date(date)
        v = check_value(value)
        key = day.isoformat()
        if key in self:
            raise ValidationError(f"Date already exists: {key}")

        point = ValuationPoint(date=key, value=v)
        self._points.append(point)
        self._points.sort(key=lambda p: p.date)
        logger.debug("inserted %s=%s (size=%d)", key, v, len(self._points))
        return point

    def remove_at(self, index: int) -> ValuationPoint:
        """Remove the point at `index`; later points shift down by one."""
        if isinstance(index, bool) or not isinstance(index, int):
            raise IndexError(f"index must be an integer, got {index!r}")
        if not 0 <= index < len(self._points):
            raise IndexError(f"index {index} out of range [0, {len(self._points)})")
        point = self._points.pop(index)
        logger.debug("removed %s at %d (size=%d)", point.date, index, len(self._points))
        return point

    def size(self) -> int:
        return len(self._points)

    def point_at(self, index: int) -> ValuationPoint:
        if not 0 <= index < len(self._points):
            raise IndexError(f"index {index} out of range [0, {len(self._points)})")
        return self._points[index]

    def all(self) -> tuple[ValuationPoint, ...]:
        return tuple(self._points)

    def dates(self) -> list[str]:
        return [p.date for p in self._points]

    def values(self) -> list[float]:
        return [p.value for p in self._points]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"date": self.dates(), "value": self.values()})

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[ValuationPoint]:
        return iter(tuple(self._points))

    def __contains__(self, day: object) -> bool:
        if isinstance(day, date):
            day = (day.date() if isinstance(day, datetime) else day).isoformat()
        return any(p.date == day for p in self._points)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(size={len(self._points)})"
