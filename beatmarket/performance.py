"""Percent-change normalization and summary statistics.

Everything here is pure: same input, same output, no side effects other than
logging of degrade events.
"""
from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence

import numpy as np

from beatmarket.errors import BaselineError

if TYPE_CHECKING:
    from beatmarket.composer import ChartBundle
    from beatmarket.store import TimeSeriesStore

logger = logging.getLogger(__name__)


def percent_change_series(values: Sequence[float]) -> list[float]:
    """
    Express every value as percent deviation from values[0].

    out[0] is 0.0 by construction; out[i] = (values[i] - base) / base * 100.
    Raises BaselineError when the baseline is zero or not finite.
    """
    if len(values) == 0:
        return []
    arr = np.asarray(values, dtype=float)
    base = float(arr[0])
    if base == 0.0 or not math.isfinite(base):
        raise BaselineError(f"cannot normalize against baseline {base}")
    out = (arr - base) / base * 100.0
    out[0] = 0.0
    return [float(x) for x in out]


def percent_change_at(values: Sequence[float], index: int) -> float:
    """Percent change of values[index] against values[0]; 0.0 at index 0 or for an empty series."""
    if index == 0 or len(values) == 0:
        return 0.0
    base = float(values[0])
    if base == 0.0 or not math.isfinite(base):
        raise BaselineError(f"cannot normalize against baseline {base}")
    return (float(values[index]) - base) / base * 100.0


def total_return(values: Sequence[float]) -> float:
    """Percent change of the last value against the first (0.0 when empty)."""
    if len(values) == 0:
        return 0.0
    return percent_change_at(values, len(values) - 1)


def validate_reference_values(values: Sequence[object]) -> str | None:
    """
    Apply the insertion rule of the store (finite, > 0) to a raw reference series.

    Returns a reason string when the series cannot be normalized, else None.
    """
    for i, v in enumerate(values):
        if isinstance(v, bool) or not isinstance(v, numbers.Real):
            return f"value at index {i} is not a number ({v!r})"
        f = float(v)
        if not math.isfinite(f):
            return f"value at index {i} is not finite ({f})"
        if f <= 0:
            return f"value at index {i} is not positive ({f})"
    return None


def normalize_reference_series(symbol: str, values: Sequence[object]) -> tuple[list[float], str | None]:
    """
    Normalize a reference series, degrading instead of raising.

    A series that fails validation becomes a zero-filled series of the same
    length and the returned warning explains why. One bad reference series
    must never abort a whole composition.
    """
    reason = validate_reference_values(values)
    if reason is not None:
        msg = f"{symbol}: {reason}; series flattened to 0%"
        logger.warning(msg)
        return [0.0] * len(values), msg
    return percent_change_series([float(v) for v in values]), None  # type: ignore[arg-type]


@dataclass(frozen=True)
class PerformanceSummary:
    data_points: int
    total_return_pct: float
    first_date: str | None = None
    last_date: str | None = None
    # Portfolio total return minus each reference's total return (percentage points).
    relative: dict[str, float] = field(default_factory=dict)


def performance_summary(store: "TimeSeriesStore", bundle: "ChartBundle | None" = None) -> PerformanceSummary:
    """Headline numbers for the stats panel: total return, point count, and excess return vs references."""
    values = store.values()
    dates = store.dates()
    tr = total_return(values)

    relative: dict[str, float] = {}
    if bundle is not None:
        for s in bundle.references():
            last = s.values[-1] if s.values else 0.0
            relative[s.name] = tr - float(last)

    return PerformanceSummary(
        data_points=len(values),
        total_return_pct=tr,
        first_date=dates[0] if dates else None,
        last_date=dates[-1] if dates else None,
        relative=relative,
    )
