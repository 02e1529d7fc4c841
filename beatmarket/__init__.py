"""Beat the Market: track a portfolio's valuations against market indices.

The core is small and framework-free:
- `store`: ordered, date-unique valuation points
- `performance`: percent-change normalization and summary stats
- `composer`: merges the portfolio with reference series into a chart bundle

Providers (market data), the chart sink, the CSV sheet and the CLI are
adapters around that core.
"""
from __future__ import annotations

from beatmarket.composer import (
    PORTFOLIO_LABEL,
    ChartBundle,
    NamedPercentSeries,
    SeriesComposer,
    compose,
    compose_sync,
)
from beatmarket.errors import (
    BaselineError,
    BeatMarketError,
    ChartError,
    EmptyDataError,
    ProviderError,
    ValidationError,
)
from beatmarket.performance import percent_change_series, performance_summary, total_return
from beatmarket.selection import SelectedSymbols
from beatmarket.store import TimeSeriesStore, ValuationPoint

__all__ = [
    "PORTFOLIO_LABEL",
    "BaselineError",
    "BeatMarketError",
    "ChartBundle",
    "ChartError",
    "EmptyDataError",
    "NamedPercentSeries",
    "ProviderError",
    "SelectedSymbols",
    "SeriesComposer",
    "TimeSeriesStore",
    "ValidationError",
    "ValuationPoint",
    "compose",
    "compose_sync",
    "percent_change_series",
    "performance_summary",
    "total_return",
]
