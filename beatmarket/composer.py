"""Merge the portfolio and its reference series into one chart-ready bundle."""
from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

import pandas as pd

from beatmarket.errors import EmptyDataError, ProviderError
from beatmarket.performance import normalize_reference_series, percent_change_series
from beatmarket.providers.base import ReferenceDataProvider
from beatmarket.selection import SelectedSymbols
from beatmarket.store import TimeSeriesStore

logger = logging.getLogger(__name__)

PORTFOLIO_LABEL = "Your Portfolio"


@dataclass(frozen=True)
class NamedPercentSeries:
    name: str
    values: tuple[float, ...]


@dataclass(frozen=True)
class ChartBundle:
    labels: tuple[str, ...]
    series: tuple[NamedPercentSeries, ...]
    warnings: tuple[str, ...] = ()

    @property
    def names(self) -> list[str]:
        return [s.name for s in self.series]

    def get(self, name: str) -> NamedPercentSeries | None:
        for s in self.series:
            if s.name == name:
                return s
        return None

    def portfolio(self) -> NamedPercentSeries:
        return self.series[0]

    def references(self) -> tuple[NamedPercentSeries, ...]:
        return self.series[1:]

    def to_frame(self) -> pd.DataFrame:
        """One column per series, indexed by label."""
        df = pd.DataFrame({s.name: list(s.values) for s in self.series}, index=list(self.labels))
        df.index.name = "date"
        return df


def align_length(values: Sequence[float], length: int) -> list[float]:
    """Truncate to `length`, or pad by holding the last value flat (0.0 if there is none)."""
    out = list(values[:length])
    if len(out) < length:
        fill = out[-1] if out else 0.0
        out.extend([fill] * (length - len(out)))
    return out


def _accepts_dates(fetch) -> bool:
    try:
        params = inspect.signature(fetch).parameters
    except (TypeError, ValueError):
        return False
    if "dates" in params:
        return True
    return any(p.kind is inspect.Parameter.VAR_KEYWORD for p in params.values())


async def _fetch(provider: ReferenceDataProvider, symbols: list[str], dates: list[str]):
    """Call `fetch_series`, handing over the label dates only to providers that take them."""
    if _accepts_dates(provider.fetch_series):
        return await provider.fetch_series(symbols, dates=dates)
    return await provider.fetch_series(symbols)


class SeriesComposer:
    """
    Builds ChartBundles from a store, a symbol selection and a provider.

    The portfolio always comes first, references follow in selection order.
    A reference that is missing from the provider's answer is skipped; one
    that is malformed or mis-sized is degraded and reported in `warnings`.
    """

    def __init__(self, portfolio_label: str = PORTFOLIO_LABEL):
        self.portfolio_label = portfolio_label

    async def compose(
        self,
        store: TimeSeriesStore,
        selected: SelectedSymbols | Iterable[str],
        provider: ReferenceDataProvider,
    ) -> ChartBundle:
        if store.size() == 0:
            raise EmptyDataError("No portfolio data to display")

        # Snapshot before the only suspension point; later mutations are not observed.
        points = store.all()
        labels = tuple(p.date for p in points)
        portfolio = NamedPercentSeries(self.portfolio_label, tuple(percent_change_series([p.value for p in points])))

        symbols = selected.as_list() if isinstance(selected, SelectedSymbols) else list(SelectedSymbols(selected))
        raw: dict = {}
        if symbols:
            logger.info("fetching reference series for %s", ", ".join(symbols))
            try:
                raw = dict(await _fetch(provider, symbols, list(labels)))
            except ProviderError:
                raise
            except Exception as e:
                raise ProviderError(f"Failed to fetch market data: {e}") from e

        series = [portfolio]
        warnings: list[str] = []
        for sym in symbols:
            values = raw.get(sym)
            if values is None:
                logger.debug("no reference data for %s; skipping", sym)
                continue
            try:
                values = list(values)
            except TypeError:
                msg = f"{sym}: reference data is not a sequence; showing zeros"
                logger.warning(msg)
                warnings.append(msg)
                series.append(NamedPercentSeries(sym, (0.0,) * len(labels)))
                continue
            n = min(len(values), len(labels))
            if len(values) != len(labels):
                msg = f"{sym}: {len(values)} point(s) for {len(labels)} label(s); compared first {n}"
                logger.warning(msg)
                warnings.append(msg)
            pct, warn = normalize_reference_series(sym, values[:n])
            if warn:
                warnings.append(warn)
            series.append(NamedPercentSeries(sym, tuple(align_length(pct, len(labels)))))

        return ChartBundle(labels=labels, series=tuple(series), warnings=tuple(warnings))


async def compose(
    store: TimeSeriesStore,
    selected: SelectedSymbols | Iterable[str],
    provider: ReferenceDataProvider,
    *,
    portfolio_label: str = PORTFOLIO_LABEL,
) -> ChartBundle:
    return await SeriesComposer(portfolio_label).compose(store, selected, provider)


def compose_sync(*args, **kwargs) -> ChartBundle:
    """Blocking wrapper that runs `compose` on a fresh event loop."""
    return asyncio.run(compose(*args, **kwargs))
