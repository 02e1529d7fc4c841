"""Financial Modeling Prep daily closes as a reference data provider."""
from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Any, Sequence

import pandas as pd
import requests
from requests.exceptions import RequestException

from beatmarket.config import Settings
from beatmarket.errors import ProviderError
from beatmarket.providers.cache import ResponseCache

logger = logging.getLogger(__name__)

FMP_BASE_URL = "https://financialmodelingprep.com/api"


def closes_from_payload(payload: Any) -> pd.Series:
    """
    Turn a `historical-price-full` payload into an ascending close series.

    FMP answers unknown symbols with `{}` (or a dict without "historical"),
    which yields an empty series.
    """
    rows = payload.get("historical", []) if isinstance(payload, dict) else []
    dates: list[str] = []
    closes: list[float] = []
    for r in rows:
        if not isinstance(r, dict):
            continue
        d = r.get("date")
        c = r.get("close")
        if not d or c is None:
            continue
        try:
            closes.append(float(c))
            dates.append(str(d)[0:10])
        except (TypeError, ValueError):
            continue
    s = pd.Series(closes, index=pd.to_datetime(dates, errors="coerce"), dtype=float)
    s = s[s.index.notna()]
    # Newest first on the wire.
    s = s[~s.index.duplicated(keep="first")].sort_index()
    return s


def align_closes(closes: pd.Series, dates: Sequence[str]) -> list[float]:
    """
    One close per requested date: the last close on or before that date.

    Dates earlier than the first available close take the first close, so
    the result always has len(dates) entries when `closes` is not empty.
    """
    if closes.empty or len(dates) == 0:
        return []
    idx = pd.to_datetime(list(dates))
    aligned = closes.reindex(closes.index.union(idx)).ffill().reindex(idx)
    if aligned.isna().any():
        logger.debug("%d leading date(s) before first close; using first close", int(aligned.isna().sum()))
        aligned = aligned.fillna(float(closes.iloc[0]))
    return [float(x) for x in aligned.to_numpy()]


class FmpReferenceProvider:
    def __init__(
        self,
        settings: Settings,
        *,
        cache_max_age: timedelta = timedelta(hours=12),
        session: requests.Session | None = None,
    ):
        self.settings = settings
        self.cache = ResponseCache(settings.cache_dir, cache_max_age)
        self.session = session or requests.Session()

    def _get_history(self, symbol: str, start: str | None, end: str | None) -> Any:
        key = f"fmp_hist_{symbol}_{start or 'all'}_{end or 'now'}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        params: dict[str, Any] = {"apikey": self.settings.fmp_api_key, "serietype": "line"}
        if start:
            params["from"] = start
        if end:
            params["to"] = end
        url = f"{FMP_BASE_URL}/v3/historical-price-full/{symbol}"
        logger.info("fetching %s closes from FMP (%s..%s)", symbol, start, end)
        try:
            resp = self.session.get(url, params=params, timeout=self.settings.http_timeout)
            resp.raise_for_status()
            payload = resp.json()
        except RequestException as e:
            raise ProviderError(f"FMP request for {symbol} failed: {e}") from e
        except ValueError as e:
            raise ProviderError(f"FMP returned invalid JSON for {symbol}") from e

        if isinstance(payload, dict) and payload.get("historical"):
            self.cache.put(key, payload)
        return payload

    def _fetch_one(self, symbol: str, dates: Sequence[str] | None) -> list[float] | None:
        start = None
        end = None
        if dates:
            # A couple of weeks of slack so the first label has a prior close.
            start = (pd.Timestamp(dates[0]) - pd.Timedelta(days=14)).date().isoformat()
            end = pd.Timestamp(dates[-1]).date().isoformat()

        closes = closes_from_payload(self._get_history(symbol, start, end))
        if closes.empty:
            logger.debug("no FMP history for %s", symbol)
            return None
        if dates is None:
            return [float(x) for x in closes.to_numpy()]
        return align_closes(closes, dates)

    async def fetch_series(
        self,
        symbols: Sequence[str],
        *,
        dates: Sequence[str] | None = None,
    ) -> dict[str, list[float]]:
        if not self.settings.fmp_api_key:
            raise ProviderError("FMP_API_KEY is not set; cannot fetch market data")
        syms = list(dict.fromkeys(s.strip().upper() for s in symbols if s and s.strip()))
        if not syms:
            return {}
        results = await asyncio.gather(*(asyncio.to_thread(self._fetch_one, s, dates) for s in syms))
        return {s: r for s, r in zip(syms, results) if r}
