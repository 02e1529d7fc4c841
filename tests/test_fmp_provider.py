from __future__ import annotations

import asyncio
import os
import time
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
import requests

from beatmarket.config import Settings
from beatmarket.errors import ProviderError
from beatmarket.providers.cache import ResponseCache
from beatmarket.providers.fmp import FmpReferenceProvider, align_closes, closes_from_payload


def _payload(rows):
    return {"symbol": "SPY", "historical": rows}


def _settings(tmp_path, key="test_fmp_key") -> Settings:
    return Settings.model_construct(
        FMP_API_KEY=key,
        BTM_CACHE_DIR=str(tmp_path / "cache"),
        BTM_HTTP_TIMEOUT=5.0,
    )


def _session(payloads: dict) -> MagicMock:
    session = MagicMock()

    def get(url, params=None, timeout=None):
        sym = url.rsplit("/", 1)[-1]
        resp = MagicMock()
        resp.raise_for_status.return_value = None
        resp.json.return_value = payloads.get(sym, {})
        return resp

    session.get.side_effect = get
    return session


def test_closes_from_payload_sorts_ascending():
    s = closes_from_payload(_payload([
        {"date": "2024-01-03", "close": 472.0},
        {"date": "2024-01-02", "close": 470.0},
        {"date": "bad", "close": None},
    ]))
    assert [d.strftime("%Y-%m-%d") for d in s.index] == ["2024-01-02", "2024-01-03"]
    assert s.tolist() == [470.0, 472.0]


def test_closes_from_unknown_symbol_payload_is_empty():
    assert closes_from_payload({}).empty
    assert closes_from_payload([]).empty


def test_align_closes_uses_last_close_on_or_before():
    s = closes_from_payload(_payload([
        {"date": "2024-01-05", "close": 105.0},
        {"date": "2024-01-03", "close": 103.0},
        {"date": "2024-01-02", "close": 102.0},
    ]))
    # 01-01 predates the first close, 01-04 is a gap, 01-06 is past the last close.
    out = align_closes(s, ["2024-01-01", "2024-01-03", "2024-01-04", "2024-01-06"])
    assert out == [102.0, 103.0, 103.0, 105.0]


def test_fetch_series_aligns_and_omits_unknown(tmp_path):
    session = _session({
        "SPY": _payload([{"date": "2024-01-02", "close": 55.0}, {"date": "2024-01-01", "close": 50.0}]),
    })
    provider = FmpReferenceProvider(_settings(tmp_path), session=session)
    out = asyncio.run(provider.fetch_series(["SPY", "NOPE"], dates=["2024-01-01", "2024-01-02"]))
    assert out == {"SPY": [50.0, 55.0]}
    assert session.get.call_count == 2
    _, kwargs = session.get.call_args_list[0]
    assert kwargs["params"]["apikey"] == "test_fmp_key"
    assert kwargs["timeout"] == 5.0


def test_fetch_series_uses_cache(tmp_path):
    session = _session({"SPY": _payload([{"date": "2024-01-01", "close": 50.0}])})
    provider = FmpReferenceProvider(_settings(tmp_path), session=session)
    asyncio.run(provider.fetch_series(["SPY"], dates=["2024-01-01"]))
    asyncio.run(provider.fetch_series(["SPY"], dates=["2024-01-01"]))
    assert session.get.call_count == 1


def test_transport_failure_raises_provider_error(tmp_path):
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("boom")
    provider = FmpReferenceProvider(_settings(tmp_path), session=session)
    with pytest.raises(ProviderError, match="SPY"):
        asyncio.run(provider.fetch_series(["SPY"], dates=["2024-01-01"]))


def test_missing_api_key(tmp_path):
    provider = FmpReferenceProvider(_settings(tmp_path, key=None), session=MagicMock())
    with pytest.raises(ProviderError, match="FMP_API_KEY"):
        asyncio.run(provider.fetch_series(["SPY"]))


def test_response_cache_expiry_and_corruption(tmp_path):
    cache = ResponseCache(tmp_path, max_age=timedelta(hours=1))
    p = cache.put("fmp_hist_SPY/2024", {"historical": [1]})
    assert p.parent == tmp_path / "reference"
    assert "/" not in p.name
    assert cache.get("fmp_hist_SPY/2024") == {"historical": [1]}

    old = time.time() - 2 * 3600
    os.utime(p, (old, old))
    assert cache.get("fmp_hist_SPY/2024") is None

    p.write_text("{not json", encoding="utf-8")
    assert cache.get("fmp_hist_SPY/2024") is None
    assert cache.get("never_written") is None
