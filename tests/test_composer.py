from __future__ import annotations

import asyncio

import pytest

from beatmarket.composer import PORTFOLIO_LABEL, SeriesComposer, align_length, compose, compose_sync
from beatmarket.errors import EmptyDataError, ProviderError, ValidationError
from beatmarket.providers import RandomWalkProvider, StaticReferenceProvider
from beatmarket.selection import SelectedSymbols
from beatmarket.store import TimeSeriesStore


def test_spy_scenario(two_point_store, spy_provider):
    bundle = compose_sync(two_point_store, SelectedSymbols(["SPY"]), spy_provider)
    assert bundle.labels == ("2024-01-01", "2024-01-02")
    assert bundle.names == [PORTFOLIO_LABEL, "SPY"]
    assert list(bundle.portfolio().values) == pytest.approx([0.0, 10.0])
    assert list(bundle.get("SPY").values) == pytest.approx([0.0, 10.0])
    assert bundle.warnings == ()


def test_empty_store_raises(spy_provider):
    with pytest.raises(EmptyDataError):
        compose_sync(TimeSeriesStore(), SelectedSymbols(["SPY"]), spy_provider)
    assert spy_provider.calls == []


def test_missing_symbol_is_skipped(two_point_store):
    provider = StaticReferenceProvider({"SPY": [50.0, 55.0]})
    bundle = compose_sync(two_point_store, SelectedSymbols(["QQQ", "SPY"]), provider)
    assert bundle.names == [PORTFOLIO_LABEL, "SPY"]
    assert bundle.warnings == ()


def test_no_selection_skips_provider(two_point_store, spy_provider):
    bundle = compose_sync(two_point_store, SelectedSymbols(), spy_provider)
    assert bundle.names == [PORTFOLIO_LABEL]
    assert spy_provider.calls == []


def test_selection_order_preserved(month_store):
    provider = StaticReferenceProvider({s: [10, 11, 12, 13, 14] for s in ["DIA", "SPY", "QQQ"]})
    bundle = compose_sync(month_store, ["QQQ", "DIA", "SPY"], provider)
    assert bundle.names == [PORTFOLIO_LABEL, "QQQ", "DIA", "SPY"]
    assert provider.calls == [["QQQ", "DIA", "SPY"]]


def test_idempotent(month_store):
    provider = StaticReferenceProvider({"SPY": [400, 404, 398, 410, 420]})
    sel = SelectedSymbols(["SPY"])
    assert compose_sync(month_store, sel, provider) == compose_sync(month_store, sel, provider)


def test_short_reference_held_flat(month_store):
    provider = StaticReferenceProvider({"SPY": [100.0, 110.0, 120.0]})
    bundle = compose_sync(month_store, ["SPY"], provider)
    spy = bundle.get("SPY")
    assert len(spy.values) == len(bundle.labels) == 5
    assert list(spy.values) == pytest.approx([0.0, 10.0, 20.0, 20.0, 20.0])
    assert any("SPY" in w for w in bundle.warnings)


def test_long_reference_truncated(two_point_store):
    provider = StaticReferenceProvider({"SPY": [50.0, 55.0, 60.0, 70.0]})
    bundle = compose_sync(two_point_store, ["SPY"], provider)
    assert list(bundle.get("SPY").values) == pytest.approx([0.0, 10.0])
    assert len(bundle.warnings) == 1


def test_empty_reference_padded_with_zeros(two_point_store):
    provider = StaticReferenceProvider({"SPY": []})
    bundle = compose_sync(two_point_store, ["SPY"], provider)
    assert list(bundle.get("SPY").values) == [0.0, 0.0]


def test_zero_baseline_reference_degrades(two_point_store):
    provider = StaticReferenceProvider({"BAD": [0.0, 5.0], "SPY": [50.0, 55.0]})
    bundle = compose_sync(two_point_store, ["BAD", "SPY"], provider)
    assert list(bundle.get("BAD").values) == [0.0, 0.0]
    assert list(bundle.get("SPY").values) == pytest.approx([0.0, 10.0])
    assert len(bundle.warnings) == 1


def test_provider_error_propagates(two_point_store, failing_provider_factory):
    with pytest.raises(ProviderError):
        compose_sync(two_point_store, ["SPY"], failing_provider_factory(ProviderError("down")))


def test_unexpected_provider_failure_is_wrapped(two_point_store, failing_provider_factory):
    with pytest.raises(ProviderError) as ei:
        compose_sync(two_point_store, ["SPY"], failing_provider_factory(ConnectionError("reset")))
    assert isinstance(ei.value.__cause__, ConnectionError)


def test_snapshot_taken_before_fetch(two_point_store):
    class MutatingProvider:
        async def fetch_series(self, symbols, *, dates=None):
            two_point_store.insert("2024-01-03", 130.0)
            return {"SPY": [50.0, 55.0]}

    bundle = compose_sync(two_point_store, ["SPY"], MutatingProvider())
    assert bundle.labels == ("2024-01-01", "2024-01-02")
    assert two_point_store.size() == 3


def test_single_point_after_removal(two_point_store):
    two_point_store.remove_at(0)
    bundle = compose_sync(two_point_store, [], StaticReferenceProvider({}))
    assert bundle.portfolio().values == (0.0,)


def test_custom_label_and_async_entrypoint(two_point_store, spy_provider):
    bundle = asyncio.run(compose(two_point_store, ["SPY"], spy_provider, portfolio_label="Mine"))
    assert bundle.names[0] == "Mine"
    bundle2 = asyncio.run(SeriesComposer("Mine").compose(two_point_store, ["SPY"], spy_provider))
    assert bundle == bundle2


def test_seeded_random_walk_is_reproducible(month_store):
    a = compose_sync(month_store, ["SPY", "QQQ"], RandomWalkProvider(seed=7))
    b = compose_sync(month_store, ["SPY", "QQQ"], RandomWalkProvider(seed=7))
    assert a == b
    assert all(len(s.values) == 5 for s in a.series)


def test_to_frame(two_point_store, spy_provider):
    df = compose_sync(two_point_store, ["SPY"], spy_provider).to_frame()
    assert list(df.columns) == [PORTFOLIO_LABEL, "SPY"]
    assert df.index.tolist() == ["2024-01-01", "2024-01-02"]


def test_align_length():
    assert align_length([1.0, 2.0], 4) == [1.0, 2.0, 2.0, 2.0]
    assert align_length([1.0, 2.0, 3.0], 2) == [1.0, 2.0]
    assert align_length([], 3) == [0.0, 0.0, 0.0]


def test_provider_without_dates_keyword(two_point_store):
    class SymbolsOnlyProvider:
        def __init__(self):
            self.calls = []

        async def fetch_series(self, symbols):
            self.calls.append(list(symbols))
            return {"SPY": [50.0, 55.0]}

    provider = SymbolsOnlyProvider()
    bundle = compose_sync(two_point_store, ["SPY"], provider)
    assert provider.calls == [["SPY"]]
    assert list(bundle.get("SPY").values) == pytest.approx([0.0, 10.0])


def test_provider_with_var_keywords_gets_dates(two_point_store):
    seen = {}

    class KwargsProvider:
        async def fetch_series(self, symbols, **kwargs):
            seen.update(kwargs)
            return {"SPY": [50.0, 55.0]}

    compose_sync(two_point_store, ["SPY"], KwargsProvider())
    assert seen == {"dates": ["2024-01-01", "2024-01-02"]}


def test_validation_error_from_provider_is_wrapped(two_point_store, failing_provider_factory):
    with pytest.raises(ProviderError) as ei:
        compose_sync(two_point_store, ["SPY"], failing_provider_factory(ValidationError("bad symbol")))
    assert isinstance(ei.value.__cause__, ValidationError)


def test_non_sequence_reference_degrades(two_point_store):
    class ScalarProvider:
        async def fetch_series(self, symbols, *, dates=None):
            return {"SPY": 5, "QQQ": [10.0, 12.0]}

    bundle = compose_sync(two_point_store, ["SPY", "QQQ"], ScalarProvider())
    assert bundle.get("SPY").values == (0.0, 0.0)
    assert list(bundle.get("QQQ").values) == pytest.approx([0.0, 20.0])
    assert len(bundle.warnings) == 1
    assert "SPY" in bundle.warnings[0]
