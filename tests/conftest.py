"""
Pytest configuration and shared fixtures for beatmarket tests.

Usage:
    @pytest.fixture functions are automatically available to all tests.
"""
import sys
from pathlib import Path

import pytest

from beatmarket.providers import StaticReferenceProvider
from beatmarket.store import TimeSeriesStore


def pytest_configure():
    """
    Ensure the repo root is on sys.path for the flat-layout package import (`beatmarket`).
    This keeps tests runnable without requiring an editable install.
    """
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def two_point_store() -> TimeSeriesStore:
    """The 100 -> 110 portfolio used throughout the examples."""
    return TimeSeriesStore([("2024-01-01", 100.0), ("2024-01-02", 110.0)])


@pytest.fixture
def month_store() -> TimeSeriesStore:
    """Five valuations entered out of order."""
    store = TimeSeriesStore()
    for d, v in [
        ("2024-01-15", 10_400.0),
        ("2024-01-01", 10_000.0),
        ("2024-01-31", 10_850.0),
        ("2024-01-08", 9_800.0),
        ("2024-01-22", 10_100.0),
    ]:
        store.insert(d, v)
    return store


@pytest.fixture
def spy_provider() -> StaticReferenceProvider:
    return StaticReferenceProvider({"SPY": [50.0, 55.0]})


# =============================================================================
# Test Doubles
# =============================================================================

class FailingProvider:
    """Provider whose transport always fails."""

    def __init__(self, exc: Exception):
        self.exc = exc

    async def fetch_series(self, symbols, *, dates=None):
        raise self.exc


@pytest.fixture
def failing_provider_factory():
    return FailingProvider


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every BTM_* path at tmp_path and keep .env / API keys out of the way."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BTM_SHEET", str(tmp_path / "sheet.csv"))
    monkeypatch.setenv("BTM_SELECTION", str(tmp_path / "selection.json"))
    monkeypatch.setenv("BTM_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("BTM_EXPORT_DIR", str(tmp_path / "exports"))
    monkeypatch.delenv("FMP_API_KEY", raising=False)
    monkeypatch.delenv("BTM_DEFAULT_SYMBOLS", raising=False)
    return tmp_path
