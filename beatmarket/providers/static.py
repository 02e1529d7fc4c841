"""In-process providers: fixed data and the random-walk demo feed."""
from __future__ import annotations

import asyncio
import random
from typing import Mapping, Sequence


class StaticReferenceProvider:
    """Serves a fixed symbol -> values mapping (tests, offline replays)."""

    def __init__(self, data: Mapping[str, Sequence[float]]):
        self._data = {str(k).upper(): list(v) for k, v in data.items()}
        self.calls: list[list[str]] = []

    async def fetch_series(
        self,
        symbols: Sequence[str],
        *,
        dates: Sequence[str] | None = None,
    ) -> dict[str, list[float]]:
        self.calls.append(list(symbols))
        await asyncio.sleep(0)
        return {s: list(self._data[s]) for s in symbols if s in self._data}


class RandomWalkProvider:
    """
    Demo feed: each symbol starts at `start` and moves by a uniform step in
    [-step/2, step/2) per label. Pass `seed` for a reproducible walk.

    This is a stand-in for a real market data source and is never used unless
    asked for explicitly.
    """

    def __init__(self, seed: int | None = None, start: float = 100.0, step: float = 10.0, length: int | None = None):
        self._rng = random.Random(seed)
        self.start = float(start)
        self.step = float(step)
        self.length = length

    def _walk(self, n: int) -> list[float]:
        out = []
        value = self.start
        for _ in range(n):
            value += (self._rng.random() - 0.5) * self.step
            out.append(value)
        return out

    async def fetch_series(
        self,
        symbols: Sequence[str],
        *,
        dates: Sequence[str] | None = None,
    ) -> dict[str, list[float]]:
        n = len(dates) if dates is not None else int(self.length or 0)
        await asyncio.sleep(0)
        return {s: self._walk(n) for s in symbols}
