from __future__ import annotations

from typing import Mapping, Protocol, Sequence


class ReferenceDataProvider(Protocol):
    async def fetch_series(
        self,
        symbols: Sequence[str],
        *,
        dates: Sequence[str] | None = None,
    ) -> Mapping[str, Sequence[float]]:
        """
        Return raw values per symbol, positionally aligned with `dates`
        (the portfolio's labels at query time) when the provider can align.

        Symbols the provider has no data for are simply left out of the mapping.
        Raise ProviderError on transport-level failure.
        """
        ...
