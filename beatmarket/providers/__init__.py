"""Reference data providers.

The composer only depends on the `ReferenceDataProvider` protocol; concrete
providers live alongside it so callers can pick one without touching the core.
"""
from __future__ import annotations

from beatmarket.providers.base import ReferenceDataProvider
from beatmarket.providers.static import RandomWalkProvider, StaticReferenceProvider

__all__ = ["RandomWalkProvider", "ReferenceDataProvider", "StaticReferenceProvider"]
