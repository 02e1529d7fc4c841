"""On-disk JSON store for provider responses."""
from __future__ import annotations

import json
import logging
import re
import time
from datetime import timedelta
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


class ResponseCache:
    """
    One JSON file per key under `<base>/reference/`.

    Entries older than `max_age` (by file mtime) read as misses. A corrupt or
    unreadable entry is also a miss; the next successful fetch overwrites it.
    """

    def __init__(self, base: str | Path, max_age: timedelta):
        self.root = Path(base) / "reference"
        self.max_age = max_age

    def path_for(self, key: str) -> Path:
        return self.root / f"{_UNSAFE.sub('_', key)}.json"

    def get(self, key: str) -> Any | None:
        p = self.path_for(key)
        try:
            age = time.time() - p.stat().st_mtime
        except FileNotFoundError:
            return None
        if age > self.max_age.total_seconds():
            logger.debug("cache entry %s is stale", p.name)
            return None
        try:
            with open(p, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.debug("ignoring unreadable cache entry %s: %s", p.name, e)
            return None

    def put(self, key: str, obj: Any) -> Path:
        p = self.path_for(key)
        p.parent.mkdir(parents=True, exist_ok=True)
        with open(p, "w", encoding="utf-8") as f:
            json.dump(obj, f, ensure_ascii=False)
        return p
