"""Spreadsheet-friendly persistence for a CLI session.

The core keeps everything in memory; this module is how the CLI carries a
store (and the symbol selection) from one invocation to the next.
"""
from __future__ import annotations

import csv
import json
import os
from pathlib import Path

from beatmarket.errors import ValidationError
from beatmarket.performance import percent_change_series
from beatmarket.selection import SelectedSymbols
from beatmarket.store import TimeSeriesStore

_SHEET_FIELDS = ["date", "value", "pct_change"]


def default_sheet_path() -> str:
    return os.environ.get("BTM_SHEET", "data/portfolio_sheet.csv")


def default_selection_path() -> str:
    return os.environ.get("BTM_SELECTION", "data/selection.json")


def read_sheet(path: str | None = None) -> TimeSeriesStore:
    """Load a store from CSV; every row goes through `insert`, so a bad row fails loudly."""
    path = path or default_sheet_path()
    store = TimeSeriesStore()
    if not Path(path).exists():
        return store
    with open(path, newline="") as f:
        r = csv.DictReader(f)
        for line_no, row in enumerate(r, start=2):
            raw = (row.get("value") or "").strip()
            try:
                value = float(raw)
            except ValueError:
                raise ValidationError(f"{path}:{line_no}: invalid value {raw!r}") from None
            try:
                store.insert(row.get("date"), value)
            except ValidationError as e:
                raise ValidationError(f"{path}:{line_no}: {e}") from e
    return store


def write_sheet(store: TimeSeriesStore, path: str | None = None) -> str:
    """Rewrite the CSV with the store's points. Values round-trip exactly; pct_change is informational."""
    path = path or default_sheet_path()
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    pct = percent_change_series(store.values())
    tmp = Path(f"{path}.tmp")
    with open(tmp, "w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=_SHEET_FIELDS)
        w.writeheader()
        for p, c in zip(store.all(), pct):
            w.writerow({"date": p.date, "value": repr(p.value), "pct_change": f"{c:.6f}"})
    tmp.replace(path)
    return path


def read_selection(path: str | None = None, default: list[str] | None = None) -> SelectedSymbols:
    path = path or default_selection_path()
    p = Path(path)
    if not p.exists():
        return SelectedSymbols(default or [])
    data = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValidationError(f"{path}: expected a JSON list of symbols")
    return SelectedSymbols(str(x) for x in data)


def write_selection(selected: SelectedSymbols, path: str | None = None) -> str:
    path = path or default_selection_path()
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    Path(path).write_text(json.dumps(selected.as_list()), encoding="utf-8")
    return path
