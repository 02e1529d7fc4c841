from __future__ import annotations

from typing import Iterable, Iterator


def _norm(symbol: str) -> str:
    return str(symbol or "").strip().upper()


class SelectedSymbols:
    """Reference symbols chosen for comparison.

    Behaves like a set but remembers insertion order, which decides the
    series order in a bundle and therefore the colour each symbol gets.
    """

    def __init__(self, symbols: Iterable[str] = ()):
        self._symbols: dict[str, None] = {}
        for s in symbols:
            self.add(s)

    def add(self, symbol: str) -> bool:
        """Add a symbol; returns False if it was already selected or is blank."""
        s = _norm(symbol)
        if not s or s in self._symbols:
            return False
        self._symbols[s] = None
        return True

    def discard(self, symbol: str) -> bool:
        s = _norm(symbol)
        if s not in self._symbols:
            return False
        del self._symbols[s]
        return True

    def toggle(self, symbol: str, checked: bool) -> bool:
        """Checkbox semantics: checked adds, unchecked removes."""
        return self.add(symbol) if checked else self.discard(symbol)

    def as_list(self) -> list[str]:
        return list(self._symbols)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._symbols))

    def __len__(self) -> int:
        return len(self._symbols)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and _norm(symbol) in self._symbols

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SelectedSymbols):
            return self.as_list() == other.as_list()
        return NotImplemented

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.as_list()!r})"
