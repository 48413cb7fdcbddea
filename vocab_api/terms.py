"""Term dictionary: the user's highlighted terms mapped to their meanings."""

from __future__ import annotations

from typing import Any, Iterable, Optional


def term_key(term: str) -> str:
    """Comparison key for terms. Lookups ignore case, storage keeps the user's casing."""
    return (term or "").strip().lower()


class TermDict(dict):
    """Ordered term -> meaning mapping with case-insensitively unique keys.

    Setting a term that differs from an existing key only by case replaces the
    existing entry, so the newest spelling and meaning win.
    """

    @classmethod
    def from_raw(cls, raw: Any) -> "TermDict":
        """Build a TermDict from whatever shape was persisted or posted.

        Supports either:
          - dict: {"Haus": "house", ...}
          - list: [{"term": "Haus", "meaning": "house"}, ...]
        Entries with a non-string or blank term or meaning are dropped.
        """
        out = cls()
        if raw is None:
            return out

        items: Iterable[Any]
        if isinstance(raw, dict):
            items = raw.items()
        elif isinstance(raw, list):
            items = [
                (item.get("term"), item.get("meaning"))
                for item in raw
                if isinstance(item, dict)
            ]
        else:
            raise TypeError(f"cannot read a term dictionary from {type(raw).__name__}")

        for term, meaning in items:
            if not isinstance(term, str) or not isinstance(meaning, str):
                continue
            out.set(term, meaning)
        return out

    def find(self, term: str) -> Optional[str]:
        """Return the stored key matching `term` case-insensitively, if any."""
        key = term_key(term)
        for existing in self:
            if term_key(existing) == key:
                return existing
        return None

    def set(self, term: str, meaning: str) -> None:
        term = (term or "").strip()
        meaning = (meaning or "").strip()
        if not term or not meaning:
            return
        existing = self.find(term)
        if existing is not None:
            del self[existing]
        self[term] = meaning

    def remove(self, term: str) -> bool:
        existing = self.find(term)
        if existing is None:
            return False
        del self[existing]
        return True
