"""
Library: an insertion-ordered collection of entries addressed by key.
"""

from typing import Dict, Iterable, Iterator, Optional

from bibsel.errors import DuplicateKeyError
from bibsel.graph.entry import Entry


class Library:
    """A collection of bibliographic entries with unique keys."""

    def __init__(self, entries: Optional[Iterable[Entry]] = None):
        self._entries: Dict[str, Entry] = {}
        for entry in entries or ():
            self.push(entry)

    def push(self, entry: Entry) -> None:
        """Add an entry. Raises DuplicateKeyError if its key is taken."""
        if entry.key in self._entries:
            raise DuplicateKeyError(entry.key)
        self._entries[entry.key] = entry

    def get(self, key: str) -> Optional[Entry]:
        return self._entries.get(key)

    def remove(self, key: str) -> Optional[Entry]:
        """Remove and return the entry under `key`, if any."""
        return self._entries.pop(key, None)

    def iter(self) -> Iterator[Entry]:
        return iter(self._entries.values())

    def keys(self) -> Iterator[str]:
        return iter(self._entries.keys())

    def nth(self, n: int) -> Optional[Entry]:
        """The entry at insertion position `n`, or None if out of range."""
        if n < 0 or n >= len(self._entries):
            return None
        for i, entry in enumerate(self._entries.values()):
            if i == n:
                return entry
        return None

    def is_empty(self) -> bool:
        return not self._entries

    def __getitem__(self, key: str) -> Entry:
        return self._entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[Entry]:
        return self.iter()

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Library):
            return NotImplemented
        return list(self._entries.items()) == list(other._entries.items())

    def __repr__(self) -> str:
        return f"Library({len(self._entries)} entries)"
