"""
Entry: a citable bibliographic record and its ordered parents.

Entries are immutable once built. Parents are held by reference, so a parent
that several children point at exists once in memory. The parent relation is
assumed acyclic; the traversals below still carry a depth guard.
"""

from collections import deque
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping, Optional, Tuple, TypeVar

from bibsel.errors import EntryGraphError
from bibsel.graph.types import Date, EntryType, Person, QualifiedUrl

# Deepest parent nesting any traversal will follow
MAX_GRAPH_DEPTH = 100

T = TypeVar("T")


def is_present(value: Any) -> bool:
    """A field value counts as present if it is set and not empty."""
    if value is None:
        return False
    if isinstance(value, (str, bytes, tuple, list, dict, set, frozenset)):
        return len(value) > 0
    if isinstance(value, QualifiedUrl):
        return bool(value)
    return True


@dataclass(frozen=True)
class Entry:
    """
    A citable item in a bibliography.

    Equality is structural over type, fields and parents. The key is the
    identity within a library and does not take part in comparisons.
    """

    key: str = field(compare=False)
    entry_type: EntryType
    fields: Mapping[str, Any] = field(default_factory=dict, hash=False, repr=False)
    parents: Tuple["Entry", ...] = field(default=(), repr=False)

    def __post_init__(self):
        if not isinstance(self.entry_type, EntryType):
            object.__setattr__(self, "entry_type", EntryType.from_name(str(self.entry_type)))
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        parents = tuple(self.parents)
        for parent in parents:
            if not isinstance(parent, Entry):
                raise TypeError(f"parent of {self.key!r} is not an Entry: {parent!r}")
        object.__setattr__(self, "parents", parents)

    # === Field access ===

    def has(self, name: str) -> bool:
        """Check whether the entry exposes a non-empty value for `name`."""
        return is_present(self.fields.get(name))

    def get(self, name: str, default: Any = None) -> Any:
        """Get the value of a field, or `default` if it is absent or empty."""
        value = self.fields.get(name)
        return value if is_present(value) else default

    @property
    def title(self) -> Optional[str]:
        return self.get("title")

    @property
    def authors(self) -> Tuple[Person, ...]:
        return self.get("author", ())

    @property
    def editors(self) -> Tuple[Person, ...]:
        return self.get("editor", ())

    @property
    def date(self) -> Optional[Date]:
        return self.get("date")

    @property
    def url(self) -> Optional[QualifiedUrl]:
        return self.get("url")

    # === Ancestor traversal ===

    def map(self, f: Callable[["Entry"], Optional[T]]) -> Optional[T]:
        """Return `f(self)` if it is not None, otherwise search the parents."""
        value = f(self)
        if value is not None:
            return value
        return self.map_parents(f)

    def map_parents(self, f: Callable[["Entry"], Optional[T]]) -> Optional[T]:
        """
        Breadth-first search over the ancestors for the first non-None `f`.

        All parents of one depth are probed in declared order before any
        entry of the next depth. An ancestor reachable along several paths is
        probed once, at the first position it is reached.
        """
        for item in self.ancestors():
            value = f(item)
            if value is not None:
                return value
        return None

    def ancestors(self) -> Iterator["Entry"]:
        """Yield every ancestor once, breadth first, parents in declared order."""
        seen = set()
        queue = deque((parent, 1) for parent in self.parents)
        while queue:
            item, depth = queue.popleft()
            if depth > MAX_GRAPH_DEPTH:
                raise EntryGraphError(
                    f"parents of {self.key!r} nest deeper than {MAX_GRAPH_DEPTH} levels"
                )
            if id(item) in seen:
                continue
            seen.add(id(item))
            yield item
            queue.extend((parent, depth + 1) for parent in item.parents)

    def date_any(self) -> Optional[Date]:
        """The date of the entry or of its nearest ancestor that has one."""
        return self.map(lambda e: e.date)

    def url_any(self) -> Optional[QualifiedUrl]:
        """The URL of the entry or of its nearest ancestor that has one."""
        return self.map(lambda e: e.url)

    def __str__(self) -> str:
        return f"{self.key} ({self.entry_type})"
