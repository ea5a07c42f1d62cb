"""
Selector Evaluator: matches selector ASTs against entries.

An expression is evaluated against a set of candidate entries: the entry
itself at the top level, or the ordered parents of an entry on the right of
`>`. Evaluation lazily yields every solution as a pair of the entry that
satisfied the expression (the witness) and the bindings captured on the way.
A failed branch simply yields nothing, so its captures never reach a result.
"""

from typing import Iterable, Iterator, Mapping, Optional, Sequence, Tuple

from bibsel.errors import EntryGraphError
from bibsel.graph.entry import MAX_GRAPH_DEPTH, Entry
from bibsel.sel_ast import (
    And,
    AttrFilter,
    Capture,
    Expr,
    Not,
    Or,
    Parent,
    Type,
    Wildcard,
)

Pairs = Tuple[Tuple[str, Entry], ...]
Solution = Tuple[Entry, Pairs]


class Bindings(Mapping[str, Entry]):
    """
    Named sub-entries captured by a successful match.

    Built fresh for every successful `apply`; may be empty.
    """

    __slots__ = ("_items",)

    def __init__(self, pairs: Iterable[Tuple[str, Entry]] = ()):
        self._items = dict(pairs)

    def __getitem__(self, name: str) -> Entry:
        return self._items[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v.key}:{v.entry_type}" for k, v in self._items.items())
        return f"Bindings({inner})"


class _Replay:
    """Re-iterable view over an iterator that pulls every item at most once."""

    def __init__(self, iterator: Iterator[Solution]):
        self._iterator = iterator
        self._seen = []

    def __iter__(self) -> Iterator[Solution]:
        i = 0
        while True:
            if i < len(self._seen):
                yield self._seen[i]
            else:
                try:
                    item = next(self._iterator)
                except StopIteration:
                    return
                self._seen.append(item)
                yield item
            i += 1


class SelectorEvaluator:
    """
    Core evaluation engine for selector expressions.

    Holds no state besides the expression, so one evaluator can be shared by
    any number of queries.
    """

    def __init__(self, expr: Expr):
        self.expr = expr

    def solutions(self, entry: Entry) -> Iterator[Tuple[Entry, Bindings]]:
        """Yield every way the expression matches `entry`."""
        for witness, pairs in self._solve(self.expr, (entry,), 0):
            yield witness, Bindings(pairs)

    def apply(self, entry: Entry) -> Optional[Bindings]:
        """The bindings of the first solution, or None if there is none."""
        for _, pairs in self._solve(self.expr, (entry,), 0):
            return Bindings(pairs)
        return None

    def matches(self, entry: Entry) -> bool:
        return self.apply(entry) is not None

    # pylint: disable=too-many-branches
    def _solve(self, node: Expr, candidates: Sequence[Entry], hops: int) -> Iterator[Solution]:
        if hops > MAX_GRAPH_DEPTH:
            raise EntryGraphError(f"selector followed more than {MAX_GRAPH_DEPTH} parent links")

        if isinstance(node, Type):
            for c in candidates:
                if c.entry_type == node.entry_type:
                    yield c, ()

        elif isinstance(node, Wildcard):
            for c in candidates:
                yield c, ()

        elif isinstance(node, AttrFilter):
            for witness, pairs in self._solve(node.expr, candidates, hops):
                if witness.has(node.field):
                    yield witness, pairs

        elif isinstance(node, Not):
            for c in candidates:
                if next(self._solve(node.expr, (c,), hops), None) is None:
                    yield c, ()

        elif isinstance(node, Or):
            yield from self._solve(node.left, candidates, hops)
            yield from self._solve(node.right, candidates, hops)

        elif isinstance(node, And):
            # Both sides draw from the same candidates; among parents each
            # side may be satisfied by a different one.
            rights = _Replay(self._solve(node.right, candidates, hops))
            for witness, left_pairs in self._solve(node.left, candidates, hops):
                found = False
                for _, right_pairs in rights:
                    found = True
                    yield witness, left_pairs + right_pairs
                if not found:
                    return

        elif isinstance(node, Parent):
            for c in candidates:
                ancestors = _Replay(self._solve(node.ancestor, c.parents, hops + 1))
                for _, child_pairs in self._solve(node.child, (c,), hops):
                    found = False
                    for _, parent_pairs in ancestors:
                        found = True
                        yield c, child_pairs + parent_pairs
                    if not found:
                        break

        elif isinstance(node, Capture):
            for witness, pairs in self._solve(node.expr, candidates, hops):
                yield witness, pairs + ((node.name, witness),)

        else:
            raise TypeError(f"Unknown selector node: {node!r}")
