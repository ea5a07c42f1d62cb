"""
Selector: the public face of the selector language.

    journal = select('(Article["date"]) > ("journal":Periodical)')
    bindings = journal.apply(entry)
    if bindings is not None:
        periodical = bindings.get("journal")

Use `parse` for selectors that come from users and `select` for literals
written in code: `select` keeps every parsed literal in a process-wide cache,
so each distinct literal is parsed once.
"""

import logging
import threading
from typing import Dict, Iterable, List, Optional, Tuple

from bibsel.errors import SelectorError, SelectorErrorKind
from bibsel.graph.entry import Entry
from bibsel.sel_ast import Expr, capture_names, to_source
from bibsel.sel_evaluator import Bindings, SelectorEvaluator
from bibsel.sel_parser import parse_expr

logger = logging.getLogger(__name__)


class Selector:
    """A parsed selector that can be matched against entries."""

    def __init__(self, expr: Expr, source: Optional[str] = None):
        self.expr = expr
        self.source = source if source is not None else to_source(expr)
        seen = set()
        for name in capture_names(expr):
            if name in seen:
                raise SelectorError(
                    SelectorErrorKind.DUPLICATE_BINDING, 0, self.source, detail=name
                )
            seen.add(name)
        self._evaluator = SelectorEvaluator(expr)

    @classmethod
    def parse(cls, text: str) -> "Selector":
        """Parse selector source. Raises SelectorError on malformed input."""
        return cls(parse_expr(text), source=text)

    def matches(self, entry: Entry) -> bool:
        """Whether the selector matches the entry."""
        return self._evaluator.matches(entry)

    def apply(self, entry: Entry) -> Optional[Bindings]:
        """
        Match the entry and return the captured bindings.

        Returns None if the selector does not match. A match without captures
        returns empty bindings, not None.
        """
        return self._evaluator.apply(entry)

    def select_all(self, entries: Iterable[Entry]) -> List[Entry]:
        """The entries the selector matches, in iteration order."""
        return [entry for entry, _ in self.apply_all(entries)]

    def apply_all(self, entries: Iterable[Entry]) -> List[Tuple[Entry, Bindings]]:
        """Pairs of matching entry and its bindings, in iteration order."""
        results = []
        total = 0
        for entry in entries:
            total += 1
            bindings = self.apply(entry)
            if bindings is not None:
                results.append((entry, bindings))
        logger.debug("Selector %r matched %s of %s entries", self.source, len(results), total)
        return results

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Selector):
            return NotImplemented
        return self.expr == other.expr

    def __hash__(self) -> int:
        return hash(self.expr)

    def __repr__(self) -> str:
        return f"Selector({self.source!r})"

    def __str__(self) -> str:
        return self.source


def parse(text: str) -> Selector:
    """Parse selector source. Raises SelectorError on malformed input."""
    return Selector.parse(text)


_literal_cache: Dict[str, Selector] = {}
_literal_lock = threading.Lock()


def select(literal: str) -> Selector:
    """
    Parse a selector literal once per process and return the cached result.

    Invalid literals raise SelectorError every time and are never cached.
    """
    selector = _literal_cache.get(literal)
    if selector is not None:
        return selector
    with _literal_lock:
        selector = _literal_cache.get(literal)
        if selector is None:
            logger.debug("Parsing selector literal %r", literal)
            selector = Selector.parse(literal)
            _literal_cache[literal] = selector
    return selector
