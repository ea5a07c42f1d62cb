from dataclasses import dataclass
from typing import Iterator

from bibsel.graph.types import EntryType

# === Expression Base Class ===


class Expr:
    """Base class for all selector expression nodes."""

    pass


# === Atomic Expressions ===


@dataclass(frozen=True)
class Type(Expr):
    """Matches entries of one entry type (e.g., `article`)."""

    entry_type: EntryType


@dataclass(frozen=True)
class Wildcard(Expr):
    """Represents `*`, matching any entry."""

    pass


# === Compound Expressions ===


@dataclass(frozen=True)
class Not(Expr):
    """Represents `!expr`."""

    expr: Expr


@dataclass(frozen=True)
class And(Expr):
    """Represents `left & right`."""

    left: Expr
    right: Expr


@dataclass(frozen=True)
class Or(Expr):
    """Represents `left | right`."""

    left: Expr
    right: Expr


@dataclass(frozen=True)
class Parent(Expr):
    """Represents `child > ancestor`: `ancestor` must match one of the parents."""

    child: Expr
    ancestor: Expr


@dataclass(frozen=True)
class AttrFilter(Expr):
    """Represents `expr[field]`: the matched entry must have `field` set."""

    expr: Expr
    field: str


@dataclass(frozen=True)
class Capture(Expr):
    """Represents `name:expr`, binding the matched entry to `name`."""

    name: str
    expr: Expr


def children(node: Expr) -> tuple:
    """The direct sub-expressions of a node."""
    if isinstance(node, (Not, AttrFilter, Capture)):
        return (node.expr,)
    if isinstance(node, (And, Or)):
        return (node.left, node.right)
    if isinstance(node, Parent):
        return (node.child, node.ancestor)
    return ()


def walk(node: Expr) -> Iterator[Expr]:
    """Yield `node` and all of its sub-expressions, depth first, left to right."""
    yield node
    for child in children(node):
        yield from walk(child)


def capture_names(node: Expr) -> Iterator[str]:
    """Yield every capture name in the expression, in source order."""
    for sub in walk(node):
        if isinstance(sub, Capture):
            yield sub.name


def to_source(node: Expr) -> str:
    """Render an expression back to fully parenthesized selector syntax."""
    if isinstance(node, Type):
        return node.entry_type.value
    if isinstance(node, Wildcard):
        return "*"
    if isinstance(node, Not):
        return f"!{to_source(node.expr)}"
    if isinstance(node, And):
        return f"({to_source(node.left)} & {to_source(node.right)})"
    if isinstance(node, Or):
        return f"({to_source(node.left)} | {to_source(node.right)})"
    if isinstance(node, Parent):
        return f"({to_source(node.child)} > {to_source(node.ancestor)})"
    if isinstance(node, AttrFilter):
        inner = to_source(node.expr)
        if isinstance(node.expr, Not):
            # `!a[f]` would filter `a`, not the negation
            inner = f"({inner})"
        return f'{inner}["{node.field}"]'
    if isinstance(node, Capture):
        return f'"{node.name}":({to_source(node.expr)})'
    raise TypeError(f"Unknown selector node: {node!r}")
