"""
Selector Transformer: Lark parse tree to selector AST.

This module provides the SelectorTransformer class that converts Lark parse
trees into selector AST nodes. Entry type names are resolved here, so an
unknown type is reported with the offset of its token.
"""

from typing import List, Tuple

from lark import Token, Transformer, v_args

from bibsel import sel_ast as ast
from bibsel.errors import SelectorError, SelectorErrorKind
from bibsel.graph.types import EntryType


def name_value(token: Token) -> str:
    """The text of a bare or double-quoted name token."""
    if token.type == "STRING":
        return token.value[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    return str(token)


@v_args(inline=True)
class SelectorTransformer(Transformer):
    """
    Transformer that converts Lark parse trees into selector AST nodes.

    Capture names are collected with their offsets so the parser can reject
    names that are bound twice.
    """

    def __init__(self, source: str = ""):
        super().__init__()
        self.source = source
        self.captures: List[Tuple[str, int]] = []

    def _name(self, token: Token) -> str:
        value = name_value(token)
        if not value:
            raise SelectorError(
                SelectorErrorKind.UNEXPECTED_TOKEN,
                token.start_pos,
                self.source,
                detail="empty name",
            )
        return value

    def parent(self, child, ancestor):
        """Transform `child > ancestor`."""
        return ast.Parent(child=child, ancestor=ancestor)

    def or_(self, left, right):
        """Transform `left | right`."""
        return ast.Or(left=left, right=right)

    def and_(self, left, right):
        """Transform `left & right`."""
        return ast.And(left=left, right=right)

    def not_(self, _bang, expr):
        """Transform `!expr`."""
        return ast.Not(expr=expr)

    def attr_filter(self, expr, _lsqb, fields, _rsqb):
        """Transform `expr[a, b]` into nested filters, innermost first."""
        for name in fields:
            expr = ast.AttrFilter(expr=expr, field=name)
        return expr

    def field_list(self, *names):
        return [self._name(n) for n in names]

    def capture(self, name, _colon, expr):
        """Transform `name:expr`."""
        value = self._name(name)
        self.captures.append((value, name.start_pos))
        return ast.Capture(name=value, expr=expr)

    def entry_type(self, token):
        """Transform a type name, ignoring case."""
        try:
            return ast.Type(entry_type=EntryType.from_name(token.value))
        except ValueError:
            raise SelectorError(
                SelectorErrorKind.UNKNOWN_ENTRY_TYPE,
                token.start_pos,
                self.source,
                detail=token.value,
            ) from None

    def wildcard(self, _star):
        return ast.Wildcard()

    def group(self, _lpar, expr, _rpar):
        """Transform `(expr)`, which only groups."""
        return expr
