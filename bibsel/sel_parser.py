from pathlib import Path
from typing import List, Tuple

from lark import Lark, Tree
from lark.exceptions import (
    UnexpectedCharacters,
    UnexpectedEOF,
    UnexpectedInput,
    UnexpectedToken,
    VisitError,
)

from bibsel.errors import SelectorError, SelectorErrorKind
from bibsel.sel_ast import Expr
from bibsel.sel_transformer import SelectorTransformer

# Selector language version, reported by the command line tool. Update it
# together with the grammar file.
SELECTOR_LANGUAGE_VERSION = "1.0"

# Deepest parse tree the transformer and evaluator will recurse into
MAX_SELECTOR_DEPTH = 200

GRAMMAR_PATH = Path(__file__).parent / "sel_grammar.lark"
with open(GRAMMAR_PATH, "r", encoding="utf-8") as f:
    SELECTOR_GRAMMAR = f.read()

selector_parser = Lark(
    SELECTOR_GRAMMAR, start="start", parser="lalr", propagate_positions=True
)


def parse_expr(code: str, *, unwrap: bool = True) -> Expr:
    """
    Parse selector source into its AST.

    Raises:
        SelectorError: on any malformed input, with the offset of the problem.
    """
    if not code.strip():
        raise SelectorError(SelectorErrorKind.EMPTY, 0, code)
    _check_parentheses(code)

    try:
        tree = selector_parser.parse(code)
    except UnexpectedInput as e:
        raise _translate(code, e) from e
    _check_depth(code, tree)

    transformer = SelectorTransformer(source=code)
    try:
        expr = transformer.transform(tree)
    except VisitError as ve:
        if unwrap:
            raise ve.orig_exc from ve
        raise

    _check_captures(code, transformer.captures)
    return expr


def _check_parentheses(code: str) -> None:
    """Report the first unmatched parenthesis outside of quoted names."""
    opened: List[int] = []
    in_string = False
    escaped = False
    for i, ch in enumerate(code):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "(":
            opened.append(i)
        elif ch == ")":
            if not opened:
                raise SelectorError(SelectorErrorKind.UNBALANCED_PARENTHESES, i, code)
            opened.pop()
    if opened:
        raise SelectorError(SelectorErrorKind.UNBALANCED_PARENTHESES, opened[-1], code)


def _check_depth(code: str, tree: Tree) -> None:
    stack = [(tree, 1)]
    while stack:
        node, depth = stack.pop()
        if depth > MAX_SELECTOR_DEPTH:
            offset = 0 if node.meta.empty else node.meta.start_pos
            raise SelectorError(
                SelectorErrorKind.TOO_DEEP,
                offset,
                code,
                detail=f"more than {MAX_SELECTOR_DEPTH} levels",
            )
        stack.extend((child, depth + 1) for child in node.children if isinstance(child, Tree))


def _check_captures(code: str, captures: List[Tuple[str, int]]) -> None:
    seen = set()
    for name, offset in sorted(captures, key=lambda c: c[1]):
        if name in seen:
            raise SelectorError(
                SelectorErrorKind.DUPLICATE_BINDING, offset, code, detail=name
            )
        seen.add(name)


def _translate(code: str, e: UnexpectedInput) -> SelectorError:
    if isinstance(e, UnexpectedEOF):
        return SelectorError(SelectorErrorKind.UNEXPECTED_END, len(code), code)
    if isinstance(e, UnexpectedToken):
        if e.token.type == "$END":
            return SelectorError(SelectorErrorKind.UNEXPECTED_END, len(code), code)
        return SelectorError(
            SelectorErrorKind.UNEXPECTED_TOKEN,
            e.token.start_pos,
            code,
            detail=repr(str(e.token)),
        )
    if isinstance(e, UnexpectedCharacters):
        return SelectorError(
            SelectorErrorKind.UNEXPECTED_CHARACTER,
            e.pos_in_stream,
            code,
            detail=repr(code[e.pos_in_stream]),
        )
    return SelectorError(
        SelectorErrorKind.UNEXPECTED_TOKEN, getattr(e, "pos_in_stream", None) or 0, code
    )
