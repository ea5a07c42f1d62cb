"""
bibsel - a selector language over bibliographic entry graphs.

- sel_ast / sel_parser / sel_transformer: selector syntax to AST
- sel_evaluator: backtracking matcher producing bindings
- selector: the Selector facade, `parse` and the cached `select`
- graph: entries, libraries, loading and canonical parents
"""

from .errors import (
    DuplicateKeyError,
    EntryGraphError,
    LibraryLoadError,
    SelectorError,
    SelectorErrorKind,
    TypeSpecMismatch,
)
from .graph import Entry, EntryType, Library, from_yaml_file, from_yaml_str
from .sel_evaluator import Bindings
from .selector import Selector, parse, select

__version__ = "0.1.0"

__all__ = [
    "Bindings",
    "DuplicateKeyError",
    "Entry",
    "EntryGraphError",
    "EntryType",
    "Library",
    "LibraryLoadError",
    "Selector",
    "SelectorError",
    "SelectorErrorKind",
    "TypeSpecMismatch",
    "from_yaml_file",
    "from_yaml_str",
    "parse",
    "select",
]
