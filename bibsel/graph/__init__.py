"""
Entry graph package - the data model selectors operate over.

- types: entry types and typed field values (Date, Person, QualifiedUrl)
- entry: immutable entries with ordered parents and ancestor traversal
- library: key-addressed, insertion-ordered entry collection
- spec: entry type specs and canonical-parent resolution
- loader: YAML library loading with duplicate-key and cycle checks
"""

from .entry import MAX_GRAPH_DEPTH, Entry
from .library import Library
from .loader import from_mapping, from_yaml_file, from_yaml_str
from .spec import (
    CANONICAL_PARENT_SPECS,
    EntryTypeSpec,
    TypeModality,
    canonical_parent,
    check_with_spec,
)
from .types import Date, EntryType, Person, QualifiedUrl

__all__ = [
    "CANONICAL_PARENT_SPECS",
    "Date",
    "Entry",
    "EntryType",
    "EntryTypeSpec",
    "Library",
    "MAX_GRAPH_DEPTH",
    "Person",
    "QualifiedUrl",
    "TypeModality",
    "canonical_parent",
    "check_with_spec",
    "from_mapping",
    "from_yaml_file",
    "from_yaml_str",
]
