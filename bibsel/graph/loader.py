"""
Loader for the YAML library format.

A library file is a mapping from keys to entries:

    quantized-vortex:
        type: Article
        title: Structure of a Quantized Vortex in Boson Systems
        author: Gross, E. P.
        date: 1961-05
        parent:
            type: Periodical
            title: Il Nuovo Cimento

`parent` holds one entry or a list of entries. A parent without a `type`
gets the default parent type of the entry declaring it. Parents are stored
under the key of the top-level entry.

The loader is where graph invariants are enforced: duplicate keys and
reference cycles (through YAML aliases) are load errors.
"""

import logging
from collections.abc import Hashable
from typing import Any, Dict, List, Mapping, Optional, Set

import yaml

from bibsel.errors import DuplicateKeyError, LibraryLoadError
from bibsel.graph.entry import Entry
from bibsel.graph.library import Library
from bibsel.graph.types import Date, EntryType, Person, QualifiedUrl

logger = logging.getLogger(__name__)

PERSON_FIELDS = {"author", "editor"}
YAML_MERGE_TAG = "tag:yaml.org,2002:merge"


class _UniqueKeyLoader(yaml.SafeLoader):  # pylint: disable=too-many-ancestors
    """SafeLoader that refuses mappings with repeated keys."""

    def construct_mapping(self, node, deep=False):
        if isinstance(node, yaml.MappingNode):
            seen = set()
            for key_node, _ in node.value:
                if key_node.tag == YAML_MERGE_TAG:
                    continue
                key = self.construct_object(key_node, deep=deep)
                if not isinstance(key, Hashable):
                    # SafeLoader reports unhashable keys itself
                    continue
                if key in seen:
                    logger.debug("Duplicate key %r at line %s", key, key_node.start_mark.line + 1)
                    raise DuplicateKeyError(str(key))
                seen.add(key)
        return super().construct_mapping(node, deep=deep)


def from_yaml_str(text: str) -> Library:
    """Build a library from YAML source text."""
    try:
        data = yaml.load(text, Loader=_UniqueKeyLoader)  # nosec B506 - SafeLoader subclass
    except LibraryLoadError:
        raise
    except (yaml.YAMLError, ValueError) as e:
        # Timestamps such as 2019-02-30 fail with ValueError while constructing
        raise LibraryLoadError(f"invalid YAML: {e}") from e
    if data is None:
        return Library()
    if not isinstance(data, dict):
        raise LibraryLoadError("a library must be a mapping between keys and entries")
    return from_mapping(data)


def from_yaml_file(path) -> Library:
    with open(path, "r", encoding="utf-8") as file:
        return from_yaml_str(file.read())


def from_mapping(data: Mapping[str, Any]) -> Library:
    """
    Build a library from already-decoded data.

    The returned library is complete; on any error nothing is returned.
    """
    library = Library()
    for key, raw in data.items():
        key = str(key)
        if key in library:
            raise DuplicateKeyError(key)
        library.push(_to_entry(key, raw, None, set()))
    logger.info("Loaded %s entries", len(library))
    return library


def _to_entry(
    key: str, raw: Any, child_type: Optional[EntryType], active: Set[int]
) -> Entry:
    if not isinstance(raw, dict):
        raise LibraryLoadError(f"{key}: an entry must be a mapping, got {type(raw).__name__}")
    if id(raw) in active:
        raise LibraryLoadError(f"{key}: entry is its own ancestor")

    entry_type = _entry_type(key, raw.get("type"), child_type)

    active.add(id(raw))
    try:
        parents = tuple(
            _to_entry(key, parent, entry_type, active)
            for parent in _one_or_many(raw.get("parent"))
        )
    finally:
        active.discard(id(raw))

    fields: Dict[str, Any] = {}
    for name, value in raw.items():
        name = str(name)
        if name in ("type", "parent") or value is None:
            continue
        fields[name] = _field_value(key, name, value)

    return Entry(key=key, entry_type=entry_type, fields=fields, parents=parents)


def _entry_type(key: str, value: Any, child_type: Optional[EntryType]) -> EntryType:
    if value is None:
        if child_type is None:
            raise LibraryLoadError(f"{key}: no entry type")
        logger.debug("%s: parent of %s defaults to %s", key, child_type, child_type.default_parent())
        return child_type.default_parent()
    try:
        return EntryType.from_name(str(value))
    except ValueError as e:
        raise LibraryLoadError(f"{key}: unknown entry type {value!r}") from e


def _field_value(key: str, name: str, value: Any) -> Any:
    try:
        if name == "date":
            return Date.parse(value)
        if name == "url":
            return QualifiedUrl.parse(value)
        if name in PERSON_FIELDS:
            return tuple(Person.parse(p) for p in _one_or_many(value))
    except ValueError as e:
        raise LibraryLoadError(f"{key}: field {name!r}: {e}") from e
    if isinstance(value, list):
        return tuple(value)
    return value


def _one_or_many(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]
