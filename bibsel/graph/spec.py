"""
Entry type specs: a small, non-capturing check of how an entry and its
parents are typed, used to find the canonical parent of an entry.

Unlike selectors there is no boolean algebra and no bindings here: a spec
names the acceptable types for an entry and, per required parent, the
acceptable types of exactly one of its parents.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from bibsel.errors import TypeSpecMismatch
from bibsel.graph.entry import Entry
from bibsel.graph.types import EntryType


class ModalityKind(str, Enum):
    ANY = "any"
    SPECIFIC = "specific"
    ALTERNATE = "alternate"
    DISALLOWED = "disallowed"


@dataclass(frozen=True)
class TypeModality:
    """Which entry types are acceptable at one position of a spec."""

    kind: ModalityKind
    types: Tuple[EntryType, ...] = ()

    @classmethod
    def any(cls) -> "TypeModality":
        return cls(ModalityKind.ANY)

    @classmethod
    def specific(cls, entry_type: EntryType) -> "TypeModality":
        return cls(ModalityKind.SPECIFIC, (entry_type,))

    @classmethod
    def alternate(cls, *entry_types: EntryType) -> "TypeModality":
        return cls(ModalityKind.ALTERNATE, tuple(entry_types))

    @classmethod
    def disallowed(cls, *entry_types: EntryType) -> "TypeModality":
        return cls(ModalityKind.DISALLOWED, tuple(entry_types))

    def accepts(self, entry_type: EntryType) -> bool:
        if self.kind is ModalityKind.ANY:
            return True
        if self.kind is ModalityKind.DISALLOWED:
            return entry_type not in self.types
        return entry_type in self.types


@dataclass(frozen=True)
class EntryTypeSpec:
    """Required type of an entry plus one spec per required parent."""

    here: TypeModality
    parents: Tuple["EntryTypeSpec", ...] = field(default_factory=tuple)

    @classmethod
    def single_parent(cls, here: TypeModality, parent: TypeModality) -> "EntryTypeSpec":
        return cls(here=here, parents=(cls(here=parent),))


def check_with_spec(entry: Entry, spec: EntryTypeSpec) -> Tuple[int, ...]:
    """
    Check `entry` against `spec`.

    Returns the position (in `entry.parents`) of the parent satisfying each
    parent spec, in the order of `spec.parents`. Every parent spec must be
    satisfied by exactly one parent, and no parent can satisfy two parent
    specs.

    Raises:
        TypeSpecMismatch: if the entry's own type is not accepted, or a parent
            spec is satisfied by zero or by more than one parent.
    """
    if not spec.here.accepts(entry.entry_type):
        raise TypeSpecMismatch(f"{entry.key}: type {entry.entry_type} not accepted")

    positions = []
    for parent_spec in spec.parents:
        found = [
            i
            for i, parent in enumerate(entry.parents)
            if i not in positions and _satisfies(parent, parent_spec)
        ]
        if len(found) != 1:
            raise TypeSpecMismatch(
                f"{entry.key}: {len(found)} parents qualify for {parent_spec.here}"
            )
        positions.append(found[0])
    return tuple(positions)


def _satisfies(entry: Entry, spec: EntryTypeSpec) -> bool:
    try:
        check_with_spec(entry, spec)
    except TypeSpecMismatch:
        return False
    return True


_A = TypeModality.any()
_S = TypeModality.specific
_ALT = TypeModality.alternate

# Tried in order; the first spec the entry satisfies names its canonical parent
CANONICAL_PARENT_SPECS = (
    EntryTypeSpec.single_parent(_S(EntryType.ANTHOS), _S(EntryType.ANTHOLOGY)),
    EntryTypeSpec.single_parent(_S(EntryType.ARTICLE), _S(EntryType.PERIODICAL)),
    EntryTypeSpec.single_parent(
        _S(EntryType.ENTRY), _ALT(EntryType.REFERENCE, EntryType.REPOSITORY)
    ),
    EntryTypeSpec.single_parent(_A, _S(EntryType.PROCEEDINGS)),
    EntryTypeSpec.single_parent(
        _ALT(EntryType.CHAPTER, EntryType.SCENE, EntryType.WEB), _A
    ),
)


def canonical_parent(
    entry: Entry, specs: Tuple[EntryTypeSpec, ...] = CANONICAL_PARENT_SPECS
) -> Optional[Entry]:
    """The single parent to cite alongside `entry`, or None if there is none."""
    for spec in specs:
        try:
            positions = check_with_spec(entry, spec)
        except TypeSpecMismatch:
            continue
        if positions:
            return entry.parents[positions[0]]
    return None
