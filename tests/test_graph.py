import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest

from bibsel.errors import (
    DuplicateKeyError,
    EntryGraphError,
    LibraryLoadError,
    TypeSpecMismatch,
)
from bibsel.graph import (
    MAX_GRAPH_DEPTH,
    Date,
    Entry,
    EntryType,
    EntryTypeSpec,
    Library,
    Person,
    QualifiedUrl,
    TypeModality,
    canonical_parent,
    check_with_spec,
    from_mapping,
    from_yaml_file,
    from_yaml_str,
)

BASIC_YML = os.path.join(os.path.dirname(__file__), "data", "basic.yml")


@pytest.fixture(scope="module")
def library():
    return from_yaml_file(BASIC_YML)


# === Entries ===


def test_entry_equality_ignores_key():
    parent = Entry(key="p", entry_type=EntryType.PERIODICAL, fields={"title": "Science"})
    a = Entry(key="a", entry_type=EntryType.ARTICLE, fields={"title": "X"}, parents=(parent,))
    b = Entry(key="b", entry_type=EntryType.ARTICLE, fields={"title": "X"}, parents=(parent,))
    assert a == b
    assert hash(a) == hash(b)


def test_entry_equality_covers_type_fields_and_parents():
    base = Entry(key="a", entry_type=EntryType.ARTICLE, fields={"title": "X"})
    assert base != Entry(key="a", entry_type=EntryType.BOOK, fields={"title": "X"})
    assert base != Entry(key="a", entry_type=EntryType.ARTICLE, fields={"title": "Y"})
    assert base != Entry(
        key="a",
        entry_type=EntryType.ARTICLE,
        fields={"title": "X"},
        parents=(Entry(key="a", entry_type=EntryType.PERIODICAL),),
    )


def test_entry_is_immutable():
    entry = Entry(key="a", entry_type=EntryType.BOOK, fields={"title": "X"})
    with pytest.raises(Exception):
        entry.entry_type = EntryType.ARTICLE  # type: ignore[misc]
    with pytest.raises(TypeError):
        entry.fields["title"] = "Y"  # type: ignore[index]


def test_entry_copies_its_fields():
    fields = {"title": "X"}
    entry = Entry(key="a", entry_type=EntryType.BOOK, fields=fields)
    fields["title"] = "Y"
    assert entry.title == "X"


def test_entry_type_from_string():
    assert Entry(key="a", entry_type="Book").entry_type is EntryType.BOOK  # type: ignore[arg-type]


def test_entry_rejects_non_entry_parents():
    with pytest.raises(TypeError):
        Entry(key="a", entry_type=EntryType.BOOK, parents=("nope",))  # type: ignore[arg-type]


def test_has_requires_non_empty_value():
    entry = Entry(
        key="a",
        entry_type=EntryType.MISC,
        fields={"title": "T", "note": "", "author": (), "volume": 0, "url": QualifiedUrl("")},
    )
    assert entry.has("title")
    assert entry.has("volume")
    assert not entry.has("note")
    assert not entry.has("author")
    assert not entry.has("url")
    assert not entry.has("doi")
    assert entry.get("note") is None
    assert entry.get("doi", "none") == "none"


def test_map_prefers_the_entry_itself():
    parent = Entry(key="a", entry_type=EntryType.PERIODICAL, fields={"date": Date(1999)})
    entry = Entry(key="a", entry_type=EntryType.ARTICLE, fields={"date": Date(2001)}, parents=(parent,))
    assert entry.date_any() == Date(2001)
    assert entry.map_parents(lambda e: e.date) == Date(1999)


def test_map_parents_is_breadth_first():
    grandparent = Entry(key="a", entry_type=EntryType.MISC, fields={"date": Date(2001)})
    first = Entry(key="a", entry_type=EntryType.MISC, parents=(grandparent,))
    second = Entry(key="a", entry_type=EntryType.MISC, fields={"date": Date(2002)})
    entry = Entry(key="a", entry_type=EntryType.ARTICLE, parents=(first, second))
    # A depth-first search would find the grandparent's 2001 first
    assert entry.date_any() == Date(2002)


def test_map_parents_visits_parents_in_declared_order():
    first = Entry(key="a", entry_type=EntryType.MISC, fields={"url": QualifiedUrl("https://one")})
    second = Entry(key="a", entry_type=EntryType.MISC, fields={"url": QualifiedUrl("https://two")})
    entry = Entry(key="a", entry_type=EntryType.ARTICLE, parents=(first, second))
    assert entry.url_any() == QualifiedUrl("https://one")


def test_map_parents_exhausts_to_none():
    entry = Entry(key="a", entry_type=EntryType.ARTICLE, parents=(Entry(key="a", entry_type=EntryType.BOOK),))
    assert entry.map_parents(lambda e: e.get("isbn")) is None


def test_ancestors_probe_shared_parents_once():
    shared = Entry(key="a", entry_type=EntryType.ANTHOLOGY)
    left = Entry(key="a", entry_type=EntryType.ANTHOLOGY, parents=(shared,))
    right = Entry(key="a", entry_type=EntryType.BOOK, parents=(shared,))
    entry = Entry(key="a", entry_type=EntryType.ANTHOS, parents=(left, right))
    assert [a.entry_type for a in entry.ancestors()] == [
        EntryType.ANTHOLOGY,
        EntryType.BOOK,
        EntryType.ANTHOLOGY,
    ]


def test_ancestors_depth_guard():
    entry = Entry(key="deep", entry_type=EntryType.MISC)
    for _ in range(MAX_GRAPH_DEPTH + 1):
        entry = Entry(key="deep", entry_type=EntryType.MISC, parents=(entry,))
    with pytest.raises(EntryGraphError):
        entry.map_parents(lambda e: None)


def test_date_any_from_fixture(library):
    # harry has no date of its own; its book parent has one
    assert library["harry"].date is None
    assert library["harry"].date_any() == Date(1997)
    assert library["donne"].url_any() == QualifiedUrl("https://example.org/collected")


# === Values ===


@pytest.mark.parametrize(
    "value, expected",
    [
        (2014, Date(2014)),
        ("1961-05", Date(1961, 5)),
        ("2019-10-21", Date(2019, 10, 21)),
        (" 2020 ", Date(2020)),
    ],
)
def test_date_parse(value, expected):
    assert Date.parse(value) == expected


@pytest.mark.parametrize(
    "value", ["soon", "2020-13", "2020-01-40", "2019-02-30", "2019-04-31", "2021-02-29", True]
)
def test_date_parse_rejects(value):
    with pytest.raises(ValueError):
        Date.parse(value)


def test_date_parse_leap_day():
    assert Date.parse("2020-02-29") == Date(2020, 2, 29)


def test_date_str():
    assert str(Date(1961, 5)) == "1961-05"
    assert str(Date(2019, 10, 21)) == "2019-10-21"


def test_person_parse():
    assert Person.parse("Gross, E. P.") == Person(name="Gross", given_name="E. P.")
    assert Person.parse("van Gogh, Vincent") == Person(
        name="Gogh", given_name="Vincent", prefix="van"
    )
    assert Person.parse("King, Martin Luther, Jr.") == Person(
        name="King", given_name="Martin Luther", suffix="Jr."
    )
    assert Person.parse({"name": "Doe", "alias": "jd"}) == Person(name="Doe", alias="jd")
    assert str(Person.parse("van Gogh, Vincent")) == "van Gogh, Vincent"


def test_person_parse_rejects():
    with pytest.raises(ValueError):
        Person.parse(", Nobody")
    with pytest.raises(ValueError):
        Person.parse("a, b, c, d")


def test_entry_type_names():
    assert EntryType.from_name("Periodical") is EntryType.PERIODICAL
    assert EntryType.ARTICLE.default_parent() is EntryType.PERIODICAL
    assert EntryType.SCENE.default_parent() is EntryType.VIDEO
    assert EntryType.THESIS.default_parent() is EntryType.MISC
    with pytest.raises(ValueError):
        EntryType.from_name("magazine")


# === Library ===


def test_library_push_rejects_duplicates():
    lib = Library()
    lib.push(Entry(key="a", entry_type=EntryType.BOOK))
    with pytest.raises(DuplicateKeyError):
        lib.push(Entry(key="a", entry_type=EntryType.ARTICLE))
    assert len(lib) == 1
    assert lib["a"].entry_type is EntryType.BOOK


def test_library_container_api():
    lib = Library([Entry(key=k, entry_type=EntryType.MISC) for k in ("x", "y", "z")])
    assert list(lib.keys()) == ["x", "y", "z"]
    assert [e.key for e in lib] == ["x", "y", "z"]
    assert lib.nth(1).key == "y"
    assert lib.nth(3) is None
    assert lib.nth(-1) is None
    assert "y" in lib
    assert lib.remove("y").key == "y"
    assert lib.remove("y") is None
    assert list(lib.keys()) == ["x", "z"]
    assert not lib.is_empty()
    assert Library().is_empty()


# === Loading ===


def test_load_fixture(library):
    assert len(library) == 21
    assert library.nth(0).key == "zygos"
    vortex = library["quantized-vortex"]
    assert vortex.entry_type is EntryType.ARTICLE
    assert vortex.date == Date(1961, 5)
    assert vortex.authors == (Person(name="Gross", given_name="E. P."),)
    # Parent without a type takes the default parent type
    assert vortex.parents[0].entry_type is EntryType.PERIODICAL
    assert vortex.parents[0].key == "quantized-vortex"
    assert vortex.parents[0].get("volume") == 20


def test_load_one_or_many(library):
    assert len(library["zygos"].authors) == 3
    assert len(library["wwdc-network"].parents) == 2
    assert library["oiseau"].url == QualifiedUrl(
        "https://example.org/oiseau", visit_date=Date(2020, 6, 1)
    )


def test_duplicate_top_level_key_is_a_load_error():
    text = """
a:
    type: Book
    title: One
a:
    type: Book
    title: Two
"""
    with pytest.raises(LibraryLoadError) as info:
        from_yaml_str(text)
    assert isinstance(info.value, DuplicateKeyError)
    assert info.value.key == "a"


def test_duplicate_key_from_pairs_is_a_load_error():
    class Pairs(dict):
        def items(self):
            return [("a", {"type": "book"}), ("a", {"type": "article"})]

    with pytest.raises(DuplicateKeyError):
        from_mapping(Pairs())


def test_alias_cycle_is_a_load_error():
    text = """
loop: &loop
    type: Book
    parent: *loop
"""
    with pytest.raises(LibraryLoadError):
        from_yaml_str(text)


@pytest.mark.parametrize(
    "text",
    [
        "a:\n    title: No type\n",
        "a:\n    type: Magazine\n",
        "a:\n    type: Book\n    date: someday\n",
        "a:\n    type: Book\n    date: 2019-02-30\n",
        "a:\n    type: Book\n    date: 2019-13-01\n",
        "a:\n    type: Book\n    date: \"2019-02-30\"\n",
        "a:\n    type: Book\n    author: ', Nobody'\n",
        "- just\n- a list\n",
        "a: not a mapping\n",
        "a: [unclosed\n",
    ],
)
def test_invalid_libraries(text):
    with pytest.raises(LibraryLoadError):
        from_yaml_str(text)


def test_empty_library():
    assert len(from_yaml_str("")) == 0


def test_shared_alias_parents_load():
    text = """
journal: &journal
    type: Periodical
    title: Shared
one:
    type: Article
    parent: *journal
two:
    type: Article
    parent: *journal
"""
    lib = from_yaml_str(text)
    assert lib["one"].parents[0] == lib["two"].parents[0] == lib["journal"]


# === Canonical parents ===


def test_check_with_spec_returns_parent_position(library):
    spec = EntryTypeSpec.single_parent(
        TypeModality.specific(EntryType.ARTICLE),
        TypeModality.alternate(EntryType.VIDEO, EntryType.BLOG),
    )
    assert check_with_spec(library["wwdc-network"], spec) == (1,)


def test_check_with_spec_without_parents(library):
    spec = EntryTypeSpec(here=TypeModality.alternate(EntryType.BLOG, EntryType.WEB))
    assert check_with_spec(library["oiseau"], spec) == ()
    with pytest.raises(TypeSpecMismatch):
        check_with_spec(library["camb"], spec)


def test_check_with_spec_fails_on_ambiguous_parent(library):
    spec = EntryTypeSpec.single_parent(TypeModality.any(), TypeModality.specific(EntryType.PROCEEDINGS))
    with pytest.raises(TypeSpecMismatch):
        check_with_spec(library["double-proc"], spec)
    with pytest.raises(TypeSpecMismatch):
        check_with_spec(library["kinetics"], spec)


def test_check_with_spec_disallowed(library):
    spec = EntryTypeSpec.single_parent(
        TypeModality.any(), TypeModality.disallowed(EntryType.CONFERENCE)
    )
    assert check_with_spec(library["wwdc-network"], spec) == (1,)


def test_check_with_spec_distinct_parents(library):
    spec = EntryTypeSpec(
        here=TypeModality.any(),
        parents=(
            EntryTypeSpec(here=TypeModality.specific(EntryType.PROCEEDINGS)),
            EntryTypeSpec(here=TypeModality.specific(EntryType.PROCEEDINGS)),
        ),
    )
    # The first proceedings is ambiguous while both are free
    with pytest.raises(TypeSpecMismatch):
        check_with_spec(library["double-proc"], spec)


@pytest.mark.parametrize(
    "key, expected_type",
    [
        ("gedanken", EntryType.ANTHOLOGY),
        ("quantized-vortex", EntryType.PERIODICAL),
        ("zygos", EntryType.PROCEEDINGS),
        ("harry", EntryType.BOOK),
        ("chap-proc", EntryType.PROCEEDINGS),
        ("double-proc", None),
        ("wwdc-network", None),
        ("wire", None),
        ("terminator-2", None),
    ],
)
def test_canonical_parent(key, expected_type, library):
    parent = canonical_parent(library[key])
    if expected_type is None:
        assert parent is None
    else:
        assert parent is not None
        assert parent.entry_type is expected_type
        assert parent in library[key].parents


def test_duplicate_key_stays_a_duplicate_key_error():
    with pytest.raises(DuplicateKeyError):
        from_yaml_str("a:\n    type: Book\n    date: 2019-02-30\na:\n    type: Book\n")


def test_unhashable_keys_are_reported_by_yaml():
    with pytest.raises(LibraryLoadError):
        from_yaml_str("? [a, b]\n: {type: Book}\n")
