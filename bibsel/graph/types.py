"""
Value types of the entry graph: entry types and typed field values.
"""

import calendar
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

RE_DATE = re.compile(r"^\s*(?P<year>-?\d{1,4})(?:-(?P<month>\d{1,2})(?:-(?P<day>\d{1,2}))?)?\s*$")


class EntryType(str, Enum):
    """The closed set of work kinds an entry can be."""

    ARTICLE = "article"
    CHAPTER = "chapter"
    ENTRY = "entry"
    ANTHOS = "anthos"
    REPORT = "report"
    THESIS = "thesis"
    WEB = "web"
    SCENE = "scene"
    ARTWORK = "artwork"
    PATENT = "patent"
    CASE = "case"
    NEWSPAPER = "newspaper"
    LEGISLATION = "legislation"
    MANUSCRIPT = "manuscript"
    POST = "post"
    MISC = "misc"
    PERFORMANCE = "performance"
    PERIODICAL = "periodical"
    PROCEEDINGS = "proceedings"
    BOOK = "book"
    BLOG = "blog"
    REFERENCE = "reference"
    CONFERENCE = "conference"
    ANTHOLOGY = "anthology"
    REPOSITORY = "repository"
    THREAD = "thread"
    VIDEO = "video"
    AUDIO = "audio"
    EXHIBITION = "exhibition"

    @classmethod
    def from_name(cls, name: str) -> "EntryType":
        """Look up a type by name, ignoring case. Raises ValueError if unknown."""
        return cls(name.strip().lower())

    def default_parent(self) -> "EntryType":
        """The type a nested parent gets when its declaration omits one."""
        return _DEFAULT_PARENTS.get(self, EntryType.MISC)

    def __str__(self) -> str:
        return self.value


_DEFAULT_PARENTS = {
    EntryType.ARTICLE: EntryType.PERIODICAL,
    EntryType.CHAPTER: EntryType.BOOK,
    EntryType.ENTRY: EntryType.REFERENCE,
    EntryType.ANTHOS: EntryType.ANTHOLOGY,
    EntryType.WEB: EntryType.WEB,
    EntryType.SCENE: EntryType.VIDEO,
    EntryType.CASE: EntryType.REFERENCE,
    EntryType.POST: EntryType.POST,
    EntryType.THREAD: EntryType.THREAD,
}


def _days_in_month(year: int, month: int) -> int:
    if month == 2:
        return 29 if calendar.isleap(year) else 28
    return 30 if month in (4, 6, 9, 11) else 31


@dataclass(frozen=True)
class Date:
    """A calendar date with optional month and day."""

    year: int
    month: Optional[int] = None
    day: Optional[int] = None

    @classmethod
    def parse(cls, value: Any) -> "Date":
        """Parse `YYYY`, `YYYY-MM`, `YYYY-MM-DD` or an integer year."""
        if isinstance(value, bool):
            raise ValueError(f"invalid date: {value!r}")
        if isinstance(value, int):
            return cls(year=value)
        if hasattr(value, "year") and hasattr(value, "month"):
            # YAML timestamps arrive as datetime.date
            return cls(year=value.year, month=value.month, day=getattr(value, "day", None))
        m = RE_DATE.match(str(value))
        if not m:
            raise ValueError(f"invalid date: {value!r}")
        year = int(m.group("year"))
        month = int(m.group("month")) if m.group("month") else None
        day = int(m.group("day")) if m.group("day") else None
        if month is not None and not 1 <= month <= 12:
            raise ValueError(f"month out of range in date {value!r}")
        if day is not None and not 1 <= day <= _days_in_month(year, month):
            raise ValueError(f"day out of range in date {value!r}")
        return cls(year=year, month=month, day=day)

    def __str__(self) -> str:
        text = f"{self.year:04d}"
        if self.month is not None:
            text += f"-{self.month:02d}"
            if self.day is not None:
                text += f"-{self.day:02d}"
        return text


@dataclass(frozen=True)
class Person:
    """A person, e.g. an author or editor."""

    name: str
    given_name: Optional[str] = None
    prefix: Optional[str] = None
    suffix: Optional[str] = None
    alias: Optional[str] = None

    @classmethod
    def parse(cls, value: Any) -> "Person":
        """
        Parse a person from `"Family, Given"`, `"Prefix Family, Given, Suffix"`
        style strings or from a mapping with the same field names.
        """
        if isinstance(value, dict):
            name = value.get("name")
            if not name:
                raise ValueError(f"person without a name: {value!r}")
            return cls(
                name=str(name),
                given_name=value.get("given-name"),
                prefix=value.get("prefix"),
                suffix=value.get("suffix"),
                alias=value.get("alias"),
            )

        parts = [p.strip() for p in str(value).split(",")]
        if not parts[0]:
            raise ValueError(f"person without a name: {value!r}")
        if len(parts) > 3:
            raise ValueError(f"too many commas in person: {value!r}")

        family = parts[0]
        prefix = None
        # Lower-case leading words are a name prefix ("van", "de la")
        words = family.split()
        i = 0
        while i < len(words) - 1 and words[i][:1].islower():
            i += 1
        if i:
            prefix = " ".join(words[:i])
            family = " ".join(words[i:])

        given = parts[1] if len(parts) > 1 and parts[1] else None
        suffix = parts[2] if len(parts) > 2 and parts[2] else None
        return cls(name=family, given_name=given, prefix=prefix, suffix=suffix)

    def __str__(self) -> str:
        family = f"{self.prefix} {self.name}" if self.prefix else self.name
        if self.given_name:
            family = f"{family}, {self.given_name}"
        if self.suffix:
            family = f"{family}, {self.suffix}"
        return family


@dataclass(frozen=True)
class QualifiedUrl:
    """A URL with an optional date at which it was visited."""

    value: str
    visit_date: Optional[Date] = None

    @classmethod
    def parse(cls, value: Any) -> "QualifiedUrl":
        if isinstance(value, dict):
            url = value.get("value")
            if not url:
                raise ValueError(f"url without a value: {value!r}")
            visited = value.get("date")
            return cls(
                value=str(url).strip(),
                visit_date=Date.parse(visited) if visited is not None else None,
            )
        return cls(value=str(value).strip())

    def __bool__(self) -> bool:
        return bool(self.value)

    def __str__(self) -> str:
        return self.value
