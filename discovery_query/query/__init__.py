"""Builders for e-discovery search-query fragments."""

from __future__ import annotations

import calendar
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

ITEM_DATE_FIELD = "item-date"
NAMED_ENTITIES_FIELD = "named-entities"
MARKUP_SET_FIELD = "markup-set"
TAG_FIELD = "tag"

MIN_YEAR = 1000
MAX_YEAR = 9999

# Replacement order matters: backslash first so later escapes are not doubled.
_SEARCH_SPECIAL_CHARACTERS = ("\\", "?", "*", '"', "“", "”", "'", "{", "}")


class QueryArgumentError(ValueError):
    """Raised when a builder receives an argument outside its accepted range."""


class NamedRecord(Protocol):
    @property
    def name(self) -> str: ...


@dataclass(frozen=True, slots=True)
class MarkupSet:
    """Minimal markup set record for callers without a platform object."""

    name: str
    description: str | None = None


def year_range_query(year: int, *, field: str = ITEM_DATE_FIELD) -> str:
    """Return a range query covering January 1 through December 31 of ``year``.

    ``year_range_query(2019)`` yields ``item-date:[20190101 TO 20191231]``.
    """

    _check_year(year)
    return f"{field}:[{year}0101 TO {year}1231]"


def year_month_range_query(year: int, month: int, *, field: str = ITEM_DATE_FIELD) -> str:
    """Return a range query covering every day of ``month`` in ``year``.

    The last day follows Gregorian rules, so February 2020 ends on the 29th:
    ``year_month_range_query(2020, 2)`` yields ``item-date:[20200201 TO 20200229]``.
    """

    _check_year(year)
    if month < 1 or month > 12:
        logger.debug("Rejected month", extra={"month": month})
        raise QueryArgumentError(f"Month {month} does not fall in valid range of 1-12")

    last_day = calendar.monthrange(year, month)[1]
    return f"{field}:[{year}{month:02d}01 TO {year}{month:02d}{last_day:02d}]"


def join_by_and(expressions: Iterable[str | None]) -> str:
    """Join expressions with ``AND``, skipping ``None`` and blank entries."""

    return " AND ".join(_meaningful(expressions))


def join_by_or(expressions: Iterable[str | None]) -> str:
    """Join expressions with ``OR``, skipping ``None`` and blank entries."""

    return " OR ".join(_meaningful(expressions))


def paren_then_join_by_and(expressions: Iterable[str | None]) -> str:
    """Wrap each expression in parentheses, then join them with ``AND``.

    ``["cat", "dog"]`` becomes ``(cat) AND (dog)``.
    """

    return " AND ".join(f"({expression})" for expression in _meaningful(expressions))


def paren_then_join_by_or(expressions: Iterable[str | None]) -> str:
    """Wrap each expression in parentheses, then join them with ``OR``."""

    return " OR ".join(f"({expression})" for expression in _meaningful(expressions))


def not_join_by_or(expressions: Iterable[str | None]) -> str:
    """Return ``NOT (a OR b OR c)`` for the given expressions."""

    return f"NOT ({join_by_or(expressions)})"


def named_entity_query(entity_names: Iterable[str]) -> str:
    """Match items having a hit for any of the given named entities.

    Entity names must be categories the platform recognizes, e.g.
    ``company`` or ``country``. Duplicates collapse, and the order of the
    OR'ed fragments is not guaranteed.
    """

    fragments = {f"{name};*" for name in entity_names}
    return f"{NAMED_ENTITIES_FIELD}:({' OR '.join(fragments)})"


def markup_set_query(markup_set: NamedRecord) -> str:
    return f'{MARKUP_SET_FIELD}:"{markup_set.name}"'


def escape_for_search(value: str) -> str:
    """Backslash-escape characters the query grammar treats specially."""

    result = value
    for character in _SEARCH_SPECIAL_CHARACTERS:
        result = result.replace(character, "\\" + character)
    return result


def or_tag_query(*tags: str | Iterable[str]) -> str:
    """Match items carrying any of the given tags.

    Accepts either one iterable of tags or the tags as separate arguments, so
    ``or_tag_query(["a", "b"])`` and ``or_tag_query("a", "b")`` both yield
    ``tag:("a" OR "b")``.
    """

    if len(tags) == 1 and not isinstance(tags[0], str):
        values: Iterable[str] = tags[0]
    else:
        values = tags  # type: ignore[assignment]
    quoted = (f'"{escape_for_search(tag)}"' for tag in values)
    return f"{TAG_FIELD}:({' OR '.join(quoted)})"


def _check_year(year: int) -> None:
    # Sanity bound for accidental values like 19 instead of 2019, not calendar validity.
    if year < MIN_YEAR or year > MAX_YEAR:
        logger.debug("Rejected year", extra={"year": year})
        raise QueryArgumentError(f"Year {year} is a non-sensical value")


def _meaningful(expressions: Iterable[str | None]) -> list[str]:
    return [expression for expression in expressions if expression is not None and expression.strip()]


__all__ = [
    "ITEM_DATE_FIELD",
    "MARKUP_SET_FIELD",
    "MAX_YEAR",
    "MIN_YEAR",
    "NAMED_ENTITIES_FIELD",
    "TAG_FIELD",
    "MarkupSet",
    "NamedRecord",
    "QueryArgumentError",
    "escape_for_search",
    "join_by_and",
    "join_by_or",
    "markup_set_query",
    "named_entity_query",
    "not_join_by_or",
    "or_tag_query",
    "paren_then_join_by_and",
    "paren_then_join_by_or",
    "year_month_range_query",
    "year_range_query",
]
