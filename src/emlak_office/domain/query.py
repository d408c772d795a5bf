"""Client-side search, filter, sort and pagination over in-memory collections.

The back office fetches whole collections and derives every visible page
locally. ``query`` is the one algorithm used for all of them:

1. keep items whose search texts contain the term (case-insensitive) and
   that satisfy every predicate,
2. stable multi-key sort, ``None`` values last,
3. slice the requested page.

It performs no I/O and never mutates the input sequence.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Sequence, TypeVar

T = TypeVar("T")

Predicate = Callable[[T], bool]

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


@dataclass(frozen=True)
class SortKey(Generic[T]):
    """One sort criterion; earlier keys in a list take precedence."""

    key: Callable[[T], Any]
    descending: bool = False


@dataclass
class QueryResult(Generic[T]):
    """A page of results plus the size of the whole filtered set."""

    data: List[T]
    total: int
    total_pages: int
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": list(self.data),
            "total": self.total,
            "total_pages": self.total_pages,
            "page": self.page,
            "limit": self.limit,
        }


def fold_text(value: Any) -> str:
    """Lower-cased text form used for substring search."""
    if value is None:
        return ""
    return str(value).casefold()


def matches_search(texts: Iterable[Any], term: Optional[str]) -> bool:
    """True when ``term`` is blank or occurs in any of ``texts``."""
    if term is None:
        return True
    needle = term.strip().casefold()
    if not needle:
        return True
    return any(needle in fold_text(text) for text in texts)


def equals(getter: Callable[[T], Any], expected: Any) -> Predicate:
    """Predicate for strict equality on one attribute."""

    def predicate(item: T) -> bool:
        return getter(item) == expected

    return predicate


def within(
    getter: Callable[[T], Any],
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
) -> Predicate:
    """Predicate for an inclusive numeric range; a falsy bound means unbounded."""

    def predicate(item: T) -> bool:
        value = getter(item)
        if value is None:
            return not (minimum or maximum)
        if minimum and value < minimum:
            return False
        if maximum and value > maximum:
            return False
        return True

    return predicate


def sort_items(items: Sequence[T], sort_keys: Sequence[SortKey]) -> List[T]:
    """
    Stable multi-key sort.

    Keys are applied from last to first so the first key dominates; items
    whose key is None always go to the end regardless of direction.
    """
    ordered = list(items)
    for sort_key in reversed(list(sort_keys)):
        present = [item for item in ordered if sort_key.key(item) is not None]
        missing = [item for item in ordered if sort_key.key(item) is None]
        present.sort(key=sort_key.key, reverse=sort_key.descending)
        ordered = present + missing
    return ordered


def paginate(items: Sequence[T], page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> QueryResult[T]:
    """
    Slice one page out of an already filtered and sorted sequence.

    Pages past the end return an empty ``data`` with the true ``total``.
    """
    if limit < 1:
        raise ValueError(f"limit must be positive, got {limit}")
    page = max(page, 1)
    total = len(items)
    start = (page - 1) * limit
    return QueryResult(
        data=list(items[start:start + limit]),
        total=total,
        total_pages=math.ceil(total / limit),
        page=page,
        limit=limit,
    )


def query(
    items: Iterable[T],
    *,
    search: Optional[str] = None,
    search_fields: Optional[Callable[[T], Iterable[Any]]] = None,
    predicates: Sequence[Predicate] = (),
    sort_keys: Sequence[SortKey] = (),
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> QueryResult[T]:
    """
    Filter, sort and paginate a collection.

    Args:
        items: Full collection; left untouched.
        search: Free-text term, matched case-insensitively as a substring.
        search_fields: Returns the texts of an item the term is matched
            against. Without it the search term is ignored.
        predicates: Every predicate must hold for an item to be kept.
        sort_keys: Sort criteria in precedence order. Without them the
            input order is preserved.
        page: 1-based page number (defaults to 1).
        limit: Page size (defaults to 10).

    Returns:
        QueryResult with the page, the filtered total and the page count.
    """
    filtered: List[T] = []
    for item in items:
        if search_fields is not None and not matches_search(search_fields(item), search):
            continue
        if not all(predicate(item) for predicate in predicates):
            continue
        filtered.append(item)

    if sort_keys:
        filtered = sort_items(filtered, sort_keys)

    return paginate(filtered, page or DEFAULT_PAGE, limit or DEFAULT_LIMIT)


__all__ = [
    "DEFAULT_PAGE",
    "DEFAULT_LIMIT",
    "Predicate",
    "SortKey",
    "QueryResult",
    "fold_text",
    "matches_search",
    "equals",
    "within",
    "sort_items",
    "paginate",
    "query",
]
