from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, List, Optional, Sequence, TypeVar

from .pagination import Page

T = TypeVar("T")


def _fold(text: Any) -> str:
    """Lowercase and strip accents so "Jose" matches "José"."""
    s = unicodedata.normalize("NFKD", str(text or ""))
    return "".join(ch for ch in s if not unicodedata.combining(ch)).lower()


def filter_items(items: Iterable[T], search: Optional[str], fields: Callable[[T], Sequence[Any]]) -> List[T]:
    """Client-side secondary filter applied on top of the fetched page."""
    term = _fold(search).strip()
    if not term:
        return list(items)
    return [item for item in items if any(term in _fold(v) for v in fields(item))]


def sort_items(items: Iterable[T], key: Optional[str], *, descending: bool = False) -> List[T]:
    rows = list(items)
    if not key:
        return rows

    def _key(item: T):
        value = getattr(item, key)
        return _fold(value) if isinstance(value, str) else value

    # None always sorts last, regardless of direction.
    try:
        present = [r for r in rows if getattr(r, key, None) is not None]
        missing = [r for r in rows if getattr(r, key, None) is None]
        return sorted(present, key=_key, reverse=descending) + missing
    except TypeError:
        return rows


@dataclass(frozen=True)
class ListView(Generic[T]):
    """A fetched page plus the rows left after the client-side filter/sort."""

    page: Page[T]
    rows: List[T]
    search: str = ""
    sort: Optional[str] = None
    descending: bool = False


def build_list_view(
    page: Page[T],
    *,
    search: Optional[str],
    fields: Callable[[T], Sequence[Any]],
    sort: Optional[str] = None,
    descending: bool = False,
) -> ListView[T]:
    rows = sort_items(filter_items(page.data, search, fields), sort, descending=descending)
    return ListView(page=page, rows=rows, search=(search or "").strip(), sort=sort, descending=descending)
