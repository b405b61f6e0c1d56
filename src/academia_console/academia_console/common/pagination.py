from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, TypeVar

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from .payload import PayloadReader

T = TypeVar("T")


def total_pages_for(total_records: int, page_size: int) -> int:
    if page_size <= 0:
        return 0
    return math.ceil(max(total_records, 0) / page_size)


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a backend list (`PaginatedResponse` envelope)."""

    data: List[T]
    total_records: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return total_pages_for(self.total_records, self.page_size)

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1

    @classmethod
    def empty(cls, page_size: int = DEFAULT_PAGE_SIZE) -> "Page[T]":
        return cls(data=[], total_records=0, page=1, page_size=page_size)


def page_from_payload(payload: Any, entity: str, item: Callable[[Any], T], *, page: int, page_size: int) -> Page[T]:
    """Normalize `{data, totalRecords, page, pageSize, ...}` into a `Page`.

    `totalPages` sent by the backend is ignored: it is always derived from
    `totalRecords` and the page size.
    """

    r = PayloadReader(payload, entity)
    rows = r.items("data", default=[])
    return Page(
        data=[item(row) for row in rows],
        total_records=r.req_int("totalRecords") if r.has("totalRecords") else len(rows),
        page=r.opt_int("page") or page,
        page_size=r.opt_int("pageSize") or page_size,
    )


@dataclass
class Pagination:
    """Page/page-size cursor kept by list views."""

    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def next_page(self) -> None:
        self.page += 1

    def prev_page(self) -> None:
        self.page = max(1, self.page - 1)

    def go_to(self, page: int) -> None:
        if page >= 1:
            self.page = page

    def reset(self) -> None:
        self.page = 1

    def change_page_size(self, page_size: int) -> None:
        self.page_size = min(max(1, int(page_size)), MAX_PAGE_SIZE)
        self.page = 1

    def params(self) -> dict:
        return {"page": self.page, "pageSize": self.page_size}
