from __future__ import annotations

from typing import Protocol

from ..common.pagination import Page
from .model import DanceStyle, DanceStyleForm


class DanceStyleRepository(Protocol):
    def list(self, *, page: int, page_size: int) -> Page[DanceStyle]:
        raise NotImplementedError

    def get(self, style_id: int) -> DanceStyle:
        raise NotImplementedError

    def create(self, form: DanceStyleForm) -> DanceStyle:
        raise NotImplementedError

    def update(self, style_id: int, form: DanceStyleForm) -> DanceStyle:
        raise NotImplementedError

    def delete(self, style_id: int) -> None:
        raise NotImplementedError
