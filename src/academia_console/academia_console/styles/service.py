from __future__ import annotations

from typing import List, Optional

from ..common.listing import ListView, build_list_view
from ..common.validators import optional_text, require_choice, require_max_length, require_non_empty, require_positive_id
from ..core.constants import CLASS_SELECT_PAGE_SIZE, MAX_NAME_LENGTH
from ..core.enums import DifficultyLevel
from ..core.exceptions import ConflictError, ValidationError
from .model import DanceStyle, DanceStyleForm
from .repository import DanceStyleRepository

STYLE_IN_USE_MESSAGE = (
    "Este estilo de danza tiene clases asociadas. Para eliminarlo, primero debe "
    "eliminar o reasignar las clases que lo utilizan."
)

SORT_KEYS = ("name", "difficulty", "base_price", "active")


class StyleInUseError(ValidationError):
    """Deletion refused by the backend because classes still use the style."""


class DanceStyleService:
    def __init__(self, styles: DanceStyleRepository):
        self._styles = styles

    def list_view(
        self,
        *,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        descending: bool = False,
    ) -> ListView[DanceStyle]:
        fetched = self._styles.list(page=page, page_size=page_size)
        return build_list_view(
            fetched,
            search=search,
            fields=lambda s: (s.name, s.description, s.difficulty),
            sort=sort if sort in SORT_KEYS else None,
            descending=descending,
        )

    def active_styles(self) -> List[DanceStyle]:
        page = self._styles.list(page=1, page_size=CLASS_SELECT_PAGE_SIZE)
        return [s for s in page.data if s.active]

    def get(self, style_id: int) -> DanceStyle:
        return self._styles.get(require_positive_id(style_id, "Estilo"))

    def _validated(self, form: DanceStyleForm) -> DanceStyleForm:
        name = require_max_length(require_non_empty(form.name, "Nombre del estilo"), "Nombre del estilo", MAX_NAME_LENGTH)
        difficulty = require_choice(form.difficulty, "Nivel de dificultad", [d.value for d in DifficultyLevel])
        if form.min_age is not None and form.min_age < 0:
            raise ValidationError("Edad mínima no puede ser negativa")
        if form.min_age is not None and form.max_age is not None and form.max_age < form.min_age:
            raise ValidationError("Edad máxima debe ser mayor o igual a la edad mínima")
        if form.base_price is not None and form.base_price < 0:
            raise ValidationError("Precio base no puede ser negativo")
        return DanceStyleForm(
            name=name,
            difficulty=difficulty,
            active=form.active,
            description=optional_text(form.description),
            min_age=form.min_age,
            max_age=form.max_age,
            base_price=form.base_price,
        )

    def create(self, form: DanceStyleForm) -> DanceStyle:
        return self._styles.create(self._validated(form))

    def update(self, style_id: int, form: DanceStyleForm) -> DanceStyle:
        return self._styles.update(require_positive_id(style_id, "Estilo"), self._validated(form))

    def delete(self, style_id: int) -> None:
        try:
            self._styles.delete(require_positive_id(style_id, "Estilo"))
        except ConflictError as e:
            raise StyleInUseError(STYLE_IN_USE_MESSAGE) from e
