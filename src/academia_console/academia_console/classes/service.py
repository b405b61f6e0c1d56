from __future__ import annotations

import re
from typing import List, Optional, Sequence

from ..auth.model import Identity
from ..common.listing import ListView, build_list_view
from ..common.validators import (
    require_choice,
    require_max_length,
    require_non_empty,
    require_positive_id,
    require_range,
)
from ..core.constants import (
    CLASS_SELECT_PAGE_SIZE,
    MAX_CLASS_CAPACITY,
    MAX_CLASS_DURATION,
    MAX_NAME_LENGTH,
    MAX_PRICE,
    MIN_CLASS_CAPACITY,
    MIN_CLASS_DURATION,
    MIN_PRICE,
)
from ..core.enums import Weekday
from ..core.exceptions import AuthorizationError, ValidationError
from ..people.model import PersonSummary
from .model import ClassForm, ClassSession, ClassStatistics
from .repository import ClassRepository

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")

SORT_KEYS = ("name", "weekday", "start_time", "capacity", "monthly_price", "active")


def _search_fields(c: ClassSession):
    return (
        c.name,
        c.weekday,
        c.teacher.full_name if c.teacher else None,
        c.style.name if c.style else None,
    )


class ClassService:
    def __init__(self, classes: ClassRepository):
        self._classes = classes

    def list_view(
        self,
        *,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        descending: bool = False,
    ) -> ListView[ClassSession]:
        fetched = self._classes.list(page=page, page_size=page_size)
        return build_list_view(
            fetched,
            search=search,
            fields=_search_fields,
            sort=sort if sort in SORT_KEYS else None,
            descending=descending,
        )

    def get(self, class_id: int) -> ClassSession:
        return self._classes.get(require_positive_id(class_id, "Clase"))

    def by_teacher(self, teacher_id: int) -> Sequence[ClassSession]:
        return self._classes.by_teacher(require_positive_id(teacher_id, "Profesor"))

    def selectable_for(self, identity: Identity) -> List[ClassSession]:
        """Classes the person may take attendance for.

        Admins see every active class; teachers only their own.
        """

        if identity.is_admin:
            page = self._classes.list(page=1, page_size=CLASS_SELECT_PAGE_SIZE)
            return [c for c in page.data if c.active]
        if identity.is_teacher and identity.person_id:
            return list(self._classes.by_teacher(identity.person_id))
        raise AuthorizationError("No tiene permisos para ver clases")

    def _validated(self, form: ClassForm) -> ClassForm:
        name = require_max_length(require_non_empty(form.name, "Nombre de la clase"), "Nombre de la clase", MAX_NAME_LENGTH)
        weekday = require_choice(form.weekday, "Día de la semana", [d.value for d in Weekday])
        start_time = (form.start_time or "").strip()
        if not _TIME_RE.match(start_time):
            raise ValidationError("Hora debe tener el formato HH:MM")

        try:
            duration = int(form.duration_minutes)
            capacity = int(form.capacity)
            price = float(form.monthly_price)
        except (TypeError, ValueError):
            raise ValidationError("Duración, capacidad y precio deben ser numéricos")

        require_range(duration, "Duración (minutos)", MIN_CLASS_DURATION, MAX_CLASS_DURATION)
        require_range(capacity, "Capacidad máxima", MIN_CLASS_CAPACITY, MAX_CLASS_CAPACITY)
        require_range(price, "Precio mensual", MIN_PRICE, MAX_PRICE)

        return ClassForm(
            name=name,
            weekday=weekday,
            start_time=start_time,
            duration_minutes=duration,
            capacity=capacity,
            monthly_price=round(price, 2),
            teacher_id=require_positive_id(form.teacher_id, "Profesor"),
            style_id=require_positive_id(form.style_id, "Estilo de danza"),
            active=form.active,
        )

    def create(self, form: ClassForm) -> ClassSession:
        return self._classes.create(self._validated(form))

    def update(self, class_id: int, form: ClassForm) -> ClassSession:
        return self._classes.update(require_positive_id(class_id, "Clase"), self._validated(form))

    def delete(self, class_id: int) -> None:
        self._classes.delete(require_positive_id(class_id, "Clase"))

    def roster(self, class_id: int) -> Sequence[PersonSummary]:
        return self._classes.roster(require_positive_id(class_id, "Clase"))

    def statistics(self) -> ClassStatistics:
        return self._classes.statistics()
