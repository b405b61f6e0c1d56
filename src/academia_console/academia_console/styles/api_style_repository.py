from __future__ import annotations

from typing import Any

from ..api import endpoints
from ..api.gateway import ApiGateway
from ..common.pagination import Page, page_from_payload
from ..common.payload import PayloadReader
from .model import DanceStyle, DanceStyleForm
from .repository import DanceStyleRepository


def style_from_payload(payload: Any) -> DanceStyle:
    r = PayloadReader(payload, "EstiloDanza")
    return DanceStyle(
        style_id=r.req_int("idEstilo"),
        name=r.req_str("nombreEsti"),
        difficulty=r.opt_str("nivelDificultad") or "",
        active=r.flag("activo", default=True),
        description=r.opt_str("descripcion"),
        min_age=r.opt_int("edadMinima"),
        max_age=r.opt_int("edadMaxima"),
        base_price=r.opt_float("precioBase"),
    )


def style_form_to_body(form: DanceStyleForm) -> dict:
    body = {
        "nombreEsti": form.name,
        "descripcion": form.description,
        "nivelDificultad": form.difficulty,
        "edadMinima": form.min_age,
        "edadMaxima": form.max_age,
        "activo": form.active,
        "precioBase": form.base_price,
    }
    return {k: v for k, v in body.items() if v is not None}


class ApiDanceStyleRepository(DanceStyleRepository):
    def __init__(self, gateway: ApiGateway):
        self._gateway = gateway

    def list(self, *, page: int, page_size: int) -> Page[DanceStyle]:
        payload = self._gateway.get(endpoints.DANCE_STYLES, params={"page": page, "pageSize": page_size})
        return page_from_payload(payload, "EstilosDanza", style_from_payload, page=page, page_size=page_size)

    def get(self, style_id: int) -> DanceStyle:
        return style_from_payload(self._gateway.get(f"{endpoints.DANCE_STYLES}/{int(style_id)}"))

    def create(self, form: DanceStyleForm) -> DanceStyle:
        return style_from_payload(self._gateway.post(endpoints.DANCE_STYLES, json=style_form_to_body(form)))

    def update(self, style_id: int, form: DanceStyleForm) -> DanceStyle:
        payload = self._gateway.put(f"{endpoints.DANCE_STYLES}/{int(style_id)}", json=style_form_to_body(form))
        return style_from_payload(payload)

    def delete(self, style_id: int) -> None:
        self._gateway.delete(f"{endpoints.DANCE_STYLES}/{int(style_id)}")
