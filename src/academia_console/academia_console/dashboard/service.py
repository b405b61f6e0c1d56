from __future__ import annotations

import logging
from typing import Dict, Optional

from ..classes.service import ClassService
from ..core.exceptions import ApiError
from ..styles.service import DanceStyleService
from .model import DashboardOverview, StyleOccupancy

log = logging.getLogger(__name__)


class DashboardService:
    """Class statistics for the landing page, with style names resolved."""

    def __init__(self, classes: ClassService, styles: Optional[DanceStyleService] = None):
        self._classes = classes
        self._styles = styles

    def _style_names(self) -> Dict[int, str]:
        if self._styles is None:
            return {}
        try:
            return {s.style_id: s.name for s in self._styles.active_styles()}
        except ApiError as e:
            log.warning("Could not load dance styles for the dashboard: %s", e)
            return {}

    def overview(self) -> DashboardOverview:
        try:
            stats = self._classes.statistics()
        except ApiError as e:
            log.warning("Class statistics unavailable: %s", e)
            return DashboardOverview(statistics=None, error=str(e) or "Error al cargar estadísticas")

        names = self._style_names() if stats.by_style else {}
        by_style = [
            StyleOccupancy(
                style_id=s.style_id,
                style_name=names.get(s.style_id, f"Estilo {s.style_id}"),
                class_count=s.class_count,
                enrolled_students=s.enrolled_students,
            )
            for s in stats.by_style
        ]
        by_style.sort(key=lambda s: s.enrolled_students, reverse=True)
        return DashboardOverview(statistics=stats, by_style=by_style)
