from __future__ import annotations

from src.academia_console.academia_console.classes.model import ClassStatistics, StyleClassStats
from src.academia_console.academia_console.core.exceptions import ApiError, ForbiddenError
from src.academia_console.academia_console.dashboard.service import DashboardService
from src.academia_console.academia_console.styles.model import DanceStyle


class FakeClasses:
    def __init__(self, stats=None, error=None):
        self.stats = stats
        self.error = error

    def statistics(self):
        if self.error:
            raise self.error
        return self.stats


class FakeStyles:
    def __init__(self, styles=None, error=None):
        self.styles = styles or []
        self.error = error

    def active_styles(self):
        if self.error:
            raise self.error
        return self.styles


STATS = ClassStatistics(
    total_classes=5,
    active_classes=4,
    total_students=30,
    total_capacity=60,
    available_slots=30,
    occupancy_percent=50.0,
    by_style=[
        StyleClassStats(style_id=1, class_count=2, enrolled_students=8),
        StyleClassStats(style_id=2, class_count=3, enrolled_students=22),
    ],
)


def test_styles_are_named_and_sorted_by_students():
    styles = FakeStyles([DanceStyle(style_id=1, name="Salsa", difficulty="Principiante", active=True)])

    overview = DashboardService(FakeClasses(STATS), styles).overview()

    assert [(s.style_name, s.enrolled_students) for s in overview.by_style] == [("Estilo 2", 22), ("Salsa", 8)]
    assert overview.error is None


def test_style_lookup_failure_keeps_statistics():
    overview = DashboardService(FakeClasses(STATS), FakeStyles(error=ApiError("caído"))).overview()

    assert overview.statistics is STATS
    assert {s.style_name for s in overview.by_style} == {"Estilo 1", "Estilo 2"}


def test_statistics_failure_is_reported_not_raised():
    overview = DashboardService(FakeClasses(error=ForbiddenError("Sin permisos", status=403))).overview()

    assert overview.statistics is None
    assert overview.error == "Sin permisos"
