from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..classes.model import ClassStatistics


@dataclass(frozen=True)
class StyleOccupancy:
    style_id: int
    style_name: str
    class_count: int
    enrolled_students: int


@dataclass(frozen=True)
class DashboardOverview:
    statistics: Optional[ClassStatistics]
    by_style: List[StyleOccupancy] = field(default_factory=list)
    error: Optional[str] = None
