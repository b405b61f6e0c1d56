from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from typing import List, Optional

from ..people.model import PersonSummary
from ..styles.model import DanceStyle


@dataclass(frozen=True)
class ClassSummary:
    """Short class reference embedded in attendance records and enrollments."""

    class_id: int
    name: Optional[str] = None
    weekday: Optional[str] = None
    start_time: Optional[time] = None

    @property
    def label(self) -> str:
        parts = [self.name or f"Clase {self.class_id}"]
        if self.weekday:
            parts.append(self.weekday)
        if self.start_time:
            parts.append(self.start_time.strftime("%H:%M"))
        return " - ".join(parts)


@dataclass(frozen=True)
class ClassSession:
    class_id: int
    name: Optional[str]
    weekday: Optional[str]
    start_time: Optional[time]
    duration_minutes: int
    capacity: int
    monthly_price: float
    active: bool
    teacher: Optional[PersonSummary] = None
    style: Optional[DanceStyle] = None
    enrolled_count: Optional[int] = None
    available_slots: Optional[int] = None

    @property
    def has_available_slots(self) -> bool:
        if self.available_slots is not None:
            return self.available_slots > 0
        if self.enrolled_count is not None:
            return self.enrolled_count < self.capacity
        return True

    def summary(self) -> ClassSummary:
        return ClassSummary(class_id=self.class_id, name=self.name, weekday=self.weekday, start_time=self.start_time)


@dataclass(frozen=True)
class ClassForm:
    name: str
    weekday: str
    start_time: str
    duration_minutes: int
    capacity: int
    monthly_price: float
    teacher_id: int
    style_id: int
    active: bool = True


@dataclass(frozen=True)
class StyleClassStats:
    style_id: int
    class_count: int
    enrolled_students: int


@dataclass(frozen=True)
class ClassStatistics:
    total_classes: int
    active_classes: int
    total_students: int
    total_capacity: int
    available_slots: int
    occupancy_percent: float
    by_style: List[StyleClassStats] = field(default_factory=list)
