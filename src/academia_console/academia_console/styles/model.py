from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class DanceStyle:
    style_id: int
    name: str
    difficulty: str
    active: bool
    description: Optional[str] = None
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    base_price: Optional[float] = None


@dataclass(frozen=True)
class DanceStyleForm:
    name: str
    difficulty: str
    active: bool = True
    description: Optional[str] = None
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    base_price: Optional[float] = None
