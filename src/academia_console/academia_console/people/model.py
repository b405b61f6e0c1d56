from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class PersonSummary:
    """Short person reference embedded in classes, enrollments and records."""

    person_id: int
    first_name: str
    last_name: str
    full_name: str
    role: Optional[str] = None


@dataclass(frozen=True)
class Person:
    person_id: int
    first_name: str
    last_name: str
    role: Role
    active: bool
    phone: Optional[str] = None
    email: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    national_id: Optional[str] = None
    medical_conditions: Optional[str] = None
    # teacher
    specialty: Optional[str] = None
    hire_date: Optional[date] = None
    base_salary: Optional[float] = None
    # guardian
    relationship: Optional[str] = None
    represented_student_id: Optional[int] = None
    represented_student_name: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def summary(self) -> PersonSummary:
        return PersonSummary(
            person_id=self.person_id,
            first_name=self.first_name,
            last_name=self.last_name,
            full_name=self.full_name,
            role=self.role.value,
        )


@dataclass(frozen=True)
class PersonForm:
    """Create/update input for `/Personas` as entered in the person form."""

    first_name: str
    last_name: str
    role: Role
    phone: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    national_id: Optional[str] = None
    medical_conditions: Optional[str] = None
    specialty: Optional[str] = None
    hire_date: Optional[date] = None
    base_salary: Optional[float] = None
    relationship: Optional[str] = None
    represented_student_id: Optional[int] = None
    active: Optional[bool] = None
