from __future__ import annotations

from datetime import date
from enum import Enum


class Role(str, Enum):
    """Rol de la persona autenticada, tal como lo entrega el backend."""

    ADMIN = "administrador"
    TEACHER = "profesor"
    STUDENT = "estudiante"
    GUARDIAN = "representante"


class AttendanceStatus(str, Enum):
    """Estados de asistencia que el backend acepta en `estadoAsis`."""

    PRESENT = "Presente"
    ABSENT = "Ausente"
    LATE = "Tardanza"
    EXCUSED = "Justificado"


class EnrollmentStatus(str, Enum):
    ACTIVE = "activa"
    INACTIVE = "inactiva"
    SUSPENDED = "suspendida"
    CANCELLED = "cancelada"
    FINISHED = "finalizada"


class PaymentStatus(str, Enum):
    PENDING = "pendiente"
    PAID = "pagado"
    OVERDUE = "vencido"
    CANCELLED = "cancelado"


class PaymentMethod(str, Enum):
    CASH = "Efectivo"
    TRANSFER = "Transferencia"


class DifficultyLevel(str, Enum):
    BEGINNER = "Principiante"
    INTERMEDIATE = "Intermedio"
    ADVANCED = "Avanzado"


class Weekday(str, Enum):
    """Días de la semana en el formato que usa el backend para `diaSemana`."""

    MONDAY = "Lunes"
    TUESDAY = "Martes"
    WEDNESDAY = "Miércoles"
    THURSDAY = "Jueves"
    FRIDAY = "Viernes"
    SATURDAY = "Sábado"
    SUNDAY = "Domingo"

    @classmethod
    def for_date(cls, value: date) -> "Weekday":
        return list(cls)[value.weekday()]


class NotificationType(str, Enum):
    """Known `tipo` values pushed by the notifications hub."""

    NEW_ATTENDANCE = "nueva_asistencia"
    NEW_PAYMENT = "nuevo_cobro"
    NEW_STUDENT = "nuevo_estudiante"
    CLASS_CHANGED = "cambio_clase"


class ReportFormat(str, Enum):
    CSV = "csv"
    PDF = "pdf"
