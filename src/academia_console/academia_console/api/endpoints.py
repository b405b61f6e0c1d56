from __future__ import annotations

AUTH_LOGIN = "/Auth/login"
AUTH_REGISTER = "/Auth/register"

PEOPLE = "/Personas"
CLASSES = "/Clases"
CLASS_STATS = "/clases/estadisticas"
ATTENDANCE = "/Asistencias"
ENROLLMENTS = "/Inscripciones"
PAYMENTS = "/Cobros"
DANCE_STYLES = "/EstilosDanza"
AUDIT = "/Audit"


def classes_by_teacher(teacher_id: int) -> str:
    return f"{CLASSES}/profesor/{int(teacher_id)}"


def class_roster(class_id: int) -> str:
    return f"{CLASSES}/{int(class_id)}/estudiantes"


def attendance_by_class(class_id: int) -> str:
    return f"{ATTENDANCE}/clase/{int(class_id)}"


def attendance_validation(class_id: int) -> str:
    return f"{ATTENDANCE}/clase/{int(class_id)}/validar"


def attendance_by_student(student_id: int) -> str:
    return f"{ATTENDANCE}/estudiante/{int(student_id)}"


def attendance_by_enrollment(enrollment_id: int) -> str:
    return f"{ATTENDANCE}/inscripcion/{int(enrollment_id)}"


def enrollments_by_class(class_id: int) -> str:
    return f"{ENROLLMENTS}/clase/{int(class_id)}"


def report(resource: str, fmt: str) -> str:
    return f"{resource}/reporte/{fmt}"
