from __future__ import annotations

from dataclasses import dataclass

from .api.gateway import ApiGateway
from .attendance.api_attendance_repository import ApiAttendanceRepository
from .attendance.service import AttendanceService
from .audit.api_audit_repository import ApiAuditRepository
from .audit.service import AuditService
from .auth.api_auth_repository import ApiAuthRepository
from .auth.service import AuthService
from .billing.api_payment_repository import ApiPaymentRepository
from .billing.service import BillingService
from .classes.api_class_repository import ApiClassRepository
from .classes.service import ClassService
from .dashboard.service import DashboardService
from .enrollments.api_enrollment_repository import ApiEnrollmentRepository
from .enrollments.service import EnrollmentService
from .people.api_people_repository import ApiPeopleRepository
from .people.service import PeopleService
from .reports.service import ReportService
from .styles.api_style_repository import ApiDanceStyleRepository
from .styles.service import DanceStyleService


@dataclass(frozen=True)
class Container:
    gateway: ApiGateway

    auth_repo: ApiAuthRepository
    people_repo: ApiPeopleRepository
    classes_repo: ApiClassRepository
    enrollments_repo: ApiEnrollmentRepository
    attendance_repo: ApiAttendanceRepository
    payments_repo: ApiPaymentRepository
    styles_repo: ApiDanceStyleRepository
    audit_repo: ApiAuditRepository

    auth_service: AuthService
    people_service: PeopleService
    class_service: ClassService
    enrollment_service: EnrollmentService
    attendance_service: AttendanceService
    billing_service: BillingService
    style_service: DanceStyleService
    audit_service: AuditService
    dashboard_service: DashboardService
    report_service: ReportService


def build_container(*, gateway: ApiGateway) -> Container:
    auth_repo = ApiAuthRepository(gateway)
    people_repo = ApiPeopleRepository(gateway)
    classes_repo = ApiClassRepository(gateway)
    enrollments_repo = ApiEnrollmentRepository(gateway)
    attendance_repo = ApiAttendanceRepository(gateway)
    payments_repo = ApiPaymentRepository(gateway)
    styles_repo = ApiDanceStyleRepository(gateway)
    audit_repo = ApiAuditRepository(gateway)

    class_service = ClassService(classes_repo)
    style_service = DanceStyleService(styles_repo)

    return Container(
        gateway=gateway,
        auth_repo=auth_repo,
        people_repo=people_repo,
        classes_repo=classes_repo,
        enrollments_repo=enrollments_repo,
        attendance_repo=attendance_repo,
        payments_repo=payments_repo,
        styles_repo=styles_repo,
        audit_repo=audit_repo,
        auth_service=AuthService(auth_repo),
        people_service=PeopleService(people_repo),
        class_service=class_service,
        enrollment_service=EnrollmentService(enrollments_repo),
        attendance_service=AttendanceService(attendance_repo, classes_repo),
        billing_service=BillingService(payments_repo),
        style_service=style_service,
        audit_service=AuditService(audit_repo),
        dashboard_service=DashboardService(class_service, style_service),
        report_service=ReportService(gateway),
    )
