"""Domain service functions for the enrollment lifecycle.

Enforces role/ownership rules through core.access:
- Only students enroll; only the owning lecturer or an admin approves/rejects.
- Students drop their own enrollments; lecturers and admins may drop any.
Moderation and updates set the requested status without a state guard.
Re-enrolling after a drop reuses the row and resets it to PENDING.
Capacity counts APPROVED enrollments only and is evaluated when a new
enrollment is created, with the course row locked for the duration.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from django.conf import settings
from django.db import transaction
from django.db.models import QuerySet

from AcademicManagementApp.courses.models import Course, Enrollment
from AcademicManagementApp.core.access import ensure
from AcademicManagementApp.core.choices import Action, CourseStatus, EnrollmentStatus
from AcademicManagementApp.core.exceptions import (
    AcademicError,
    CapacityExceeded,
    Conflict,
    InvalidState,
    ValidationFailed,
    service_boundary,
)
from AcademicManagementApp.domain.services import grade_service
from AcademicManagementApp.domain.services.lookups import get_or_not_found, get_user, paginate

logger = logging.getLogger(__name__)

MODERATED_STATUSES = (EnrollmentStatus.APPROVED, EnrollmentStatus.REJECTED)


@dataclass
class BulkError:
    enrollment_id: Any
    kind: str
    message: str


@dataclass
class BulkResult:
    """Outcome of a bulk approve/reject: successes and per-id failures."""
    succeeded: list[Enrollment] = field(default_factory=list)
    errors: list[BulkError] = field(default_factory=list)


def _locked_enrollment(enrollment_id: Any) -> Enrollment:
    return get_or_not_found(
        Enrollment.objects.select_for_update().select_related("course"), enrollment_id, "Enrollment"
    )


@service_boundary
@transaction.atomic
def create_enrollment(student_id: int, course_id: int, notes: str = "") -> Enrollment:
    """Enroll a student in a published course.

    Rules:
        - Student and course must exist (NotFound).
        - Course must be published (InvalidState), whatever the caller's role.
        - Caller must be a student (PermissionDenied).
        - A non-dropped enrollment for the pair is a Conflict.
        - A dropped enrollment is reset to PENDING with the new notes (same row).
        - Otherwise the approved count must be below max_students (0 = unlimited).
    """
    student = get_user(student_id, "Student")
    # Locked so concurrent creates for this course serialize on the capacity check.
    course = get_or_not_found(Course.objects.select_for_update(), course_id, "Course")

    if course.status != CourseStatus.PUBLISHED:
        raise InvalidState("Course is not available for enrollment")
    ensure(student, Action.ENROLL, course, "User must be a student to enroll in courses")

    existing = Enrollment.objects.select_for_update().filter(student=student, course=course).first()
    if existing is not None:
        if existing.status != EnrollmentStatus.DROPPED:
            raise Conflict("Student is already enrolled in this course")
        existing.status = EnrollmentStatus.PENDING
        existing.notes = notes or ""
        existing.approved_by = None
        existing.save(update_fields=["status", "notes", "approved_by", "updated_at"])
        logger.info("Enrollment %s re-opened for student %s in course %s", existing.pk, student.pk, course.pk)
        return existing

    if not course.is_unlimited:
        approved = Enrollment.objects.filter(course=course).approved().count()
        if approved >= course.max_students:
            logger.warning(
                "Course %s full (%s/%s approved); enrollment of student %s refused",
                course.pk, approved, course.max_students, student.pk,
            )
            raise CapacityExceeded()

    enrollment = Enrollment.objects.create(
        student=student, course=course, status=EnrollmentStatus.PENDING, notes=notes or ""
    )
    logger.info("Enrollment %s created for student %s in course %s", enrollment.pk, student.pk, course.pk)
    return enrollment


def _moderate(enrollment_id: Any, actor_id: int, status: str, notes: str | None = None) -> Enrollment:
    actor = get_user(actor_id)
    enrollment = _locked_enrollment(enrollment_id)
    ensure(actor, Action.MODERATE_ENROLLMENT, enrollment, "You can only update enrollments for your own courses")
    enrollment.status = status
    enrollment.approved_by = actor
    fields = ["status", "approved_by", "updated_at"]
    if notes is not None:
        enrollment.notes = notes
        fields.append("notes")
    enrollment.save(update_fields=fields)
    logger.info("Enrollment %s set to %s by user %s", enrollment.pk, status, actor.pk)
    return enrollment


@service_boundary
@transaction.atomic
def approve_enrollment(enrollment_id: Any, actor_id: int) -> Enrollment:
    """Approve an enrollment (owning lecturer or admin); stamps approved_by."""
    return _moderate(enrollment_id, actor_id, EnrollmentStatus.APPROVED)


@service_boundary
@transaction.atomic
def reject_enrollment(enrollment_id: Any, actor_id: int, notes: str | None = None) -> Enrollment:
    """Reject an enrollment (owning lecturer or admin); optional notes replace existing ones."""
    return _moderate(enrollment_id, actor_id, EnrollmentStatus.REJECTED, notes)


@service_boundary
@transaction.atomic
def drop_enrollment(enrollment_id: Any, actor_id: int) -> Enrollment:
    """Drop an enrollment. Students drop their own; lecturers/admins drop any.

    Freed seats need no bookkeeping: capacity is always the live approved count.
    """
    actor = get_user(actor_id)
    enrollment = _locked_enrollment(enrollment_id)
    ensure(actor, Action.DROP_ENROLLMENT, enrollment, "You can only drop your own enrollments")
    enrollment.status = EnrollmentStatus.DROPPED
    enrollment.save(update_fields=["status", "updated_at"])
    logger.info("Enrollment %s dropped by user %s", enrollment.pk, actor.pk)
    return enrollment


@service_boundary
@transaction.atomic
def update_enrollment(enrollment_id: Any, data: dict[str, Any], actor_id: int) -> Enrollment:
    """Patch ``status``, ``notes`` and/or ``approved_by``.

    Students may only touch their own enrollment, lecturers only enrollments of
    their courses. Moving to APPROVED/REJECTED requires the moderation right and
    stamps approved_by with the actor.
    """
    unknown = set(data) - {"status", "notes", "approved_by"}
    if unknown:
        raise ValidationFailed({name: ["This field cannot be updated."] for name in sorted(unknown)})

    actor = get_user(actor_id)
    enrollment = _locked_enrollment(enrollment_id)
    ensure(actor, Action.UPDATE_ENROLLMENT, enrollment, "You can only update your own enrollments")

    fields = ["updated_at"]
    status = data.get("status")
    if status is not None:
        if status not in EnrollmentStatus.values:
            raise ValidationFailed({"status": [f"Unknown status {status!r}."]})
        if status in MODERATED_STATUSES:
            ensure(actor, Action.MODERATE_ENROLLMENT, enrollment,
                   "You can only update enrollments for your own courses")
        enrollment.status = status
        fields.append("status")
    if "notes" in data:
        enrollment.notes = data["notes"] or ""
        fields.append("notes")
    if status in MODERATED_STATUSES:
        enrollment.approved_by = actor
        fields.append("approved_by")
    elif "approved_by" in data:
        ensure(actor, Action.MODERATE_ENROLLMENT, enrollment,
               "You can only update enrollments for your own courses")
        approver = data["approved_by"]
        enrollment.approved_by = None if approver is None else get_user(getattr(approver, "pk", approver), "Approver")
        fields.append("approved_by")

    enrollment.save(update_fields=fields)
    logger.info("Enrollment %s updated by user %s (%s)", enrollment.pk, actor.pk, ", ".join(fields[1:]) or "no changes")
    return enrollment


def _bulk(ids: Iterable[Any], operation) -> BulkResult:
    result = BulkResult()
    for enrollment_id in ids:
        try:
            # Savepoint per id: a failure rolls back only that item.
            with transaction.atomic():
                result.succeeded.append(operation(enrollment_id))
        except AcademicError as exc:
            result.errors.append(BulkError(enrollment_id, exc.kind, str(exc.detail)))
    logger.info("Bulk operation processed %s ids: %s ok, %s failed",
                len(result.succeeded) + len(result.errors), len(result.succeeded), len(result.errors))
    return result


def bulk_approve(ids: Iterable[Any], actor_id: int) -> BulkResult:
    """Approve each id independently, collecting per-id failures."""
    return _bulk(ids, lambda enrollment_id: approve_enrollment(enrollment_id, actor_id))


def bulk_reject(ids: Iterable[Any], actor_id: int, notes: str | None = None) -> BulkResult:
    """Reject each id independently, collecting per-id failures."""
    return _bulk(ids, lambda enrollment_id: reject_enrollment(enrollment_id, actor_id, notes))


def _with_relations(qs: QuerySet) -> QuerySet:
    return qs.select_related("student", "course__lecturer", "approved_by")


def list_enrollments(
    filters: dict[str, Any] | None = None,
    page: int = 1,
    limit: int | None = None,
    queryset: QuerySet | None = None,
) -> dict[str, Any]:
    """Filter by status, student_id, course_id; newest first, paginated.

    ``queryset`` narrows the base set (e.g. to what the caller may see).
    """
    filters = filters or {}
    qs = queryset if queryset is not None else Enrollment.objects.all()
    if filters.get("status"):
        qs = qs.filter(status=filters["status"])
    if filters.get("student_id"):
        qs = qs.filter(student_id=filters["student_id"])
    if filters.get("course_id"):
        qs = qs.filter(course_id=filters["course_id"])
    if limit is None:
        limit = getattr(settings, "ENROLLMENT_PAGE_SIZE", 10)
    return paginate(_with_relations(qs).order_by("-created_at", "-id"), page, limit)


def enrollments_for_student(student_id: int) -> QuerySet:
    return _with_relations(Enrollment.objects.filter(student_id=student_id)).order_by("-created_at", "-id")


def enrollments_for_course(course_id: int) -> QuerySet:
    return _with_relations(Enrollment.objects.filter(course_id=course_id)).order_by("-created_at", "-id")


def pending_enrollments(queryset: QuerySet | None = None) -> QuerySet:
    """Pending enrollments, oldest first (review queue order)."""
    qs = queryset if queryset is not None else Enrollment.objects.all()
    return _with_relations(qs.pending()).order_by("created_at", "id")


def compute_final_grade_for_enrollment(enrollment_id: Any) -> grade_service.FinalGrade:
    return grade_service.compute_final_grade(enrollment_id)
