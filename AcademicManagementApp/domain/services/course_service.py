"""Domain service functions for the course registry.

These helpers encapsulate business rules (only lecturers/admins create courses,
only the owning lecturer or an admin changes them) and keep view/serializer
layers thin. All mutating operations run inside atomic transactions.
"""
import logging
from typing import Any

from django.db import transaction
from django.db.models import QuerySet

from AcademicManagementApp.courses.models import Course
from AcademicManagementApp.core.access import ensure
from AcademicManagementApp.core.choices import Action, CourseStatus
from AcademicManagementApp.core.exceptions import Conflict, ValidationFailed, service_boundary
from AcademicManagementApp.domain.services.lookups import get_or_not_found, get_user, paginate

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "code", "credits", "max_students", "status")


def _check_code_free(code: str, exclude_pk: int | None = None) -> None:
    qs = Course.objects.filter(code=code)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise Conflict("Course with this code already exists")


@service_boundary
@transaction.atomic
def create_course(actor_id: int, data: dict[str, Any]) -> Course:
    """Create a course owned by the acting lecturer (or admin).

    Args:
        actor_id: User creating (and owning) the course.
        data: Payload with title, description, code, credits, max_students and optional status.

    Returns:
        The newly created Course instance.
    """
    actor = get_user(actor_id, "Lecturer")
    ensure(actor, Action.CREATE_COURSE, message="User must be a lecturer or admin to create courses")
    _check_code_free(data.get("code", ""))
    course = Course(lecturer=actor, **{k: v for k, v in data.items() if k in EDITABLE_FIELDS})
    course.full_clean()
    course.save()
    logger.info("Course %s created by user %s", course.code, actor.pk)
    return course


@service_boundary
@transaction.atomic
def update_course(actor_id: int, course_id: int, data: dict[str, Any]) -> Course:
    """Patch course fields (owner or admin)."""
    actor = get_user(actor_id)
    course = get_or_not_found(Course.objects.select_for_update(), course_id, "Course")
    ensure(actor, Action.MANAGE_COURSE, course, "You can only update courses you own")
    if "code" in data and data["code"] != course.code:
        _check_code_free(data["code"], exclude_pk=course.pk)
    for field, value in data.items():
        if field not in EDITABLE_FIELDS:
            raise ValidationFailed({field: ["This field cannot be updated."]})
        setattr(course, field, value)
    course.full_clean()
    course.save()
    return course


@service_boundary
@transaction.atomic
def set_course_status(actor_id: int, course_id: int, status: str) -> Course:
    """Move a course to any CourseStatus value (owner or admin)."""
    if status not in CourseStatus.values:
        raise ValidationFailed({"status": [f"Unknown status {status!r}."]})
    actor = get_user(actor_id)
    course = get_or_not_found(Course.objects.select_for_update(), course_id, "Course")
    ensure(actor, Action.MANAGE_COURSE, course, "You can only update status of courses you own")
    course.status = status
    course.save(update_fields=["status", "updated_at"])
    logger.info("Course %s status set to %s by user %s", course.pk, status, actor.pk)
    return course


@service_boundary
@transaction.atomic
def delete_course(actor_id: int, course_id: int) -> None:
    """Delete a course with its enrollments and assignments (owner or admin)."""
    actor = get_user(actor_id)
    course = get_or_not_found(Course, course_id, "Course")
    ensure(actor, Action.MANAGE_COURSE, course, "You can only delete courses you own")
    course.delete()
    logger.info("Course %s deleted by user %s", course_id, actor.pk)


def list_courses(
    filters: dict[str, Any] | None = None,
    page: int = 1,
    limit: int = 10,
    queryset: QuerySet | None = None,
) -> dict[str, Any]:
    """Filter by status, lecturer id or a text search; newest first, paginated.

    ``queryset`` narrows the base set (e.g. to what the caller may see).
    """
    filters = filters or {}
    qs = (queryset if queryset is not None else Course.objects.all()).select_related("lecturer")
    if filters.get("status"):
        qs = qs.filter(status=filters["status"])
    if filters.get("lecturer_id"):
        qs = qs.for_lecturer(filters["lecturer_id"])
    if filters.get("search"):
        qs = qs.search(filters["search"])
    return paginate(qs.order_by("-created_at", "-id"), page, limit)
