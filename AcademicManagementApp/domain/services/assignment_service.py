"""Domain service functions for assignments and the per-course weight budget.

The weights of a course's active assignments never sum above 100. Every write
that can raise the active total (creating an active assignment, changing a
weight, re-activating) re-reads the total with the course row locked, so two
concurrent writers cannot both pass the check.
"""

import logging
from typing import Any

from django.db import transaction

from AcademicManagementApp.courses.models import Course
from AcademicManagementApp.core.access import ensure
from AcademicManagementApp.core.choices import Action
from AcademicManagementApp.core.exceptions import InvalidState, ValidationFailed, service_boundary
from AcademicManagementApp.domain.services.lookups import get_or_not_found, get_user
from AcademicManagementApp.learning.models import Assignment

logger = logging.getLogger(__name__)

MAX_TOTAL_WEIGHT = 100
UPDATABLE_FIELDS = ("title", "description", "weight", "due_at", "is_active")


def _validate_weight(weight: Any) -> int:
    if isinstance(weight, bool) or not isinstance(weight, int) or not (0 <= weight <= MAX_TOTAL_WEIGHT):
        raise ValidationFailed({"weight": ["Weight must be an integer between 0 and 100."]})
    return weight


def active_weight_total(course_id: int, exclude_assignment_id: int | None = None) -> int:
    """Sum of active assignment weights for a course, optionally excluding one assignment."""
    qs = Assignment.objects.for_course(course_id).active()
    if exclude_assignment_id is not None:
        qs = qs.exclude(pk=exclude_assignment_id)
    return qs.weight_total()


def _assert_weight_budget(course: Course, weight: int, exclude_assignment_id: int | None = None) -> None:
    current = active_weight_total(course.pk, exclude_assignment_id)
    if current + weight > MAX_TOTAL_WEIGHT:
        logger.warning(
            "Weight budget exceeded for course %s: current %s%%, adding %s%%", course.pk, current, weight
        )
        raise InvalidState(
            f"Total assignment weight would exceed 100% (current {current}%, adding {weight}%)"
        )


@service_boundary
@transaction.atomic
def create_assignment(
    actor_id: int,
    course_id: int,
    title: str,
    weight: int,
    description: str = "",
    due_at=None,
    is_active: bool = True,
) -> Assignment:
    """Create an assignment (owning lecturer or admin) within the course weight budget."""
    actor = get_user(actor_id)
    course = get_or_not_found(Course.objects.select_for_update(), course_id, "Course")
    ensure(actor, Action.MANAGE_ASSIGNMENT, course, "You can only manage assignments of your own courses")
    _validate_weight(weight)
    if is_active:
        _assert_weight_budget(course, weight)
    assignment = Assignment(
        course=course,
        title=title,
        description=description or "",
        weight=weight,
        due_at=due_at,
        is_active=is_active,
    )
    assignment.full_clean()
    assignment.save()
    logger.info("Assignment %s (%s%%) created in course %s", assignment.pk, weight, course.pk)
    return assignment


@service_boundary
@transaction.atomic
def update_assignment(actor_id: int, assignment_id: int, patch: dict[str, Any]) -> Assignment:
    """Patch an assignment; the weight budget is re-checked when the active total can grow."""
    unknown = set(patch) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationFailed({name: ["This field cannot be updated."] for name in sorted(unknown)})

    actor = get_user(actor_id)
    assignment = get_or_not_found(Assignment.objects.select_related("course"), assignment_id, "Assignment")
    ensure(actor, Action.MANAGE_ASSIGNMENT, assignment, "You can only manage assignments of your own courses")
    course = Course.objects.select_for_update().get(pk=assignment.course_id)
    assignment = Assignment.objects.select_for_update().get(pk=assignment.pk)

    weight = _validate_weight(patch["weight"]) if "weight" in patch else assignment.weight
    becomes_active = patch.get("is_active", assignment.is_active)
    weight_changed = weight != assignment.weight
    reactivated = becomes_active and not assignment.is_active
    if becomes_active and (weight_changed or reactivated):
        _assert_weight_budget(course, weight, exclude_assignment_id=assignment.pk)

    for name, value in patch.items():
        setattr(assignment, name, value)
    assignment.full_clean()
    assignment.save()
    logger.info(
        "Assignment %s updated by user %s (%s)", assignment.pk, actor.pk, ", ".join(sorted(patch)) or "no changes"
    )
    return assignment


@service_boundary
@transaction.atomic
def delete_assignment(actor_id: int, assignment_id: int) -> None:
    """Delete an assignment and, by cascade, its submissions."""
    actor = get_user(actor_id)
    assignment = get_or_not_found(Assignment.objects.select_related("course"), assignment_id, "Assignment")
    ensure(actor, Action.MANAGE_ASSIGNMENT, assignment, "You can only manage assignments of your own courses")
    assignment.delete()
    logger.info("Assignment %s deleted by user %s", assignment_id, actor.pk)


def list_assignments_for_course(course_id: int, active_only: bool = False):
    """Assignments of a course, newest first."""
    get_or_not_found(Course, course_id, "Course")
    qs = Assignment.objects.for_course(course_id)
    if active_only:
        qs = qs.active()
    return qs.order_by("-created_at", "-id")
