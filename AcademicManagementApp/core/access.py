"""Role & object access helpers.

All permission decisions go through ``can(actor, action, resource)``; services
call ``ensure`` which raises ``PermissionDenied`` on a deny.
"""

from typing import Any, Callable

from AcademicManagementApp.core.choices import Action, UserRole
from AcademicManagementApp.core.exceptions import PermissionDenied


def course_from(obj: Any):
    """Resolve the course a domain object belongs to."""
    from AcademicManagementApp.courses.models import Course, Enrollment
    from AcademicManagementApp.learning.models import Assignment, Submission

    if obj is None:
        return None
    if isinstance(obj, Course):
        return obj
    if isinstance(obj, (Enrollment, Assignment)):
        return obj.course
    if isinstance(obj, Submission):
        return obj.assignment.course
    return getattr(obj, "course", None)


def owner_id_of(obj: Any) -> int | None:
    """Return the id of the student owning an enrollment or submission."""
    return getattr(obj, "student_id", None)


def is_admin(user) -> bool:
    return bool(user and user.role == UserRole.ADMIN)


def is_lecturer(user) -> bool:
    return bool(user and user.role == UserRole.LECTURER)


def is_student(user) -> bool:
    return bool(user and user.role == UserRole.STUDENT)


def is_course_lecturer(user, obj: Any) -> bool:
    """True if user is the lecturer owning the course of ``obj``."""
    course = course_from(obj)
    return bool(is_lecturer(user) and course and course.lecturer_id == user.id)


def is_own(user, obj: Any) -> bool:
    return bool(user and obj is not None and owner_id_of(obj) == user.id)


def _admin_or_course_lecturer(user, obj: Any) -> bool:
    return is_admin(user) or is_course_lecturer(user, obj)


def _admin_course_lecturer_or_own(user, obj: Any) -> bool:
    return is_admin(user) or is_course_lecturer(user, obj) or (is_student(user) and is_own(user, obj))


RULES: dict[str, Callable[[Any, Any], bool]] = {
    Action.ENROLL: lambda user, obj: is_student(user),
    Action.SUBMIT: lambda user, obj: is_student(user),
    Action.CREATE_COURSE: lambda user, obj: is_admin(user) or is_lecturer(user),
    Action.MANAGE_COURSE: _admin_or_course_lecturer,
    Action.MANAGE_ASSIGNMENT: _admin_or_course_lecturer,
    Action.MODERATE_ENROLLMENT: _admin_or_course_lecturer,
    Action.GRADE_SUBMISSION: _admin_or_course_lecturer,
    Action.UPDATE_ENROLLMENT: _admin_course_lecturer_or_own,
    Action.VIEW_ENROLLMENT: _admin_course_lecturer_or_own,
    Action.VIEW_SUBMISSION: _admin_course_lecturer_or_own,
    Action.DROP_ENROLLMENT: lambda user, obj: (
        is_admin(user) or is_lecturer(user) or (is_student(user) and is_own(user, obj))
    ),
    Action.EDIT_SUBMISSION: lambda user, obj: is_student(user) and is_own(user, obj),
}


def can(user, action: str, obj: Any = None) -> bool:
    """Return True if ``user`` may perform ``action`` on ``obj``."""
    if user is None or not getattr(user, "is_authenticated", False) or not user.is_active:
        return False
    rule = RULES.get(action)
    return bool(rule and rule(user, obj))


def ensure(user, action: str, obj: Any = None, message: str | None = None) -> None:
    """Raise PermissionDenied unless ``can(user, action, obj)``."""
    if not can(user, action, obj):
        raise PermissionDenied(message)
