"""Custom DRF permission classes delegating to the capability check in core.access."""

from rest_framework.request import Request
from typing import Any

from rest_framework.permissions import BasePermission, SAFE_METHODS

from AcademicManagementApp.core.access import can
from AcademicManagementApp.core.choices import Action


class CapabilityPermission(BasePermission):
    """Object-level check of a single Action via core.access.can()."""
    action: str = ""

    def has_object_permission(self, request: Request, view: Any, obj: Any) -> bool:
        return can(request.user, self.action, obj)


class IsLecturerOrAdmin(BasePermission):
    """Write access limited to lecturers and admins (GET always allowed)."""

    def has_permission(self, request: Request, view: Any) -> bool:
        if request.method in SAFE_METHODS:
            return True
        return can(request.user, Action.CREATE_COURSE)


class IsCourseManager(CapabilityPermission):
    """Allow access if user is the owning lecturer or an admin."""
    action = Action.MANAGE_COURSE


class CanViewEnrollment(CapabilityPermission):
    """Allow access to the enrolled student, the course lecturer or an admin."""
    action = Action.VIEW_ENROLLMENT


class CanViewSubmission(CapabilityPermission):
    """Allow access to the submitting student, the course lecturer or an admin."""
    action = Action.VIEW_SUBMISSION
