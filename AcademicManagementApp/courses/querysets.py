"""Custom querysets encapsulating visibility and state filtering for courses and learning objects."""

from django.db.models import QuerySet, Q, Sum
from django.db.models.functions import Coalesce
from typing import Self


from AcademicManagementApp.core.choices import CourseStatus, EnrollmentStatus, UserRole

class CourseQuerySet(QuerySet):
    """QuerySet with helpers for course visibility and ownership."""

    def published(self) -> Self:
        """Courses open for enrollment."""
        return self.filter(status=CourseStatus.PUBLISHED)

    def for_lecturer(self, user) -> Self:
        """Courses owned by the given lecturer."""
        return self.filter(lecturer=user)

    def search(self, term: str) -> Self:
        """Case-insensitive match on title, description or code."""
        return self.filter(
            Q(title__icontains=term) | Q(description__icontains=term) | Q(code__icontains=term)
        )

    def visible_to(self, user) -> Self:
        """Courses visible to user:
        - Anonymous / student: published
        - Lecturer: published OR owned
        - Admin: all
        """
        if not user or not user.is_authenticated:
            return self.published()
        if user.role == UserRole.ADMIN:
            return self.all()
        if user.role == UserRole.LECTURER:
            return self.filter(Q(status=CourseStatus.PUBLISHED) | Q(lecturer=user))
        return self.published()


class EnrollmentQuerySet(QuerySet):
    """QuerySet helpers for enrollment state and visibility."""

    def approved(self) -> Self:
        return self.filter(status=EnrollmentStatus.APPROVED)

    def pending(self) -> Self:
        return self.filter(status=EnrollmentStatus.PENDING)

    def visible_to(self, user) -> Self:
        """Enrollments visible to user:
        - Admin: all
        - Lecturer: enrollments of owned courses
        - Student: own enrollments
        """
        if not user or not user.is_authenticated:
            return self.none()
        if user.role == UserRole.ADMIN:
            return self.all()
        if user.role == UserRole.LECTURER:
            return self.filter(course__lecturer=user)
        return self.filter(student=user)


class AssignmentQuerySet(QuerySet):
    """QuerySet helpers for the per-course weight ledger."""

    def active(self) -> Self:
        return self.filter(is_active=True)

    def for_course(self, course) -> Self:
        return self.filter(course=course)

    def weight_total(self) -> int:
        """Sum of weights in this queryset (0 when empty)."""
        return self.aggregate(total=Coalesce(Sum("weight"), 0))["total"]


class SubmissionQuerySet(QuerySet):
    """QuerySet helpers for filtering submissions by role."""

    def for_student(self, user):
        """Submissions belonging to the student."""
        return self.filter(student=user)
