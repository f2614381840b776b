"""Course domain models: Course and Enrollment."""

from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator

from simple_history.models import HistoricalRecords

from AcademicManagementApp.core.choices import CourseStatus, EnrollmentStatus
from AcademicManagementApp.courses.querysets import CourseQuerySet, EnrollmentQuerySet


User = settings.AUTH_USER_MODEL

class Course(models.Model):
    """A course owned by a lecturer, open for enrollment once published.

    Fields:
        title: Human readable course title.
        description: Longer text.
        code: Unique catalogue code.
        credits: Credit points, 1–6.
        max_students: Maximum approved enrollments (0 = unlimited).
        status: CourseStatus value (draft, published, archived).
        lecturer: FK to the owning lecturer.
        created_at / updated_at: Timestamps.
        history: Audit history (django-simple-history).
    """
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    code = models.CharField(max_length=32, unique=True)
    credits = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(6)])
    max_students = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=16, choices=CourseStatus.choices, default=CourseStatus.DRAFT)
    lecturer = models.ForeignKey(User, on_delete=models.PROTECT, related_name="taught_courses")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    history = HistoricalRecords()

    objects = CourseQuerySet.as_manager()

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(credits__gte=1, credits__lte=6), name="ck_course_credits_range"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.code} {self.title} (#{self.pk})"

    @property
    def is_unlimited(self) -> bool:
        return self.max_students == 0


class Enrollment(models.Model):
    """A student's claim on a course seat with an approval workflow.

    Fields:
        student: Enrolled user.
        course: Target course.
        status: EnrollmentStatus value.
        notes: Free text from the student or the moderating lecturer.
        approved_by: User who last approved or rejected the enrollment.
        created_at / updated_at: Timestamps.
        history: Historical records.
    Constraints:
        uq_enrollment_student_course: One row per student and course; a dropped
        row is reused on re-enrollment.
    """
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name="enrollments")
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="enrollments")
    status = models.CharField(max_length=16, choices=EnrollmentStatus.choices, default=EnrollmentStatus.PENDING)
    notes = models.TextField(blank=True)
    approved_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="approved_enrollments"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    history = HistoricalRecords()

    objects = EnrollmentQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["student", "course"], name="uq_enrollment_student_course"),
        ]

    def __str__(self) -> str:
        return f"Enrollment({self.student_id} -> {self.course_id}, {self.status})"
