"""Learning domain models: Assignment and Submission."""

from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator

from AcademicManagementApp.courses.models import Course
from AcademicManagementApp.core.validators import validate_resource_url, validate_file_name
from AcademicManagementApp.courses.querysets import AssignmentQuerySet, SubmissionQuerySet

from simple_history.models import HistoricalRecords

User = settings.AUTH_USER_MODEL

class Assignment(models.Model):
    """A graded piece of coursework contributing ``weight`` percent to the final grade."""
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="assignments")
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    weight = models.PositiveSmallIntegerField(validators=[MinValueValidator(0), MaxValueValidator(100)])
    due_at = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    history = HistoricalRecords()

    objects = AssignmentQuerySet.as_manager()

    class Meta:
        constraints = [
            models.CheckConstraint(condition=models.Q(weight__lte=100), name="ck_assignment_weight_range"),
        ]

    def __str__(self) -> str:
        return f"{self.title} ({self.weight}%)"


class Submission(models.Model):
    """A student's answer to an assignment (unique per assignment+student), optionally graded."""
    assignment = models.ForeignKey(Assignment, on_delete=models.CASCADE, related_name="submissions")
    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name="submissions")
    content_text = models.TextField(blank=True)
    file_url = models.URLField(blank=True, null=True, validators=[validate_resource_url])
    file_name = models.CharField(max_length=255, blank=True, null=True, validators=[validate_file_name])
    grade = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    feedback = models.TextField(blank=True)
    graded_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="graded_submissions"
    )
    graded_at = models.DateTimeField(null=True, blank=True)
    submitted_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    history = HistoricalRecords()

    objects = SubmissionQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["assignment", "student"], name="uq_assignment_student"),
            models.CheckConstraint(
                condition=models.Q(grade__isnull=True) | models.Q(grade__lte=100), name="ck_submission_grade_range"
            ),
        ]

    @property
    def is_graded(self) -> bool:
        return self.grade is not None
