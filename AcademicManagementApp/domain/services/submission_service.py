"""Domain service functions for submissions and grading.

Enforces role/ownership rules:
- Only students submit, once per assignment, and only to active assignments.
- The submitting student edits content fields until the submission is graded.
- Only the course lecturer or an admin grades.
"""

import logging
from typing import Any

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from AcademicManagementApp.core.access import ensure
from AcademicManagementApp.core.choices import Action
from AcademicManagementApp.core.exceptions import Conflict, InvalidState, ValidationFailed, service_boundary
from AcademicManagementApp.domain.services.lookups import get_or_not_found, get_user
from AcademicManagementApp.learning.models import Assignment, Submission

logger = logging.getLogger(__name__)

CONTENT_FIELDS = ("content_text", "file_url", "file_name")


def _active_assignment(assignment_id: Any) -> Assignment:
    assignment = get_or_not_found(Assignment.objects.select_related("course"), assignment_id, "Assignment")
    if not assignment.is_active:
        raise InvalidState("Assignment is not active")
    return assignment


@service_boundary
@transaction.atomic
def create_submission(
    student_id: int,
    assignment_id: int,
    content_text: str = "",
    file_url: str | None = None,
    file_name: str | None = None,
) -> Submission:
    """Create the student's single submission for an assignment.

    Raises:
        NotFound: Student or assignment absent.
        InvalidState: Assignment inactive.
        PermissionDenied: Caller is not a student.
        ValidationFailed: Neither text nor file URL given, or malformed URL/name.
        Conflict: The student already submitted.
    """
    assignment = _active_assignment(assignment_id)
    student = get_user(student_id, "Student")
    ensure(student, Action.SUBMIT, assignment, "Only students can submit assignments")
    if not content_text and not file_url:
        raise ValidationFailed("Either content_text or file_url is required")
    if Submission.objects.filter(assignment=assignment, student=student).exists():
        raise Conflict("Submission already exists for this assignment")

    submission = Submission(
        assignment=assignment,
        student=student,
        content_text=content_text or "",
        file_url=file_url or None,
        file_name=file_name or None,
    )
    submission.full_clean(validate_unique=False, validate_constraints=False)
    submission.save()
    logger.info("Submission %s created by student %s for assignment %s", submission.pk, student.pk, assignment.pk)
    return submission


@service_boundary
@transaction.atomic
def update_submission(actor_id: int, submission_id: int, data: dict[str, Any]) -> Submission:
    """Replace content fields of an ungraded submission (owner only)."""
    unknown = set(data) - set(CONTENT_FIELDS)
    if unknown:
        raise ValidationFailed({name: ["This field cannot be updated."] for name in sorted(unknown)})
    actor = get_user(actor_id)
    submission = get_or_not_found(Submission.objects.select_for_update(), submission_id, "Submission")
    ensure(actor, Action.EDIT_SUBMISSION, submission, "You can only edit your own submission")
    if submission.is_graded:
        raise InvalidState("Graded submissions cannot be edited")

    for name, value in data.items():
        setattr(submission, name, value or ("" if name == "content_text" else None))
    if not submission.content_text and not submission.file_url:
        raise ValidationFailed("Either content_text or file_url is required")
    submission.full_clean(validate_unique=False, validate_constraints=False)
    submission.save()
    return submission


@service_boundary
@transaction.atomic
def grade_submission(actor_id: int, submission_id: int, grade: int, feedback: str = "") -> Submission:
    """Set grade (0–100) and feedback on a submission (course lecturer or admin)."""
    actor = get_user(actor_id)
    submission = get_or_not_found(
        Submission.objects.select_for_update().select_related("assignment__course"), submission_id, "Submission"
    )
    if not submission.assignment.is_active:
        raise InvalidState("Assignment is not active")
    ensure(actor, Action.GRADE_SUBMISSION, submission, "Only the course lecturer or admin can grade")
    if isinstance(grade, bool) or not isinstance(grade, int) or not (0 <= grade <= 100):
        raise ValidationFailed({"grade": ["Grade must be between 0 and 100"]})

    submission.grade = grade
    submission.feedback = feedback or ""
    submission.graded_by = actor
    submission.graded_at = timezone.now()
    submission.save(update_fields=["grade", "feedback", "graded_by", "graded_at", "updated_at"])
    logger.info("Submission %s graded %s by user %s", submission.pk, grade, actor.pk)
    return submission


def submissions_for_assignment(actor_id: int, assignment_id: int) -> QuerySet:
    """All submissions of an assignment (course lecturer or admin)."""
    actor = get_user(actor_id)
    assignment = get_or_not_found(Assignment.objects.select_related("course"), assignment_id, "Assignment")
    ensure(actor, Action.MANAGE_ASSIGNMENT, assignment)
    return assignment.submissions.select_related("student", "graded_by").order_by("-submitted_at", "-id")


def submissions_for_student(student_id: int) -> QuerySet:
    return Submission.objects.for_student(student_id).select_related("assignment").order_by("-submitted_at", "-id")
