import pytest

from AcademicManagementApp.core.exceptions import (
    Conflict,
    InvalidState,
    PermissionDenied,
    ValidationFailed,
)
from AcademicManagementApp.domain.services import submission_service

pytestmark = pytest.mark.django_db


@pytest.fixture
def assignment(make_assignment):
    return make_assignment(50)


def test_student_submits_once(student, assignment):
    submission = submission_service.create_submission(student.id, assignment.id, content_text="my answer")
    assert submission.grade is None
    with pytest.raises(Conflict):
        submission_service.create_submission(student.id, assignment.id, content_text="second try")


def test_submission_needs_content(student, assignment):
    with pytest.raises(ValidationFailed):
        submission_service.create_submission(student.id, assignment.id)


def test_file_url_must_be_https(student, assignment):
    with pytest.raises(ValidationFailed):
        submission_service.create_submission(student.id, assignment.id, file_url="http://files.example.com/a.pdf")
    ok = submission_service.create_submission(
        student.id, assignment.id, file_url="https://files.example.com/a.pdf", file_name="a.pdf"
    )
    assert ok.file_name == "a.pdf"


def test_inactive_assignment_refuses_submissions(student, make_assignment):
    parked = make_assignment(10, is_active=False)
    with pytest.raises(InvalidState):
        submission_service.create_submission(student.id, parked.id, content_text="x")


def test_only_students_submit(lecturer, assignment):
    with pytest.raises(PermissionDenied):
        submission_service.create_submission(lecturer.id, assignment.id, content_text="x")


def test_owner_edits_until_graded(student, other_student, lecturer, assignment):
    submission = submission_service.create_submission(student.id, assignment.id, content_text="draft")
    with pytest.raises(PermissionDenied):
        submission_service.update_submission(other_student.id, submission.id, {"content_text": "hijack"})
    edited = submission_service.update_submission(student.id, submission.id, {"content_text": "final"})
    assert edited.content_text == "final"

    submission_service.grade_submission(lecturer.id, submission.id, 75)
    with pytest.raises(InvalidState):
        submission_service.update_submission(student.id, submission.id, {"content_text": "too late"})


def test_grade_by_course_lecturer(student, lecturer, assignment):
    submission = submission_service.create_submission(student.id, assignment.id, content_text="answer")
    graded = submission_service.grade_submission(lecturer.id, submission.id, 88, "Solid work")
    assert graded.grade == 88
    assert graded.feedback == "Solid work"
    assert graded.graded_by_id == lecturer.id
    assert graded.graded_at is not None


def test_grade_denied_for_foreign_lecturer_and_student(student, other_lecturer, assignment):
    submission = submission_service.create_submission(student.id, assignment.id, content_text="answer")
    for actor in (other_lecturer, student):
        with pytest.raises(PermissionDenied):
            submission_service.grade_submission(actor.id, submission.id, 100)


@pytest.mark.parametrize("value", [-1, 101])
def test_grade_range(value, student, lecturer, assignment):
    submission = submission_service.create_submission(student.id, assignment.id, content_text="answer")
    with pytest.raises(ValidationFailed):
        submission_service.grade_submission(lecturer.id, submission.id, value)


def test_grading_inactive_assignment_refused(student, lecturer, assignment):
    submission = submission_service.create_submission(student.id, assignment.id, content_text="answer")
    assignment.is_active = False
    assignment.save()
    with pytest.raises(InvalidState):
        submission_service.grade_submission(lecturer.id, submission.id, 90)


def test_submission_listings(student, other_student, lecturer, other_lecturer, assignment):
    submission_service.create_submission(student.id, assignment.id, content_text="a")
    submission_service.create_submission(other_student.id, assignment.id, content_text="b")
    assert submission_service.submissions_for_assignment(lecturer.id, assignment.id).count() == 2
    assert submission_service.submissions_for_student(student.id).count() == 1
    with pytest.raises(PermissionDenied):
        submission_service.submissions_for_assignment(other_lecturer.id, assignment.id)
