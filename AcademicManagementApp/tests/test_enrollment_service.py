import pytest
from model_bakery import baker

from AcademicManagementApp.core.choices import CourseStatus, EnrollmentStatus, UserRole
from AcademicManagementApp.core.exceptions import (
    CapacityExceeded,
    Conflict,
    InvalidState,
    NotFound,
    PermissionDenied,
    ValidationFailed,
)
from AcademicManagementApp.courses.models import Enrollment
from AcademicManagementApp.domain.services import enrollment_service

pytestmark = pytest.mark.django_db


def enroll(course, status, student=None):
    student = student or baker.make("users.User", role=UserRole.STUDENT)
    return baker.make("courses.Enrollment", course=course, student=student, status=status)


def test_create_enrollment_is_pending(student, course):
    enrollment = enrollment_service.create_enrollment(student.id, course.id, "please")
    assert enrollment.status == EnrollmentStatus.PENDING
    assert enrollment.notes == "please"
    assert enrollment.approved_by is None


def test_create_enrollment_missing_rows(student, course):
    with pytest.raises(NotFound):
        enrollment_service.create_enrollment(student.id, course.id + 999)
    with pytest.raises(NotFound):
        enrollment_service.create_enrollment(999999, course.id)


def test_only_students_enroll(lecturer, admin, course):
    for user in (lecturer, admin):
        with pytest.raises(PermissionDenied):
            enrollment_service.create_enrollment(user.id, course.id)


@pytest.mark.parametrize("status", [CourseStatus.DRAFT, CourseStatus.ARCHIVED])
def test_unpublished_course_refuses_every_role(status, student, lecturer, make_course):
    course = make_course(status=status)
    for user in (student, lecturer):
        with pytest.raises(InvalidState):
            enrollment_service.create_enrollment(user.id, course.id)


@pytest.mark.parametrize("status", [EnrollmentStatus.PENDING, EnrollmentStatus.APPROVED, EnrollmentStatus.REJECTED])
def test_duplicate_enrollment_conflicts(status, student, course):
    enroll(course, status, student)
    with pytest.raises(Conflict):
        enrollment_service.create_enrollment(student.id, course.id)


def test_reenroll_after_drop_reuses_row(student, lecturer, course):
    original = baker.make(
        "courses.Enrollment", course=course, student=student,
        status=EnrollmentStatus.DROPPED, notes="old", approved_by=lecturer,
    )
    again = enrollment_service.create_enrollment(student.id, course.id, "back again")
    assert again.id == original.id
    assert again.status == EnrollmentStatus.PENDING
    assert again.notes == "back again"
    assert again.approved_by is None
    assert Enrollment.objects.filter(student=student, course=course).count() == 1


def test_capacity_counts_only_approved(student, make_course):
    course = make_course(max_students=2)
    enroll(course, EnrollmentStatus.APPROVED)
    for _ in range(3):
        enroll(course, EnrollmentStatus.PENDING)
    enroll(course, EnrollmentStatus.REJECTED)
    assert enrollment_service.create_enrollment(student.id, course.id).status == EnrollmentStatus.PENDING


def test_capacity_exceeded(student, make_course):
    course = make_course(max_students=2)
    enroll(course, EnrollmentStatus.APPROVED)
    enroll(course, EnrollmentStatus.APPROVED)
    with pytest.raises(CapacityExceeded):
        enrollment_service.create_enrollment(student.id, course.id)
    assert not Enrollment.objects.filter(student=student).exists()


def test_zero_capacity_means_unlimited(student, make_course):
    course = make_course(max_students=0)
    for _ in range(5):
        enroll(course, EnrollmentStatus.APPROVED)
    assert enrollment_service.create_enrollment(student.id, course.id).pk


def test_drop_frees_a_seat(student, other_student, lecturer, make_course):
    course = make_course(max_students=1)
    taken = enroll(course, EnrollmentStatus.APPROVED, other_student)
    with pytest.raises(CapacityExceeded):
        enrollment_service.create_enrollment(student.id, course.id)
    enrollment_service.drop_enrollment(taken.id, other_student.id)
    assert enrollment_service.create_enrollment(student.id, course.id).status == EnrollmentStatus.PENDING


def test_approve_by_course_lecturer_stamps_approver(lecturer, course):
    enrollment = enroll(course, EnrollmentStatus.PENDING)
    approved = enrollment_service.approve_enrollment(enrollment.id, lecturer.id)
    assert approved.status == EnrollmentStatus.APPROVED
    assert approved.approved_by_id == lecturer.id


def test_admin_can_moderate_any_course(admin, course):
    enrollment = enroll(course, EnrollmentStatus.PENDING)
    assert enrollment_service.reject_enrollment(enrollment.id, admin.id).approved_by_id == admin.id


def test_moderation_denied_for_other_lecturer_and_students(other_lecturer, student, course):
    enrollment = enroll(course, EnrollmentStatus.PENDING, student)
    with pytest.raises(PermissionDenied):
        enrollment_service.approve_enrollment(enrollment.id, other_lecturer.id)
    with pytest.raises(PermissionDenied):
        enrollment_service.approve_enrollment(enrollment.id, student.id)
    enrollment.refresh_from_db()
    assert enrollment.status == EnrollmentStatus.PENDING


def test_approve_missing_enrollment(lecturer):
    with pytest.raises(NotFound):
        enrollment_service.approve_enrollment(424242, lecturer.id)


def test_dropped_enrollment_can_be_moderated(lecturer, course):
    enrollment = enroll(course, EnrollmentStatus.DROPPED)
    approved = enrollment_service.approve_enrollment(enrollment.id, lecturer.id)
    assert approved.status == EnrollmentStatus.APPROVED
    assert approved.approved_by_id == lecturer.id

    enrollment_service.drop_enrollment(enrollment.id, lecturer.id)
    rejected = enrollment_service.reject_enrollment(enrollment.id, lecturer.id, "too late")
    assert rejected.status == EnrollmentStatus.REJECTED
    assert rejected.approved_by_id == lecturer.id


def test_reject_then_approve_is_allowed(lecturer, course):
    enrollment = enroll(course, EnrollmentStatus.PENDING)
    enrollment_service.reject_enrollment(enrollment.id, lecturer.id)
    assert enrollment_service.approve_enrollment(enrollment.id, lecturer.id).status == EnrollmentStatus.APPROVED


def test_reject_notes_replace_only_when_given(lecturer, course):
    enrollment = baker.make("courses.Enrollment", course=course, status=EnrollmentStatus.PENDING, notes="mine")
    kept = enrollment_service.reject_enrollment(enrollment.id, lecturer.id)
    assert kept.notes == "mine"
    replaced = enrollment_service.reject_enrollment(enrollment.id, lecturer.id, "prerequisites missing")
    assert replaced.notes == "prerequisites missing"


def test_approval_does_not_recheck_capacity(lecturer, make_course):
    course = make_course(max_students=1)
    enroll(course, EnrollmentStatus.APPROVED)
    waiting = enroll(course, EnrollmentStatus.PENDING)
    assert enrollment_service.approve_enrollment(waiting.id, lecturer.id).status == EnrollmentStatus.APPROVED


def test_student_drops_own_enrollment_only(student, other_student, course):
    own = enroll(course, EnrollmentStatus.APPROVED, student)
    with pytest.raises(PermissionDenied):
        enrollment_service.drop_enrollment(own.id, other_student.id)
    assert enrollment_service.drop_enrollment(own.id, student.id).status == EnrollmentStatus.DROPPED


def test_any_lecturer_may_drop(other_lecturer, course):
    enrollment = enroll(course, EnrollmentStatus.PENDING)
    assert enrollment_service.drop_enrollment(enrollment.id, other_lecturer.id).status == EnrollmentStatus.DROPPED


def test_drop_is_idempotent(student, course):
    enrollment = enroll(course, EnrollmentStatus.DROPPED, student)
    assert enrollment_service.drop_enrollment(enrollment.id, student.id).status == EnrollmentStatus.DROPPED


def test_update_notes_by_owner(student, course):
    enrollment = enroll(course, EnrollmentStatus.PENDING, student)
    updated = enrollment_service.update_enrollment(enrollment.id, {"notes": "evening group"}, student.id)
    assert updated.notes == "evening group"
    assert updated.status == EnrollmentStatus.PENDING


def test_student_cannot_self_approve(student, course):
    enrollment = enroll(course, EnrollmentStatus.PENDING, student)
    with pytest.raises(PermissionDenied):
        enrollment_service.update_enrollment(enrollment.id, {"status": EnrollmentStatus.APPROVED}, student.id)


def test_student_cannot_update_foreign_enrollment(other_student, course):
    enrollment = enroll(course, EnrollmentStatus.PENDING)
    with pytest.raises(PermissionDenied):
        enrollment_service.update_enrollment(enrollment.id, {"notes": "x"}, other_student.id)


def test_update_status_by_lecturer_stamps_approver(lecturer, course):
    enrollment = enroll(course, EnrollmentStatus.PENDING)
    updated = enrollment_service.update_enrollment(enrollment.id, {"status": EnrollmentStatus.APPROVED}, lecturer.id)
    assert updated.status == EnrollmentStatus.APPROVED
    assert updated.approved_by_id == lecturer.id


@pytest.mark.parametrize("start", [EnrollmentStatus.APPROVED, EnrollmentStatus.REJECTED, EnrollmentStatus.DROPPED])
def test_lecturer_moves_enrollment_to_any_status(start, lecturer, course):
    enrollment = enroll(course, start)
    reset = enrollment_service.update_enrollment(enrollment.id, {"status": EnrollmentStatus.PENDING}, lecturer.id)
    assert reset.status == EnrollmentStatus.PENDING

    approved = enrollment_service.update_enrollment(enrollment.id, {"status": EnrollmentStatus.APPROVED}, lecturer.id)
    assert approved.status == EnrollmentStatus.APPROVED
    assert approved.approved_by_id == lecturer.id


def test_update_rejects_unknown_fields(lecturer, course):
    enrollment = enroll(course, EnrollmentStatus.PENDING)
    with pytest.raises(ValidationFailed):
        enrollment_service.update_enrollment(enrollment.id, {"course": 1}, lecturer.id)


def test_bulk_approve_reports_partial_failures(lecturer, other_lecturer, course, make_course):
    ok = enroll(course, EnrollmentStatus.PENDING)
    dropped = enroll(course, EnrollmentStatus.DROPPED)
    foreign = enroll(make_course(lecturer=other_lecturer), EnrollmentStatus.PENDING)

    result = enrollment_service.bulk_approve([ok.id, 987654, dropped.id, foreign.id], lecturer.id)

    assert [e.id for e in result.succeeded] == [ok.id, dropped.id]
    assert [(e.enrollment_id, e.kind) for e in result.errors] == [
        (987654, "NotFound"),
        (foreign.id, "PermissionDenied"),
    ]
    ok.refresh_from_db()
    dropped.refresh_from_db()
    foreign.refresh_from_db()
    assert ok.status == EnrollmentStatus.APPROVED
    assert dropped.status == EnrollmentStatus.APPROVED
    assert dropped.approved_by_id == lecturer.id
    assert foreign.status == EnrollmentStatus.PENDING


def test_bulk_reject_applies_notes(lecturer, course):
    first = enroll(course, EnrollmentStatus.PENDING)
    second = enroll(course, EnrollmentStatus.APPROVED)
    result = enrollment_service.bulk_reject([first.id, second.id], lecturer.id, "course cancelled")
    assert not result.errors
    assert {e.status for e in result.succeeded} == {EnrollmentStatus.REJECTED}
    assert {e.notes for e in result.succeeded} == {"course cancelled"}


def test_list_enrollments_filters_and_paginates(student, course, make_course):
    enroll(course, EnrollmentStatus.PENDING, student)
    enroll(make_course(), EnrollmentStatus.APPROVED, student)
    enroll(make_course(), EnrollmentStatus.PENDING, student)
    enroll(course, EnrollmentStatus.PENDING)

    page = enrollment_service.list_enrollments({"student_id": student.id}, page=1, limit=2)
    assert page["total"] == 3
    assert page["pages"] == 2
    assert len(page["results"]) == 2

    pending = enrollment_service.list_enrollments({"student_id": student.id, "status": EnrollmentStatus.PENDING})
    assert pending["total"] == 2
    assert pending["limit"] == 10


def test_pending_queue_is_oldest_first(course):
    first = enroll(course, EnrollmentStatus.PENDING)
    enroll(course, EnrollmentStatus.APPROVED)
    second = enroll(course, EnrollmentStatus.PENDING)
    assert list(enrollment_service.pending_enrollments()) == [first, second]


def test_history_records_transitions(lecturer, student, course):
    enrollment = enrollment_service.create_enrollment(student.id, course.id)
    enrollment_service.approve_enrollment(enrollment.id, lecturer.id)
    enrollment_service.drop_enrollment(enrollment.id, student.id)
    statuses = list(enrollment.history.order_by("history_date", "history_id").values_list("status", flat=True))
    assert statuses == [EnrollmentStatus.PENDING, EnrollmentStatus.APPROVED, EnrollmentStatus.DROPPED]
