import pytest
from django.contrib.auth.models import AnonymousUser
from model_bakery import baker

from AcademicManagementApp.core.access import can, ensure
from AcademicManagementApp.core.choices import Action, EnrollmentStatus
from AcademicManagementApp.core.exceptions import PermissionDenied

pytestmark = pytest.mark.django_db


@pytest.fixture
def enrollment(student, course):
    return baker.make("courses.Enrollment", student=student, course=course, status=EnrollmentStatus.PENDING)


def test_enroll_and_create_course_by_role(student, lecturer, admin):
    assert can(student, Action.ENROLL)
    assert not can(lecturer, Action.ENROLL)
    assert not can(student, Action.CREATE_COURSE)
    assert can(lecturer, Action.CREATE_COURSE)
    assert can(admin, Action.CREATE_COURSE)


@pytest.mark.parametrize(
    "actor, allowed",
    [("lecturer", True), ("admin", True), ("other_lecturer", False), ("student", False)],
)
def test_moderation_matrix(actor, allowed, enrollment, request):
    user = request.getfixturevalue(actor)
    assert can(user, Action.MODERATE_ENROLLMENT, enrollment) is allowed


@pytest.mark.parametrize(
    "actor, allowed",
    [("student", True), ("other_student", False), ("other_lecturer", True), ("admin", True)],
)
def test_drop_matrix(actor, allowed, enrollment, request):
    user = request.getfixturevalue(actor)
    assert can(user, Action.DROP_ENROLLMENT, enrollment) is allowed


def test_view_enrollment(student, other_student, lecturer, other_lecturer, enrollment):
    assert can(student, Action.VIEW_ENROLLMENT, enrollment)
    assert can(lecturer, Action.VIEW_ENROLLMENT, enrollment)
    assert not can(other_student, Action.VIEW_ENROLLMENT, enrollment)
    assert not can(other_lecturer, Action.VIEW_ENROLLMENT, enrollment)


def test_anonymous_and_inactive_users_are_denied(course):
    inactive_lecturer = baker.make("users.User", role="LECTURER", is_active=False)
    assert not can(AnonymousUser(), Action.CREATE_COURSE)
    assert not can(None, Action.CREATE_COURSE)
    assert not can(inactive_lecturer, Action.CREATE_COURSE)


def test_ensure_raises_with_message(student):
    with pytest.raises(PermissionDenied) as exc:
        ensure(student, Action.CREATE_COURSE, message="Lecturers only")
    assert str(exc.value.detail) == "Lecturers only"
