import pytest
from model_bakery import baker

from AcademicManagementApp.core.choices import CourseStatus, UserRole


@pytest.fixture
def admin():
    return baker.make("users.User", role=UserRole.ADMIN)


@pytest.fixture
def lecturer():
    return baker.make("users.User", role=UserRole.LECTURER)


@pytest.fixture
def other_lecturer():
    return baker.make("users.User", role=UserRole.LECTURER)


@pytest.fixture
def student():
    return baker.make("users.User", role=UserRole.STUDENT)


@pytest.fixture
def other_student():
    return baker.make("users.User", role=UserRole.STUDENT)


@pytest.fixture
def make_course(lecturer):
    def _make(**kwargs):
        kwargs.setdefault("lecturer", lecturer)
        kwargs.setdefault("credits", 3)
        kwargs.setdefault("status", CourseStatus.PUBLISHED)
        return baker.make("courses.Course", **kwargs)
    return _make


@pytest.fixture
def course(make_course):
    return make_course()


@pytest.fixture
def make_assignment(course):
    def _make(weight, **kwargs):
        kwargs.setdefault("course", course)
        kwargs.setdefault("is_active", True)
        return baker.make("learning.Assignment", weight=weight, **kwargs)
    return _make
