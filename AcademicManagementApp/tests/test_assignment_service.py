import pytest

from AcademicManagementApp.core.exceptions import InvalidState, NotFound, PermissionDenied, ValidationFailed
from AcademicManagementApp.domain.services import assignment_service

pytestmark = pytest.mark.django_db


def create(actor, course, weight, **kwargs):
    return assignment_service.create_assignment(actor.id, course.id, f"Task {weight}", weight, **kwargs)


def test_weight_budget_on_create(lecturer, course):
    create(lecturer, course, 40)
    create(lecturer, course, 30)
    with pytest.raises(InvalidState):
        create(lecturer, course, 40)
    create(lecturer, course, 30)
    assert assignment_service.active_weight_total(course.id) == 100


def test_inactive_assignments_do_not_consume_budget(lecturer, course):
    create(lecturer, course, 100)
    parked = create(lecturer, course, 50, is_active=False)
    assert parked.pk
    assert assignment_service.active_weight_total(course.id) == 100


def test_update_excludes_own_weight(lecturer, course):
    first = create(lecturer, course, 60)
    create(lecturer, course, 40)
    assert assignment_service.update_assignment(lecturer.id, first.id, {"weight": 60}).weight == 60
    assert assignment_service.update_assignment(lecturer.id, first.id, {"weight": 50}).weight == 50
    with pytest.raises(InvalidState):
        assignment_service.update_assignment(lecturer.id, first.id, {"weight": 70})
    first.refresh_from_db()
    assert first.weight == 50


def test_reactivation_is_checked(lecturer, course):
    create(lecturer, course, 80)
    parked = create(lecturer, course, 30, is_active=False)
    with pytest.raises(InvalidState):
        assignment_service.update_assignment(lecturer.id, parked.id, {"is_active": True})
    revived = assignment_service.update_assignment(lecturer.id, parked.id, {"is_active": True, "weight": 20})
    assert revived.is_active and revived.weight == 20


def test_title_only_update_skips_budget(lecturer, course, make_assignment):
    # Baked rows bypass the budget check.
    over = make_assignment(70)
    make_assignment(70)
    renamed = assignment_service.update_assignment(lecturer.id, over.id, {"title": "Renamed"})
    assert renamed.title == "Renamed"


@pytest.mark.parametrize("weight", [-1, 101, "50", 12.5, True])
def test_weight_must_be_integer_percentage(weight, lecturer, course):
    with pytest.raises(ValidationFailed):
        create(lecturer, course, weight)


def test_only_course_owner_or_admin_manages(lecturer, other_lecturer, student, admin, course):
    with pytest.raises(PermissionDenied):
        create(other_lecturer, course, 10)
    with pytest.raises(PermissionDenied):
        create(student, course, 10)
    assignment = create(admin, course, 10)
    with pytest.raises(PermissionDenied):
        assignment_service.delete_assignment(other_lecturer.id, assignment.id)
    assignment_service.delete_assignment(lecturer.id, assignment.id)
    with pytest.raises(NotFound):
        assignment_service.delete_assignment(lecturer.id, assignment.id)


def test_update_rejects_unknown_fields(lecturer, course):
    assignment = create(lecturer, course, 10)
    with pytest.raises(ValidationFailed):
        assignment_service.update_assignment(lecturer.id, assignment.id, {"course": 5})


def test_list_for_course(lecturer, course):
    create(lecturer, course, 10)
    create(lecturer, course, 20, is_active=False)
    assert assignment_service.list_assignments_for_course(course.id).count() == 2
    assert assignment_service.list_assignments_for_course(course.id, active_only=True).count() == 1
    with pytest.raises(NotFound):
        assignment_service.list_assignments_for_course(course.id + 1000)


def test_update_is_logged(caplog, lecturer, course):
    assignment = create(lecturer, course, 10)
    with caplog.at_level("INFO", logger="AcademicManagementApp.domain.services.assignment_service"):
        assignment_service.update_assignment(lecturer.id, assignment.id, {"weight": 15, "title": "Quiz"})
    assert f"Assignment {assignment.pk} updated by user {lecturer.pk} (title, weight)" in caplog.text
