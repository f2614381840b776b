import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError
from rest_framework.test import APIRequestFactory

from AcademicManagementApp.core.exceptions import (
    CapacityExceeded,
    Conflict,
    Unexpected,
    ValidationFailed,
    api_exception_handler,
    service_boundary,
)


def raising(exc):
    @service_boundary
    def operation():
        raise exc
    return operation


def test_domain_errors_pass_through():
    with pytest.raises(CapacityExceeded):
        raising(CapacityExceeded())()


def test_integrity_error_becomes_conflict():
    with pytest.raises(Conflict) as exc:
        raising(IntegrityError("UNIQUE constraint failed"))()
    assert isinstance(exc.value.__cause__, IntegrityError)


def test_django_validation_error_keeps_field_messages():
    with pytest.raises(ValidationFailed) as exc:
        raising(ValidationError({"credits": ["Too many."]}))()
    assert exc.value.kind == "Validation"
    assert exc.value.detail["credits"][0] == "Too many."


def test_anything_else_is_unexpected():
    with pytest.raises(Unexpected) as exc:
        raising(RuntimeError("database went away"))()
    assert exc.value.kind == "Unexpected"
    assert "database" not in str(exc.value.detail)
    assert isinstance(exc.value.__cause__, RuntimeError)


def test_handler_adds_kind():
    request = APIRequestFactory().get("/")
    response = api_exception_handler(CapacityExceeded(), {"request": request, "view": None})
    assert response.status_code == 409
    assert response.data == {"detail": "Course has reached maximum capacity.", "kind": "CapacityExceeded"}
