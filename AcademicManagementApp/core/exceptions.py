"""Domain error kinds raised by the service layer, and the boundary that normalises everything else.

Every error is a DRF ``APIException`` so views can let it propagate untouched;
``kind`` names the failure independently of the transport status code.
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class AcademicError(APIException):
    """Base class for all domain failures."""
    kind = "Unexpected"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Unexpected error."
    default_code = "unexpected"


class NotFound(AcademicError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class PermissionDenied(AcademicError):
    kind = "PermissionDenied"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action."
    default_code = "permission_denied"


class InvalidState(AcademicError):
    kind = "InvalidState"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Operation not allowed in the current state."
    default_code = "invalid_state"


class Conflict(AcademicError):
    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists."
    default_code = "conflict"


class CapacityExceeded(AcademicError):
    kind = "CapacityExceeded"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Course has reached maximum capacity."
    default_code = "capacity_exceeded"


class ValidationFailed(AcademicError):
    kind = "Validation"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Validation failed."
    default_code = "validation"


class Unexpected(AcademicError):
    """Wraps any non-domain failure; the message never carries internals."""


def service_boundary(func: F) -> F:
    """Re-raise non-domain failures of a service call as a domain error kind.

    IntegrityError maps to Conflict (unique constraints are the storage-level
    backstop for duplicate rows), Django's ValidationError to ValidationFailed,
    and anything else to Unexpected with the original chained as __cause__.
    """
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except AcademicError:
            raise
        except IntegrityError as exc:
            logger.warning("Integrity violation in %s: %s", func.__qualname__, exc)
            raise Conflict() from exc
        except DjangoValidationError as exc:
            raise ValidationFailed(_flatten(exc)) from exc
        except Exception as exc:
            logger.exception("Unexpected failure in %s", func.__qualname__)
            raise Unexpected() from exc
    return wrapper  # type: ignore[return-value]


def _flatten(exc: DjangoValidationError) -> Any:
    if hasattr(exc, "error_dict"):
        return exc.message_dict
    return exc.messages


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """DRF exception handler adding the domain ``kind`` to error bodies."""
    response = exception_handler(exc, context)
    if response is not None and isinstance(exc, AcademicError):
        data = response.data if isinstance(response.data, dict) else {"detail": response.data}
        data["kind"] = exc.kind
        response.data = data
    return response
