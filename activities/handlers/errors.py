"""Maps domain errors to HTTP responses.

Registered as REST_FRAMEWORK["EXCEPTION_HANDLER"]. Only the error code,
the user-safe message and declared details reach the client.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from activities.domain.errors import (
    AuthorizationError,
    DomainError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (StateConflictError, status.HTTP_409_CONFLICT),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
)


def domain_exception_handler(exc, context):
    if not isinstance(exc, DomainError):
        return exception_handler(exc, context)

    for error_type, http_status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            break
    else:
        http_status = status.HTTP_400_BAD_REQUEST

    logger.info("Request failed with %s (%s)", exc.code.value, http_status)
    body = {"code": exc.code.value, "message": exc.message, **exc.details()}
    return Response(body, status=http_status)
