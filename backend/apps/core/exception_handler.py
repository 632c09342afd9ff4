"""
Unified DRF exception handler.

Registered as REST_FRAMEWORK["EXCEPTION_HANDLER"]. Everything a view does not
catch ends up here and leaves as the same JSON shape:

    {"type": ..., "code": ..., "message": ..., "detail": [...]}

Never exposes stack traces or record contents to clients.
"""

import structlog
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from .exceptions import BaseAppException

logger = structlog.get_logger(__name__)

DRF_ERROR_CODES = {
    exceptions.ValidationError: ("VALIDATION_ERROR", "Input validation failed"),
    exceptions.ParseError: ("VALIDATION_ERROR", "Malformed request body"),
    exceptions.NotAuthenticated: ("NOT_AUTHENTICATED", "Authentication credentials were not provided"),
    exceptions.AuthenticationFailed: ("AUTHENTICATION_FAILED", "Invalid authentication credentials"),
    exceptions.PermissionDenied: ("PERMISSION_DENIED", "You do not have permission to perform this action"),
    exceptions.NotFound: ("NOT_FOUND", "Resource not found"),
    exceptions.MethodNotAllowed: ("METHOD_NOT_ALLOWED", "Method not allowed"),
}


def _flatten_detail(data):
    """
    DRF error payloads come as a dict of field -> messages, a list, or a
    plain string. Turn all of them into a flat list of strings.
    """
    detail = []
    if isinstance(data, dict):
        for field, messages in data.items():
            if isinstance(messages, (list, tuple)):
                for msg in messages:
                    detail.append(f"{field}: {msg}")
            elif isinstance(messages, dict):
                for sub in _flatten_detail(messages):
                    detail.append(f"{field}.{sub}")
            else:
                detail.append(f"{field}: {messages}")
    elif isinstance(data, (list, tuple)):
        detail = [str(item) for item in data]
    else:
        detail = [str(data)]
    return detail


def unified_exception_handler(exc, context):
    request = context.get("request")
    view = context.get("view")
    log_context = {
        "path": request.path if request else "unknown",
        "method": request.method if request else "unknown",
        "view": view.__class__.__name__ if view else "unknown",
    }

    # Case 1: our own exceptions
    if isinstance(exc, BaseAppException):
        logger.info(
            "app_exception",
            code=exc.code,
            http_status=exc.http_status,
            **log_context,
        )
        return Response(exc.to_dict(), status=exc.http_status)

    # Case 2: DRF knows the exception, wrap it in our format
    response = drf_exception_handler(exc, context)
    if response is not None:
        code, message = "API_ERROR", "Request could not be processed"
        for exc_class, mapped in DRF_ERROR_CODES.items():
            if isinstance(exc, exc_class):
                code, message = mapped
                break

        logger.warning(
            "api_exception",
            exception=exc.__class__.__name__,
            http_status=response.status_code,
            **log_context,
        )
        response.data = {
            "type": "error",
            "code": code,
            "message": message,
            "detail": _flatten_detail(response.data),
        }
        return response

    # Case 3: unknown error, log it and return a generic 500
    logger.exception("unexpected_error", **log_context)
    return Response(
        {
            "type": "error",
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
            "detail": [],
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
