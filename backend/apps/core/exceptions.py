"""
Application exception hierarchy.

Every business error raised by a service derives from BaseAppException.
The DRF exception handler only knows this base class and renders it as:

    {
        "type": "error",
        "code": "PRESCRIPTION_ALREADY_CLAIMED",
        "message": "Short human readable description",
        "detail": ["specific detail 1", "specific detail 2"]
    }

Services raise, views never catch.
"""


class BaseAppException(Exception):
    """Base class for every application error."""

    type = "error"
    code = "UNKNOWN_ERROR"
    http_status = 500
    message = "An unexpected error occurred"

    def __init__(self, message=None, detail=None, code=None):
        if message:
            self.message = message
        if code:
            self.code = code

        # detail is always a list so clients can iterate it
        if detail is None:
            self.detail = []
        elif isinstance(detail, str):
            self.detail = [detail]
        else:
            self.detail = list(detail)

        super().__init__(self.message)

    def to_dict(self):
        return {
            "type": self.type,
            "code": self.code,
            "message": self.message,
            "detail": self.detail,
        }


class AppValidationError(BaseAppException):
    """
    Input failed validation before any remote call was made.

    Named AppValidationError to avoid clashing with
    rest_framework.exceptions.ValidationError.
    """
    code = "VALIDATION_ERROR"
    http_status = 400
    message = "Input validation failed"


class AuthenticationFailedError(BaseAppException):
    """Bad credentials or role mismatch at login."""
    code = "AUTHENTICATION_FAILED"
    http_status = 401
    message = "Invalid email or password"


class PermissionDeniedError(BaseAppException):
    """The current actor may not perform this action."""
    code = "PERMISSION_DENIED"
    http_status = 403
    message = "You do not have permission to perform this action"


class NotFoundError(BaseAppException):
    code = "NOT_FOUND"
    http_status = 404
    message = "Resource not found"


class BlockError(BaseAppException):
    """
    A business rule blocks the operation.

    Examples: email already registered, prescription already claimed by
    another pharmacy, queue status change out of order.
    """
    code = "BUSINESS_BLOCK"
    http_status = 409
    message = "Operation blocked by business rules"


class RemoteServiceError(BaseAppException):
    """An external collaborator (pinning service, key-value store) failed."""
    code = "REMOTE_SERVICE_ERROR"
    http_status = 502
    message = "A remote service could not complete the request"
