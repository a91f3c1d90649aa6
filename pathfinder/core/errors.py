"""
Service-level errors, converted to JSON responses by the handlers in main.
"""


class AppError(Exception):
    status_code = 500
    error_type = "internal_error"

    def __init__(self, message: str = "An internal error occurred"):
        super().__init__(message)
        self.message = message


class InvalidInput(AppError):
    """Missing or malformed request fields."""

    status_code = 400
    error_type = "invalid_input"


class NotFound(AppError):
    status_code = 404
    error_type = "not_found"


class Internal(AppError):
    """Persistence or unexpected failure; the request is aborted."""
