"""
Error taxonomy for the API.

Services raise these; a single handler in main.py turns them into
{"error": ..., "message": ...} responses with the matching status code.
"""
from typing import Dict, List, Optional


class ApiError(Exception):
    """Base class for errors that are reported to the caller."""
    status_code = 500
    error = "Internal server error"
    default_message = "An unexpected error occurred"
    headers: Optional[Dict[str, str]] = None

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None):
        self.message = message or self.default_message
        if error:
            self.error = error
        super().__init__(self.message)

    def to_dict(self) -> Dict:
        return {"error": self.error, "message": self.message}


class ValidationError(ApiError):
    """Malformed or out-of-range input, reported field by field."""
    status_code = 400
    error = "Validation error"
    default_message = "Invalid request data"

    def __init__(self, details: List[Dict[str, str]], message: Optional[str] = None):
        self.details = details
        super().__init__(message)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])

    def to_dict(self) -> Dict:
        body = super().to_dict()
        body["details"] = self.details
        return body


class InvalidCredentials(ApiError):
    """Login failed. Deliberately the same for unknown email and wrong password."""
    status_code = 401
    error = "Invalid credentials"
    default_message = "Email or password is incorrect"


class Unauthenticated(ApiError):
    status_code = 401
    error = "Access denied"
    default_message = "Authentication required"


class Forbidden(ApiError):
    status_code = 403
    error = "Access denied"
    default_message = "You do not have permission to perform this action"


class NotFound(ApiError):
    status_code = 404
    error = "Not found"
    default_message = "The requested resource does not exist"


class Conflict(ApiError):
    status_code = 409
    error = "Conflict"
    default_message = "The request conflicts with the current state of the resource"


class TooManyRequests(ApiError):
    status_code = 429
    error = "Too many requests"
    default_message = "Too many requests from this IP, please try again later."

    def __init__(self, retry_after: int, message: Optional[str] = None):
        self.headers = {"Retry-After": str(retry_after)}
        super().__init__(message)


class InternalError(ApiError):
    pass
