"""Callable error taxonomy.

Each error maps to the status string and HTTP code of the callable wire
protocol: ``{"error": {"status": "...", "message": "..."}}``.
"""


class CallableError(Exception):
    """Error returned to the caller with a caller-safe message."""

    status = "INTERNAL"
    http_status = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to callable error response format."""
        return {"error": {"status": self.status, "message": self.message}}


class Unauthenticated(CallableError):
    status = "UNAUTHENTICATED"
    http_status = 401


class NotFound(CallableError):
    status = "NOT_FOUND"
    http_status = 404


class InvalidArgument(CallableError):
    status = "INVALID_ARGUMENT"
    http_status = 400


class Internal(CallableError):
    status = "INTERNAL"
    http_status = 500
