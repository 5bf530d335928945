"""Agora-specific exceptions for error handling."""


class AgoraError(Exception):
    """Base exception for all Agora operations."""
    pass


class AgoraAPIError(AgoraError):
    """HTTP error from the Agora Chat REST API.

    Attributes:
        status_code: HTTP status code
        message: Raw response body
        endpoint: API endpoint that failed
    """

    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"Agora API error: {status_code} - {message}")


class TokenFormatError(AgoraError, ValueError):
    """An access token string could not be parsed."""
    pass
