"""
Errors raised by the API client.

ApiError means the server answered with an error status. ConnectivityError
means no answer arrived at all (DNS, refused connection, timeout); nothing
is assumed to have been committed, so it is safe to retry.
"""

from typing import Optional


class ClientError(Exception):
    """Base class for API client errors."""


class ApiError(ClientError):
    def __init__(self, status_code: int, message: str, code: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.code = code
        super().__init__(message)

    def __repr__(self) -> str:
        return f"ApiError(status_code={self.status_code}, code={self.code!r}, message={self.message!r})"


class ConnectivityError(ClientError):
    DEFAULT_MESSAGE = (
        "Cannot connect to server. Please check your internet connection "
        "and ensure the backend is running."
    )

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.DEFAULT_MESSAGE)


class NotAuthenticated(ClientError):
    """An authenticated call was made on a session without a token."""
