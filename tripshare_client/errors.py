"""Errors raised by the API client."""
from typing import Any, Optional

NETWORK_ERROR_MESSAGE = 'Network error. Please check your connection.'
DEFAULT_ERROR_MESSAGE = 'An error occurred'


class ClientError(Exception):
    """Base class for everything the client raises."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ApiError(ClientError):
    """
    The server answered with an error status.

    ``message`` is the backend's own text and is meant to be shown to the
    user as-is.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload

    @classmethod
    def from_response(cls, response):
        try:
            payload = response.json()
        except ValueError:
            payload = None
        message = None
        if isinstance(payload, dict):
            message = payload.get('message')
        return cls(message or DEFAULT_ERROR_MESSAGE, response.status_code, payload)

    def __repr__(self):
        return f'{type(self).__name__}({self.message!r}, status_code={self.status_code})'


class SessionExpired(ApiError):
    """The refresh token was rejected; the stored session has been cleared."""


class NetworkError(ClientError):
    """No response was received."""

    def __init__(self, message: str = NETWORK_ERROR_MESSAGE):
        super().__init__(message)
