"""
Exceptions for kopendata operations.
"""

from typing import Optional


class OpenDataError(Exception):
    """Base exception for open-data access errors."""

    retryable = False


class ConfigurationError(OpenDataError):
    """Invalid or incomplete client configuration."""

    pass


class AuthenticationError(OpenDataError):
    """Missing API key or service key."""

    pass


class NetworkError(OpenDataError):
    """Transport-level failure talking to an upstream API."""

    retryable = True


class RequestTimeoutError(NetworkError):
    """Upstream did not answer within the configured timeout."""

    pass


class UpstreamStatusError(OpenDataError):
    """Upstream answered with a non-success HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        if self.status_code is None:
            return False
        return self.status_code >= 500 or self.status_code == 429


class ParseError(OpenDataError):
    """Malformed JSON or XML payload."""

    pass


class ValidationError(OpenDataError):
    """Caller-supplied input is missing or invalid."""

    pass


class StationNotFoundError(OpenDataError):
    """No snapshot record with a usable value exists for a station code."""

    pass
