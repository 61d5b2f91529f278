"""
Error types shared across AutoCoach services.
"""

from typing import Any, Optional


def get_error_message(err: Any) -> str:
    """Return the message of an exception, or the value as a string."""
    if isinstance(err, Exception):
        return str(err) if err.args else err.__class__.__name__
    return str(err)


class ApiRateLimitError(Exception):
    """Yahoo rejected the request because of rate limiting."""

    def __init__(self, message: str, status_code: int, retry_after: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
        self.retry_after = retry_after


class AuthorizationError(Exception):
    """Yahoo rejected the user's credentials."""

    def __init__(self, message: str, status_code: int, user_id: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.user_id = user_id


class HttpError(Exception):
    """Non-success HTTP response from an upstream API."""

    def __init__(self, message: str, status: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.status = status
        self.data = data


class YahooMaintenanceError(Exception):
    """Yahoo API is in read-only maintenance mode."""

    def __init__(self, message: str, retry_after_seconds: int = 8 * 60):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class RevokedRefreshTokenError(Exception):
    """The user revoked AutoCoach's access to their Yahoo account."""


class WeeklyTransactionsError(Exception):
    """Failure while scheduling or performing weekly league transactions."""

    def __init__(self, message: str, uid: Optional[str] = None, error: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.uid = uid
        self.error = error
