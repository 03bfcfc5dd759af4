"""Strava API exceptions.

Every subclass means the upstream fetch failed and nothing was written;
the sync can be retried later.
"""


class StravaException(Exception):
    """Base exception for Strava API errors."""

    pass


class ObjectNotFound(StravaException):
    """Raised when a requested object is not found (404)."""

    pass


class AccessUnauthorized(StravaException):
    """Raised when the access token is missing, expired or revoked (401)."""

    pass


class RateLimitExceeded(StravaException):
    """Raised when the 15-minute or daily request budget is spent."""

    pass


class MalformedPayload(StravaException):
    """Raised when a response does not have the shape we expect."""

    pass
