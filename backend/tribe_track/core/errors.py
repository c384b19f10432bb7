"""
Error taxonomy for workout tracking.

- ValidationError: malformed payload, rejected before persistence
- TransientError: network or persistence unavailable, safe to retry
- ConflictError: share-state conflict, reported without retry
- NotFoundError: log or user does not exist
"""
from typing import Optional


class TrackError(Exception):
    """Base class for workout tracking errors."""

    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TrackError):
    """Payload failed a range or enum check."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class TransientError(TrackError):
    """Backend temporarily unavailable."""

    retryable = True


class ConflictError(TrackError):
    """Operation conflicts with the current share state."""


class NotFoundError(TrackError):
    """Requested log does not exist for this user."""
