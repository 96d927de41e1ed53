# core/errors.py
"""
Error taxonomy for provider collection.

Every per-provider failure is raised as a UsageError subclass inside a
collector and converted into that provider's result by run_collector().
None of these ever escape a refresh.
"""


class UsageError(Exception):
    """Base class for failures that end up in a provider's result."""

    def __init__(self, message: str, hint: str = None):
        super().__init__(message)
        self.message = message
        self.hint = hint


class AuthError(UsageError):
    """Credential was rejected (expired token, revoked key)."""


class HttpError(UsageError):
    """Non-200 response, network failure or timeout."""

    def __init__(self, message: str, hint: str = None, status: int = None):
        super().__init__(message, hint)
        self.status = status


class ShapeError(UsageError):
    """200 response whose body is not the object we expected."""


class CacheCorruptError(Exception):
    """Cache file exists but cannot be used. Treated as a cache miss."""
