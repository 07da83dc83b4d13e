"""Errors raised by the JustLog stores."""


class JustLogError(Exception):
    """Base exception for JustLog store operations."""


class NotFound(JustLogError):
    """Raised when no matching credential or entry exists."""


class Corrupt(JustLogError):
    """Raised when a stored record does not have the expected shape."""


class ValidationError(JustLogError):
    """Raised when a caller supplies an incomplete or invalid entry."""


class StoreUnavailable(JustLogError):
    """Raised when DynamoDB fails or cannot be reached."""


class Conflict(JustLogError):
    """Raised when a write would replace a record that must not change."""
