"""
Error taxonomy for redbloom.

Every failure surfaced by the filter engine is a RedbloomError subclass so
callers can catch the whole family or pick out a single case.
"""

from typing import Any


class RedbloomError(Exception):
    """Base class for all redbloom errors."""


class InvalidParameterError(RedbloomError, ValueError):
    """Raised when creation parameters fail local validation (no I/O done)."""

    def __init__(self, field: str, message: str, value: Any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"{field}: {message}")

    def to_dict(self) -> dict:
        """Convert to error response format."""
        return {
            "error": "invalid_parameter",
            "field": self.field,
            "message": self.message,
        }


class AlreadyExistsError(RedbloomError):
    """Raised when creating a filter under a name that is already taken."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Bloom filter '{name}' already exists")


class NotFoundError(RedbloomError):
    """Raised when restoring a filter that has no metadata record."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Bloom filter '{name}' does not exist")


class StorageError(RedbloomError):
    """Raised when the Redis store fails (transport or command error)."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation} failed: {message}")


class RestoreError(RedbloomError):
    """Raised when a metadata record exists but cannot be parsed."""

    def __init__(self, name: str, field: str, message: str):
        self.name = name
        self.field = field
        super().__init__(f"Cannot restore '{name}' ({field}): {message}")


class HashExhaustedError(RedbloomError, RuntimeError):
    """Raised when rejection sampling hits its attempt ceiling."""

    def __init__(self, attempts: int, accepted: int, wanted: int):
        self.attempts = attempts
        self.accepted = accepted
        self.wanted = wanted
        super().__init__(
            f"Hash generation gave up after {attempts} attempts "
            f"({accepted}/{wanted} positions accepted)"
        )
