"""Custom exceptions for the companion cache.

The policy functions are total over well-typed inputs and never raise these.
Services raise them when an operation needs state that is not there; store
I/O errors are not wrapped and reach the caller unchanged.
"""

from __future__ import annotations

from typing import Any


class CompanionCacheError(Exception):
    """Base exception for the companion cache.

    All custom exceptions inherit from this class so callers can catch
    library errors in one place.
    """

    def __init__(self, error: str, message: str) -> None:
        self.error = error
        self.message = message
        super().__init__(message)


class EntryNotFoundError(CompanionCacheError):
    """Raised when an operation requires an entry that does not exist.

    Repositories return ``None`` for missing ids; services that must mutate
    an existing entry raise this instead, leaving the caller to decide
    whether a missing entry is an empty result or a failure.
    """

    def __init__(self, kind: str, identifier: Any) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(
            error="NOT_FOUND",
            message=f"{kind} with identifier '{identifier}' not found",
        )


class InvalidStateError(CompanionCacheError):
    """Raised when a component is used in a state it cannot operate in.

    Inconsistent entry flags are repaired at validation time and never
    surface as this error.
    """

    def __init__(self, message: str) -> None:
        super().__init__(error="INVALID_STATE", message=message)


class StoreError(CompanionCacheError):
    """Raised when a stored document cannot be decoded into a model."""

    def __init__(self, kind: str, key: str, reason: str) -> None:
        self.kind = kind
        self.key = key
        super().__init__(
            error="STORE_ERROR",
            message=f"Invalid {kind} document '{key}': {reason}",
        )
