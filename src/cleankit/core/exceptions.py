"""Custom exceptions for CleanKit."""

from __future__ import annotations

from typing import Any, Dict, Optional


class CleanKitError(Exception):
    """
    Base exception for all CleanKit errors.

    Carries a ``context`` dict (process id, cleaner id, item index/name, ...)
    that is filled in as the error travels up through the orchestrator and
    the batch coordinator, and is rendered into ``str()`` so that a message
    alone is enough to localize the fault.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})

    def with_context(self, **context: Any) -> CleanKitError:
        """Attach context without overwriting keys that are already set."""
        for key, value in context.items():
            self.context.setdefault(key, value)
        return self

    def __str__(self) -> str:
        base = super().__str__()
        if self.context:
            details = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base} [{details}]"
        return base


class ValidationError(CleanKitError):
    """Raised when input violates a precondition (empty, oversized, bad options)."""

    pass


class FormatError(CleanKitError):
    """Raised when a cleaner cannot parse or restructure its input."""

    pass


class ProcessingTimeoutError(CleanKitError, TimeoutError):
    """Raised when an orchestrated cleaner call misses its deadline."""

    pass


class CapacityError(CleanKitError):
    """Raised when a batch exceeds the configured item or size ceilings."""

    pass


class NotFoundError(CleanKitError, LookupError):
    """Raised when an unknown cleaner id is requested."""

    pass


class ConfigurationError(CleanKitError):
    """Raised when configuration or cleaner registration is invalid."""

    pass


class CleaningError(CleanKitError):
    """Raised when a cleaner fails with an unexpected, non-library error."""

    pass


class OperationCancelled(CleanKitError):
    """Raised inside a cleaner when its cancellation token has been tripped."""

    pass
