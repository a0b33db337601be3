"""Core components for CleanKit."""

from cleankit.core.config import CleanKitConfig
from cleankit.core.results import ProcessingResult, ValidationOutcome
from cleankit.core.stats import ProcessingStats
from cleankit.core.cancellation import CancellationToken
from cleankit.core.events import CleanKitEvent, EventBus
from cleankit.core.exceptions import (
    CleanKitError,
    ValidationError,
    FormatError,
    ProcessingTimeoutError,
    CapacityError,
    NotFoundError,
    ConfigurationError,
    CleaningError,
    OperationCancelled,
)
from cleankit.core.orchestrator import CleaningOrchestrator

__all__ = [
    "CleanKitConfig",
    "ProcessingResult",
    "ValidationOutcome",
    "ProcessingStats",
    "CancellationToken",
    "CleanKitEvent",
    "EventBus",
    "CleaningOrchestrator",
    "CleanKitError",
    "ValidationError",
    "FormatError",
    "ProcessingTimeoutError",
    "CapacityError",
    "NotFoundError",
    "ConfigurationError",
    "CleaningError",
    "OperationCancelled",
]
