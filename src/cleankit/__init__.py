"""
CleanKit - format-aware text cleaning.

Cleans CSV, JSON, source code, HTML and plain text through named cleaners,
one document at a time or in batches.

Basic usage:
    >>> from cleankit import CleaningOrchestrator
    >>> orchestrator = CleaningOrchestrator()
    >>> result = orchestrator.process('{"b":1,"a":2}', "json", {"sort_keys": True})
    >>> print(result.output)

Batches:
    >>> from cleankit import BatchCoordinator
    >>> coordinator = BatchCoordinator(orchestrator)
    >>> batch = coordinator.process_batch([("a.csv", "x, y\\n1, 2")], "csv")
    >>> batch.summary.successful_files
    1
"""

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from cleankit.core.config import CleanKitConfig
from cleankit.core.results import ProcessingResult, ValidationOutcome
from cleankit.core.exceptions import (
    CleanKitError,
    ValidationError,
    FormatError,
    ProcessingTimeoutError,
    CapacityError,
    NotFoundError,
    ConfigurationError,
    CleaningError,
)
from cleankit.core.orchestrator import CleaningOrchestrator
from cleankit.cleaning.registry import CleanerRegistry, create_default_registry
from cleankit.batch.coordinator import BatchCoordinator
from cleankit.batch.models import BatchItem, BatchResult
from cleankit.batch.export import export_results

__version__ = "0.1.0"

__all__ = [
    # Main classes
    "CleaningOrchestrator",
    "BatchCoordinator",
    "CleanerRegistry",
    "create_default_registry",
    # Config and results
    "CleanKitConfig",
    "ProcessingResult",
    "ValidationOutcome",
    "BatchItem",
    "BatchResult",
    "export_results",
    # Exceptions
    "CleanKitError",
    "ValidationError",
    "FormatError",
    "ProcessingTimeoutError",
    "CapacityError",
    "NotFoundError",
    "ConfigurationError",
    "CleaningError",
]
