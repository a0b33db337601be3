"""Batch processing and result export."""

from cleankit.batch.coordinator import BatchCoordinator
from cleankit.batch.export import (
    ArchiveEntry,
    ArchiveManifest,
    build_archive_manifest,
    export_csv,
    export_json,
    export_results,
)
from cleankit.batch.models import (
    BatchItem,
    BatchItemError,
    BatchItemResult,
    BatchResult,
    BatchSummary,
    ProgressUpdate,
)

__all__ = [
    "BatchCoordinator",
    "BatchItem",
    "BatchItemResult",
    "BatchItemError",
    "BatchResult",
    "BatchSummary",
    "ProgressUpdate",
    "ArchiveEntry",
    "ArchiveManifest",
    "build_archive_manifest",
    "export_csv",
    "export_json",
    "export_results",
]
