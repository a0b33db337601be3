"""Export batch results as JSON, CSV or an archive manifest."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional, Set, Union

from cleankit.batch.models import BatchItemResult, BatchResult
from cleankit.cleaning.csv_cleaner import serialize_csv
from cleankit.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

CSV_HEADER = ["name", "status", "originalSize", "processedSize", "processingTime"]


def _default_filename(extension: str) -> str:
    return f"batch_{int(time.time() * 1000)}.{extension}"


def export_json(
    result: BatchResult,
    include_content: bool = False,
    pretty: bool = False,
) -> str:
    """
    Render a batch as a JSON document.

    Returns:
        ``{"metadata": {...}, "results": [...]}`` where ``results`` lists every
        attempted item in input order, failures included.
    """
    entries: List[Dict[str, Any]] = []
    for entry in result.ordered():
        if isinstance(entry, BatchItemResult):
            data: Dict[str, Any] = {
                "index": entry.index,
                "name": entry.name,
                "success": True,
                "size": entry.processed_size,
                "metadata": entry.metadata,
            }
            if include_content:
                data["content"] = entry.output
        else:
            data = {
                "index": entry.index,
                "name": entry.name,
                "success": False,
                "error": entry.error,
                "error_type": entry.error_type,
            }
        entries.append(data)

    document = {
        "metadata": {
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "export_format": "json",
            "batch_id": result.batch_id,
            "cleaner": result.cleaner,
            "total_files": result.total_items,
            "aborted": result.aborted,
            "summary": result.summary.to_dict(),
        },
        "results": entries,
    }
    return json.dumps(document, indent=2 if pretty else None, ensure_ascii=False, default=str)


def export_csv(result: BatchResult) -> str:
    """
    One row per attempted item, in input order. Times are ms with two decimals.

    The columns are fixed, so an aborted batch is only visible as missing
    rows for the items that were never attempted.
    """
    rows: List[List[Any]] = [CSV_HEADER]
    for entry in result.ordered():
        if isinstance(entry, BatchItemResult):
            rows.append(
                [
                    entry.name,
                    "Success",
                    entry.original_size,
                    entry.processed_size,
                    f"{entry.processing_time:.2f}",
                ]
            )
        else:
            rows.append([entry.name, "Failed", entry.original_size, 0, "0.00"])
    return serialize_csv(rows)


@dataclass
class ArchiveEntry:
    """A file to place in an archive."""

    path: str
    content: str

    @property
    def size(self) -> int:
        return len(self.content.encode("utf-8"))


@dataclass
class ArchiveManifest:
    """
    Everything needed to pack cleaned outputs into an archive.

    The manifest does not write any archive format itself; ``write_to``
    lays the files out in a directory for tools that pack them.
    """

    filename: str
    entries: List[ArchiveEntry] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    aborted: bool = False

    @property
    def file_count(self) -> int:
        return len(self.entries)

    @property
    def total_size(self) -> int:
        return sum(entry.size for entry in self.entries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": "zip",
            "filename": self.filename,
            "file_count": self.file_count,
            "total_size": self.total_size,
            "files": [entry.path for entry in self.entries],
            "failed": list(self.failed),
            "aborted": self.aborted,
        }

    def write_to(self, directory: Union[str, Path]) -> List[Path]:
        """Write every entry below ``directory``. Returns the written paths."""
        root = Path(directory)
        written: List[Path] = []
        for entry in self.entries:
            target = root / entry.path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(entry.content, encoding="utf-8")
            written.append(target)
        logger.debug(f"Wrote {len(written)} files to {root}")
        return written


def _unique_path(name: str, taken: Set[str]) -> str:
    # Only the final component is kept so entries stay inside the archive root
    candidate = PurePosixPath(name.replace("\\", "/")).name or "item"
    if candidate not in taken:
        return candidate
    stem, suffix = PurePosixPath(candidate).stem, PurePosixPath(candidate).suffix
    counter = 2
    while f"{stem}_{counter}{suffix}" in taken:
        counter += 1
    return f"{stem}_{counter}{suffix}"


def build_archive_manifest(
    result: BatchResult,
    filename: Optional[str] = None,
) -> ArchiveManifest:
    """
    Collect successful outputs into an ArchiveManifest.

    Entry paths are the item names, deduplicated with a numeric suffix
    (``a.csv``, ``a_2.csv``). Failed item names are listed separately and an
    aborted batch is flagged.
    """
    manifest = ArchiveManifest(
        filename=filename or _default_filename("zip"),
        aborted=result.aborted,
    )
    taken: Set[str] = set()
    for entry in result.ordered():
        if isinstance(entry, BatchItemResult):
            path = _unique_path(entry.name, taken)
            taken.add(path)
            manifest.entries.append(ArchiveEntry(path=path, content=entry.output))
        else:
            manifest.failed.append(entry.name)
    return manifest


def export_results(result: BatchResult, fmt: str = "zip", **kwargs: Any) -> Union[str, ArchiveManifest]:
    """
    Export a batch in the requested format.

    Args:
        result: Finished batch
        fmt: "json", "csv" or "zip"
        **kwargs: Passed to the format's exporter

    Raises:
        ValidationError: If the format is not supported
    """
    exporters = {
        "json": export_json,
        "csv": export_csv,
        "zip": build_archive_manifest,
    }
    exporter = exporters.get(fmt.lower())
    if exporter is None:
        raise ValidationError(f"Unsupported export format: {fmt}")
    return exporter(result, **kwargs)
