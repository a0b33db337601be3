"""Data classes for batch runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from cleankit.core.exceptions import ValidationError


@dataclass
class BatchItem:
    """
    One named input of a batch.

    Attributes:
        index: Position in the submitted batch
        name: Display name (usually a file name)
        content: Text to clean
        size: Size in bytes as reported by the source, if known
        last_modified: Source modification time, if known
    """

    index: int
    name: str
    content: str
    size: Optional[int] = None
    last_modified: Optional[Union[int, float, str]] = None

    @property
    def byte_size(self) -> int:
        """Reported size, else the UTF-8 length of the content."""
        if self.size is not None:
            return self.size
        return len(self.content.encode("utf-8"))


ItemInput = Union[BatchItem, Mapping[str, Any], Tuple[str, str]]


def coerce_items(items: Sequence[ItemInput]) -> List[BatchItem]:
    """
    Normalize batch input into index-tagged BatchItems.

    Accepts BatchItem objects, mappings with ``name``/``content`` (plus
    optional ``size``/``last_modified``), or ``(name, content)`` tuples.
    Indexes always follow the input order.
    """
    coerced: List[BatchItem] = []
    for index, item in enumerate(items):
        if isinstance(item, BatchItem):
            coerced.append(
                BatchItem(index, item.name, item.content, item.size, item.last_modified)
            )
        elif isinstance(item, Mapping):
            if "content" not in item:
                raise ValidationError(f"Batch item {index} has no content")
            coerced.append(
                BatchItem(
                    index=index,
                    name=str(item.get("name") or f"item_{index}"),
                    content=item["content"],
                    size=item.get("size"),
                    last_modified=item.get("last_modified", item.get("lastModified")),
                )
            )
        elif isinstance(item, tuple) and len(item) == 2:
            coerced.append(BatchItem(index=index, name=str(item[0]), content=item[1]))
        else:
            raise ValidationError(
                f"Batch item {index} must be a BatchItem, mapping or (name, content) tuple"
            )
    return coerced


@dataclass
class BatchItemResult:
    """A successfully cleaned batch item."""

    index: int
    name: str
    output: str
    original_size: int
    processed_size: int
    processing_time: float
    metadata: Dict[str, Any] = field(default_factory=dict)
    success: bool = True

    def to_dict(self, include_content: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "index": self.index,
            "name": self.name,
            "success": True,
            "original_size": self.original_size,
            "processed_size": self.processed_size,
            "processing_time": round(self.processing_time, 4),
            "metadata": self.metadata,
        }
        if include_content:
            data["output"] = self.output
        return data


@dataclass
class BatchItemError:
    """A batch item whose cleaning failed."""

    index: int
    name: str
    error: str
    error_type: str
    cleaner: str
    original_size: int = 0
    success: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "name": self.name,
            "success": False,
            "error": self.error,
            "error_type": self.error_type,
            "cleaner": self.cleaner,
            "original_size": self.original_size,
        }


@dataclass
class ProgressUpdate:
    """Progress after one item; ``percentage`` reaches 100 only when done."""

    processed: int
    total: int
    percentage: float

    @classmethod
    def of(cls, processed: int, total: int) -> ProgressUpdate:
        percentage = 100.0 if processed >= total else processed * 100 / total
        return cls(processed=processed, total=total, percentage=percentage)


@dataclass
class BatchSummary:
    """Aggregate figures for a batch run. Sizes are in characters, times in ms."""

    total_files: int = 0
    successful_files: int = 0
    failed_files: int = 0
    total_size: int = 0
    total_processed_size: int = 0
    size_reduction: float = 0.0
    average_processing_time: float = 0.0
    total_batch_time: float = 0.0
    efficiency: float = 0.0

    @classmethod
    def build(
        cls,
        results: Sequence[BatchItemResult],
        errors: Sequence[BatchItemError],
        total_time: float,
    ) -> BatchSummary:
        total_size = sum(r.original_size for r in results)
        processed_size = sum(r.processed_size for r in results)
        item_time = sum(r.processing_time for r in results)
        return cls(
            total_files=len(results) + len(errors),
            successful_files=len(results),
            failed_files=len(errors),
            total_size=total_size,
            total_processed_size=processed_size,
            size_reduction=(total_size - processed_size) / total_size * 100 if total_size else 0.0,
            average_processing_time=item_time / len(results) if results else 0.0,
            total_batch_time=total_time,
            efficiency=item_time / total_time if total_time > 0 else 0.0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_files": self.total_files,
            "successful_files": self.successful_files,
            "failed_files": self.failed_files,
            "total_size": self.total_size,
            "total_processed_size": self.total_processed_size,
            "size_reduction": round(self.size_reduction, 4),
            "average_processing_time": round(self.average_processing_time, 4),
            "total_batch_time": round(self.total_batch_time, 4),
            "efficiency": round(self.efficiency, 4),
        }


@dataclass
class BatchResult:
    """
    Outcome of a batch run.

    ``results`` and ``errors`` are each in processing order and every entry
    keeps its input ``index``; ``ordered()`` merges them back into input
    order. When ``aborted`` is set the batch stopped at the first failure,
    so ``successful + failed`` can be below ``total_items``.
    """

    batch_id: str
    cleaner: str
    total_items: int
    results: List[BatchItemResult] = field(default_factory=list)
    errors: List[BatchItemError] = field(default_factory=list)
    summary: BatchSummary = field(default_factory=BatchSummary)
    aborted: bool = False
    total_time: float = 0.0

    @property
    def successful(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return len(self.errors)

    @property
    def success(self) -> bool:
        return not self.errors and not self.aborted

    def ordered(self) -> List[Union[BatchItemResult, BatchItemError]]:
        """All attempted items in input order."""
        entries: List[Union[BatchItemResult, BatchItemError]] = [*self.results, *self.errors]
        return sorted(entries, key=lambda entry: entry.index)

    def to_dict(self, include_content: bool = True) -> Dict[str, Any]:
        return {
            "batch_id": self.batch_id,
            "cleaner": self.cleaner,
            "total_items": self.total_items,
            "successful": self.successful,
            "failed": self.failed,
            "aborted": self.aborted,
            "total_time": round(self.total_time, 4),
            "results": [r.to_dict(include_content) for r in self.results],
            "errors": [e.to_dict() for e in self.errors],
            "summary": self.summary.to_dict(),
        }
