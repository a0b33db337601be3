"""BatchCoordinator - runs one cleaner over many named items."""

from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence

from cleankit.batch.models import (
    BatchItem,
    BatchItemError,
    BatchItemResult,
    BatchResult,
    BatchSummary,
    ItemInput,
    ProgressUpdate,
    coerce_items,
)
from cleankit.core.events import (
    BATCH_CHUNK_COMPLETE,
    BATCH_CHUNK_START,
    BATCH_COMPLETE,
    BATCH_PROGRESS,
    BATCH_START,
)
from cleankit.core.exceptions import CapacityError, CleanKitError, ValidationError

if TYPE_CHECKING:
    from cleankit.cleaning.base import OptionsInput
    from cleankit.core.config import BatchConfig
    from cleankit.core.orchestrator import CleaningOrchestrator

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressUpdate], None]
ChunkStartCallback = Callable[[int, int], None]
ChunkCompleteCallback = Callable[[int, int, BatchSummary], None]


def _new_batch_id() -> str:
    return f"batch_{uuid.uuid4().hex[:12]}"


class BatchCoordinator:
    """
    Sequential batch runner on top of a CleaningOrchestrator.

    Items are cleaned one at a time, in input order, through the
    orchestrator, so each item gets the same validation, deadline and stats
    accounting as a single call. One item failing never loses the results
    of the others; with ``continue_on_error=False`` the run stops at the
    first failure and the result is marked ``aborted``.

    Usage:
        >>> coordinator = BatchCoordinator(CleaningOrchestrator())
        >>> result = coordinator.process_batch(
        ...     [("a.json", '{"b":1}'), ("b.json", "[1,2]")], "json"
        ... )
        >>> result.summary.successful_files
        2
    """

    def __init__(
        self,
        orchestrator: CleaningOrchestrator,
        config: Optional[BatchConfig] = None,
    ):
        self.orchestrator = orchestrator
        self.config = config or orchestrator.config.batch

    @property
    def events(self):
        return self.orchestrator.events

    def validate_batch(self, items: Sequence[BatchItem]) -> None:
        """
        Check the batch against the configured ceilings.

        Raises:
            ValidationError: If there are no items
            CapacityError: If the item count or aggregate size is too large
        """
        if not items:
            raise ValidationError("No items to process")

        if len(items) > self.config.max_items:
            raise CapacityError(
                f"Too many items: {len(items)} (maximum {self.config.max_items})",
                context={"items": len(items)},
            )

        total_bytes = sum(item.byte_size for item in items if isinstance(item.content, str))
        if total_bytes > self.config.max_total_bytes:
            raise CapacityError(
                f"Total batch size {total_bytes} bytes exceeds maximum "
                f"{self.config.max_total_bytes} bytes",
                context={"total_bytes": total_bytes},
            )

    def process_batch(
        self,
        items: Sequence[ItemInput],
        cleaner_id: str,
        options: OptionsInput = None,
        *,
        continue_on_error: Optional[bool] = None,
        on_progress: Optional[ProgressCallback] = None,
        chunk_size: Optional[int] = None,
        on_chunk_start: Optional[ChunkStartCallback] = None,
        on_chunk_complete: Optional[ChunkCompleteCallback] = None,
    ) -> BatchResult:
        """
        Clean every item with one cleaner.

        Args:
            items: BatchItems, mappings or ``(name, content)`` tuples
            cleaner_id: Registry id of the cleaner to apply
            options: Options applied to every item
            continue_on_error: Keep going after a failing item (config default)
            on_progress: Called with a ProgressUpdate after every attempted item
            chunk_size: Process in sequential chunks of this many items
            on_chunk_start: Called with ``(chunk_number, total_chunks)``
            on_chunk_complete: Called with ``(chunk_number, total_chunks, summary)``

        Returns:
            BatchResult with per-item results, errors and a summary

        Raises:
            ValidationError: Empty batch or malformed items
            CapacityError: Batch over the configured ceilings
        """
        batch = coerce_items(items)
        self.validate_batch(batch)

        if continue_on_error is None:
            continue_on_error = self.config.continue_on_error
        if chunk_size is None:
            chunk_size = self.config.chunk_size
        if chunk_size is not None and chunk_size < 1:
            raise ValidationError(f"chunk_size must be positive, got {chunk_size}")

        result = BatchResult(
            batch_id=_new_batch_id(),
            cleaner=cleaner_id,
            total_items=len(batch),
        )
        total = len(batch)
        start = time.perf_counter()

        logger.info(f"Starting batch {result.batch_id}: {total} items with {cleaner_id}")
        self.events.emit(
            BATCH_START,
            batch_id=result.batch_id,
            cleaner=cleaner_id,
            total_items=total,
        )

        chunks = self._split(batch, chunk_size or total)
        chunked = chunk_size is not None
        attempted = 0

        for chunk_number, chunk in enumerate(chunks, start=1):
            if chunked:
                self._chunk_started(result, chunk_number, len(chunks), on_chunk_start)
            chunk_start = time.perf_counter()
            chunk_results: List[BatchItemResult] = []
            chunk_errors: List[BatchItemError] = []

            for item in chunk:
                outcome = self._process_item(item, cleaner_id, options)
                if isinstance(outcome, BatchItemResult):
                    result.results.append(outcome)
                    chunk_results.append(outcome)
                else:
                    result.errors.append(outcome)
                    chunk_errors.append(outcome)

                attempted += 1
                self._report_progress(result, attempted, total, on_progress)

                if not outcome.success and not continue_on_error:
                    result.aborted = True
                    break

            if chunked:
                chunk_summary = BatchSummary.build(
                    chunk_results,
                    chunk_errors,
                    (time.perf_counter() - chunk_start) * 1000,
                )
                self._chunk_completed(
                    result, chunk_number, len(chunks), chunk_summary, on_chunk_complete
                )

            if result.aborted:
                logger.warning(
                    f"Batch {result.batch_id} aborted after {attempted}/{total} items"
                )
                break

        result.total_time = (time.perf_counter() - start) * 1000
        result.summary = BatchSummary.build(result.results, result.errors, result.total_time)

        self.events.emit(
            BATCH_COMPLETE,
            batch_id=result.batch_id,
            cleaner=cleaner_id,
            successful=result.successful,
            failed=result.failed,
            aborted=result.aborted,
            total_time=result.total_time,
        )
        logger.info(
            f"Batch {result.batch_id} finished: {result.successful} succeeded, "
            f"{result.failed} failed in {result.total_time:.2f}ms"
        )
        return result

    def _process_item(
        self,
        item: BatchItem,
        cleaner_id: str,
        options: OptionsInput,
    ) -> Any:
        original_size = len(item.content) if isinstance(item.content, str) else 0
        try:
            processed = self.orchestrator.process(item.content, cleaner_id, options)
        except CleanKitError as e:
            e.with_context(item_index=item.index, item_name=item.name)
            logger.debug(f"Batch item {item.index} ({item.name}) failed: {e.message}")
            return BatchItemError(
                index=item.index,
                name=item.name,
                error=e.message,
                error_type=type(e).__name__,
                cleaner=cleaner_id,
                original_size=original_size,
            )

        return BatchItemResult(
            index=item.index,
            name=item.name,
            output=processed.output,
            original_size=original_size,
            processed_size=len(processed.output),
            processing_time=processed.processing_time,
            metadata=processed.metadata,
        )

    @staticmethod
    def _split(batch: List[BatchItem], size: int) -> List[List[BatchItem]]:
        return [batch[i : i + size] for i in range(0, len(batch), size)]

    def _report_progress(
        self,
        result: BatchResult,
        processed: int,
        total: int,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        update = ProgressUpdate.of(processed, total)
        self.events.emit(
            BATCH_PROGRESS,
            batch_id=result.batch_id,
            processed=update.processed,
            total=update.total,
            percentage=update.percentage,
        )
        if on_progress is not None:
            on_progress(update)

    def _chunk_started(
        self,
        result: BatchResult,
        chunk_number: int,
        total_chunks: int,
        callback: Optional[ChunkStartCallback],
    ) -> None:
        logger.debug(f"Batch {result.batch_id}: chunk {chunk_number}/{total_chunks}")
        self.events.emit(
            BATCH_CHUNK_START,
            batch_id=result.batch_id,
            chunk=chunk_number,
            total_chunks=total_chunks,
        )
        if callback is not None:
            callback(chunk_number, total_chunks)

    def _chunk_completed(
        self,
        result: BatchResult,
        chunk_number: int,
        total_chunks: int,
        summary: BatchSummary,
        callback: Optional[ChunkCompleteCallback],
    ) -> None:
        payload: Dict[str, Any] = summary.to_dict()
        self.events.emit(
            BATCH_CHUNK_COMPLETE,
            batch_id=result.batch_id,
            chunk=chunk_number,
            total_chunks=total_chunks,
            summary=payload,
        )
        if callback is not None:
            callback(chunk_number, total_chunks, summary)
