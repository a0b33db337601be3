"""Running statistics for an orchestrator instance."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass
class ProcessingStats:
    """
    Running totals for one CleaningOrchestrator.

    Owned by exactly one orchestrator and only mutated from the thread that
    calls ``CleaningOrchestrator.process``. Sharing an instance between
    orchestrators that run concurrently would need a lock around ``record_*``.

    Attributes:
        processed: Number of successful calls
        failed: Number of failed calls (validation, lookup, timeout, format)
        total_time: Sum of successful call durations in milliseconds
        avg_time: ``total_time / processed``
    """

    processed: int = 0
    failed: int = 0
    total_time: float = 0.0
    avg_time: float = 0.0

    def record_success(self, duration_ms: float) -> None:
        self.processed += 1
        self.total_time += max(0.0, duration_ms)
        self.avg_time = self.total_time / self.processed

    def record_failure(self) -> None:
        self.failed += 1

    def reset(self) -> None:
        self.processed = 0
        self.failed = 0
        self.total_time = 0.0
        self.avg_time = 0.0

    def snapshot(self) -> Dict[str, Any]:
        """Return a detached copy of the current totals."""
        return asdict(self)
