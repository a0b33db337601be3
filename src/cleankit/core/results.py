"""Result classes for CleanKit cleaning operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ProcessingResult:
    """
    Output of a single cleaner call.

    Attributes:
        output: The cleaned text. Always a string, even when empty.
        metadata: Cleaner-specific details. Always carries ``processing_time``
            (milliseconds); the orchestrator adds ``process_id``, ``cleaner``,
            ``timestamp`` and a ``stats`` snapshot on top.
    """

    output: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.output is None:
            self.output = ""
        self.metadata.setdefault("processing_time", 0.0)
        # Clamp clock jitter
        self.metadata["processing_time"] = max(0.0, float(self.metadata["processing_time"]))

    @property
    def processing_time(self) -> float:
        """Processing time in milliseconds."""
        return self.metadata["processing_time"]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "output": self.output,
            "metadata": self.metadata,
        }


@dataclass
class ValidationOutcome:
    """
    Soft validation result. Never raised; callers decide if it is fatal.

    Attributes:
        valid: Whether the input passed validation
        error: Human-readable reason when invalid
        row_count: Number of rows seen (CSV)
        column_count: Expected column count (CSV)
    """

    valid: bool
    error: Optional[str] = None
    row_count: Optional[int] = None
    column_count: Optional[int] = None

    def __bool__(self) -> bool:
        return self.valid

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary, leaving out unset fields."""
        data: Dict[str, Any] = {"valid": self.valid}
        if self.error is not None:
            data["error"] = self.error
        if self.row_count is not None:
            data["row_count"] = self.row_count
        if self.column_count is not None:
            data["column_count"] = self.column_count
        return data

    @classmethod
    def ok(cls, row_count: Optional[int] = None, column_count: Optional[int] = None) -> ValidationOutcome:
        """Create a passing outcome."""
        return cls(valid=True, row_count=row_count, column_count=column_count)

    @classmethod
    def failed(cls, error: str, **counts: Optional[int]) -> ValidationOutcome:
        """Create a failing outcome with a reason."""
        return cls(valid=False, error=error, **counts)
