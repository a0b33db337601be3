"""CleaningOrchestrator - wraps single cleaner calls."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional, Union

from cleankit.cleaning.base import CleanerOptions
from cleankit.core.cancellation import CancellationToken
from cleankit.core.config import CleanKitConfig
from cleankit.core.events import (
    PROCESS_COMPLETE,
    PROCESS_ERROR,
    PROCESS_START,
    CleanKitEvent,
    EventBus,
    create_event_bus,
)
from cleankit.core.exceptions import (
    CleaningError,
    CleanKitError,
    ProcessingTimeoutError,
    ValidationError,
)
from cleankit.core.results import ProcessingResult
from cleankit.core.stats import ProcessingStats

if TYPE_CHECKING:
    from cleankit.cleaning.base import Cleaner, OptionsInput
    from cleankit.cleaning.registry import CleanerRegistry

logger = logging.getLogger(__name__)


def _new_process_id() -> str:
    return f"process_{uuid.uuid4().hex[:12]}"


def _reduction(original: str, processed: str) -> str:
    if not original:
        return "0.00%"
    return f"{(len(original) - len(processed)) / len(original) * 100:.2f}%"


class CleaningOrchestrator:
    """
    Main entry point for single cleaning calls.

    Each call to ``process``:
    1. Validates the input (non-empty string under the size ceiling)
    2. Resolves the cleaner from the registry
    3. Runs it against the configured deadline
    4. Merges timing/context metadata and updates the running stats
    5. On failure, counts it and attaches context to the raised error

    Usage:
        >>> orchestrator = CleaningOrchestrator()
        >>> result = orchestrator.process('{"b": 1, "a": 2}', "json", {"sort_keys": True})
        >>> print(result.output)

    With custom config:
        >>> orchestrator = CleaningOrchestrator(config={"processing": {"timeout_seconds": 5}})
        >>> orchestrator = CleaningOrchestrator(config="path/to/config.yaml")

    Listening for lifecycle events:
        >>> orchestrator.subscribe("process:error", lambda event: print(event.payload))
    """

    def __init__(
        self,
        config: Optional[Union[CleanKitConfig, Dict[str, Any], str, Path]] = None,
        registry: Optional[CleanerRegistry] = None,
        event_bus: Optional[EventBus] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Configuration (CleanKitConfig, dict, path to YAML, or None for defaults)
            registry: Cleaner registry; the built-in cleaners when omitted
            event_bus: Bus for lifecycle events; a private one when omitted
        """
        self.config = CleanKitConfig.load(config)
        self._setup_logging()

        self.events = create_event_bus(self.config.events.enabled, event_bus)
        self._registry: Optional[CleanerRegistry] = registry
        self._stats = ProcessingStats()

    def _setup_logging(self) -> None:
        """Configure logging based on config."""
        level = getattr(logging, self.config.logging.level)
        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            if self.config.logging.format == "text"
            else '{"time": "%(asctime)s", "name": "%(name)s", "level": "%(levelname)s", "message": "%(message)s"}',
        )

    @property
    def registry(self) -> CleanerRegistry:
        """Get or create the cleaner registry."""
        if self._registry is None:
            from cleankit.cleaning.registry import create_default_registry

            self._registry = create_default_registry()
        return self._registry

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def get_stats(self) -> Dict[str, Any]:
        """Detached copy of the running totals."""
        return self._stats.snapshot()

    def reset_stats(self) -> None:
        self._stats.reset()

    def subscribe(
        self, event_type: str, listener: Callable[[CleanKitEvent], None]
    ) -> Callable[[], None]:
        """Register a lifecycle listener. Returns an unsubscribe callable."""
        return self.events.subscribe(event_type, listener)

    def validate_input(self, text: Any) -> None:
        """
        Check the input preconditions.

        Raises:
            ValidationError: If text is not a string, is empty, or is too large
        """
        if not isinstance(text, str):
            raise ValidationError(f"Input must be a string, got {type(text).__name__}")
        if len(text) == 0:
            raise ValidationError("Input cannot be empty")
        limit = self.config.processing.max_input_chars
        if len(text) > limit:
            raise ValidationError(
                f"Input too large: {len(text)} characters (maximum {limit})"
            )

    def process(
        self,
        text: str,
        cleaner_id: Optional[str] = None,
        options: OptionsInput = None,
    ) -> ProcessingResult:
        """
        Clean text with a registered cleaner.

        Args:
            text: Input text
            cleaner_id: Registry id; ``processing.default_cleaner`` when omitted
            options: Option overrides (mapping or the cleaner's options model)

        Returns:
            ProcessingResult with orchestration metadata merged in

        Raises:
            ValidationError: Input or options rejected
            NotFoundError: Unknown cleaner id
            FormatError: The cleaner could not parse the input
            ProcessingTimeoutError: The deadline expired
            CleaningError: The cleaner failed unexpectedly
        """
        cleaner_id = cleaner_id or self.config.processing.default_cleaner
        process_id = _new_process_id()
        input_length = len(text) if isinstance(text, str) else 0
        start = time.perf_counter()

        logger.info(f"Processing text with {cleaner_id} [{process_id}] ({input_length} chars)")

        try:
            self.validate_input(text)
            cleaner = self.registry.get(cleaner_id)
            merged = self._merge_options(cleaner_id, options)

            self.events.emit(
                PROCESS_START,
                process_id=process_id,
                cleaner=cleaner_id,
                text_length=input_length,
            )

            result = self._run_with_deadline(cleaner, text, merged, process_id)
        except CleanKitError as e:
            self._record_failure(e, process_id, cleaner_id, input_length)
            raise
        except Exception as e:
            error = CleaningError(f"Text processing failed: {e}")
            self._record_failure(error, process_id, cleaner_id, input_length)
            raise error from e

        processing_time = (time.perf_counter() - start) * 1000
        self._stats.record_success(processing_time)

        metadata = {
            **result.metadata,
            "process_id": process_id,
            "cleaner": cleaner_id,
            "processing_time": processing_time,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "stats": self._stats.snapshot(),
        }

        self.events.emit(
            PROCESS_COMPLETE,
            process_id=process_id,
            cleaner=cleaner_id,
            text_length=input_length,
            result_length=len(result.output),
            processing_time=processing_time,
            success=True,
        )
        logger.info(
            f"Processing completed [{process_id}] in {processing_time:.2f}ms "
            f"(reduction {_reduction(text, result.output)})"
        )

        return ProcessingResult(output=result.output, metadata=metadata)

    def _merge_options(self, cleaner_id: str, options: OptionsInput) -> OptionsInput:
        """Layer call options over the per-cleaner defaults from config."""
        if isinstance(options, CleanerOptions):
            return options
        configured = self.config.cleaner_defaults(cleaner_id)
        if options is None:
            return configured or None
        if not isinstance(options, Mapping):
            raise ValidationError(f"Options must be a mapping, got {type(options).__name__}")
        return {**configured, **options}

    def _run_with_deadline(
        self,
        cleaner: Cleaner,
        text: str,
        options: OptionsInput,
        process_id: str,
    ) -> ProcessingResult:
        """
        Run the cleaner, racing it against ``processing.timeout_seconds``.

        The cleaner runs on a daemon worker thread while this thread waits.
        On expiry the call's token is cancelled and ProcessingTimeoutError is
        raised; a cleaner that does not poll the token is abandoned, not
        stopped.
        """
        timeout = self.config.processing.timeout_seconds
        token = CancellationToken()

        if timeout is None:
            return self._coerce_result(cleaner.process(text, options, cancel_token=token))

        outcome: Dict[str, Any] = {}

        def _target() -> None:
            try:
                outcome["result"] = cleaner.process(text, options, cancel_token=token)
            except Exception as e:
                outcome["error"] = e

        worker = threading.Thread(target=_target, daemon=True, name=f"cleankit-{process_id}")
        worker.start()
        worker.join(timeout)

        if worker.is_alive():
            token.cancel("deadline exceeded")
            logger.debug(f"Abandoning cleaner thread for {process_id} after timeout")
            raise ProcessingTimeoutError(f"Processing timeout after {timeout:g}s")

        if "error" in outcome:
            raise outcome["error"]
        return self._coerce_result(outcome.get("result"))

    @staticmethod
    def _coerce_result(result: Any) -> ProcessingResult:
        if isinstance(result, ProcessingResult):
            return result
        if isinstance(result, Mapping) and isinstance(result.get("output"), str):
            return ProcessingResult(
                output=result["output"],
                metadata=dict(result.get("metadata") or {}),
            )
        raise CleaningError(
            f"Cleaner returned {type(result).__name__}, expected ProcessingResult"
        )

    def _record_failure(
        self,
        error: CleanKitError,
        process_id: str,
        cleaner_id: str,
        input_length: int,
    ) -> None:
        self._stats.record_failure()
        error.with_context(
            process_id=process_id,
            cleaner=cleaner_id,
            input_length=input_length,
        )

        self.events.emit(
            PROCESS_ERROR,
            process_id=process_id,
            cleaner=cleaner_id,
            text_length=input_length,
            error=error.message,
            error_type=type(error).__name__,
        )
        logger.error(f"Processing failed [{process_id}] ({cleaner_id}): {error.message}")

    def get_cleaner_info(self, cleaner_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Describe a registered cleaner.

        Returns:
            Descriptor dict plus the option overrides configured for it
        """
        cleaner_id = cleaner_id or self.config.processing.default_cleaner
        info = self.registry.descriptor(cleaner_id).to_dict()
        info["configured_options"] = self.config.cleaner_defaults(cleaner_id)
        return info
