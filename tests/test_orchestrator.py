"""Tests for the CleaningOrchestrator."""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

import pytest

from cleankit.cleaning.registry import CleanerRegistry
from cleankit.core.events import NoOpEventBus
from cleankit.core.exceptions import (
    CleaningError,
    FormatError,
    NotFoundError,
    ProcessingTimeoutError,
    ValidationError,
)
from cleankit.core.orchestrator import CleaningOrchestrator


class TestOrchestratorInit:
    def test_default_init(self):
        orchestrator = CleaningOrchestrator()
        assert orchestrator.config.processing.default_cleaner == "text"
        assert orchestrator.get_stats() == {
            "processed": 0,
            "failed": 0,
            "total_time": 0.0,
            "avg_time": 0.0,
        }

    def test_dict_config(self):
        orchestrator = CleaningOrchestrator(config={"processing": {"timeout_seconds": 5}})
        assert orchestrator.config.processing.timeout_seconds == 5

    def test_lazy_registry(self):
        orchestrator = CleaningOrchestrator()
        assert orchestrator._registry is None
        assert "csv" in orchestrator.registry

    def test_stats_are_per_instance(self, mock_registry):
        first = CleaningOrchestrator(registry=mock_registry)
        second = CleaningOrchestrator(registry=mock_registry)
        first.process("x", "mock")
        assert first.stats.processed == 1
        assert second.stats.processed == 0


class TestOrchestratorProcess:
    def test_success_metadata(self, orchestrator):
        result = orchestrator.process("{a:1}", "json", {"minify": True})

        assert result.output == '{"a":1}'
        assert result.metadata["repaired"] is True
        assert result.metadata["cleaner"] == "json"
        assert result.metadata["process_id"].startswith("process_")
        assert result.metadata["processing_time"] >= 0
        assert "timestamp" in result.metadata
        assert result.metadata["stats"]["processed"] == 1

    def test_default_cleaner_used(self, orchestrator):
        result = orchestrator.process("  hello   world  ")
        assert result.metadata["cleaner"] == "text"
        assert result.output == "hello world"

    def test_stats_updated(self, mock_orchestrator):
        mock_orchestrator.process("a", "mock")
        mock_orchestrator.process("b", "mock")

        stats = mock_orchestrator.stats
        assert stats.processed == 2
        assert stats.failed == 0
        assert stats.avg_time == pytest.approx(stats.total_time / 2)

    def test_reset_stats(self, mock_orchestrator):
        mock_orchestrator.process("a", "mock")
        mock_orchestrator.reset_stats()
        assert mock_orchestrator.stats.processed == 0

    def test_snapshot_is_detached(self, mock_orchestrator):
        snapshot = mock_orchestrator.get_stats()
        mock_orchestrator.process("a", "mock")
        assert snapshot["processed"] == 0

    def test_configured_options_layered_under_call_options(self, mock_registry, mock_cleaner):
        orchestrator = CleaningOrchestrator(
            config={"cleaners": {"mock": {"upper": True}}},
            registry=mock_registry,
        )

        assert orchestrator.process("abc", "mock").output == "ABC"
        assert orchestrator.process("abc", "mock", {"upper": False}).output == "abc"
        assert mock_cleaner.received_options == [{"upper": True}, {"upper": False}]

    def test_configured_options_reach_builtin_cleaner(self, default_registry):
        orchestrator = CleaningOrchestrator(
            config={"cleaners": {"json": {"sort_keys": True, "minify": True}}},
            registry=default_registry,
        )
        assert orchestrator.process('{"b":1,"a":2}', "json").output == '{"a":2,"b":1}'

    def test_mapping_result_accepted(self):
        class DictCleaner:
            name = "dict"
            description = ""
            supported_extensions = ()
            default_options: Dict[str, Any] = {}

            def process(self, text, options=None, *, cancel_token=None):
                return {"output": text[::-1], "metadata": {"reversed": True}}

        registry = CleanerRegistry()
        registry.register("dict", DictCleaner())
        result = CleaningOrchestrator(registry=registry).process("abc", "dict")
        assert result.output == "cba"
        assert result.metadata["reversed"] is True

    def test_cleaner_info(self, orchestrator):
        info = orchestrator.get_cleaner_info("csv")
        assert info["id"] == "csv"
        assert info["default_options"]["delimiter"] == ","
        assert info["configured_options"] == {}


class TestOrchestratorFailures:
    def test_empty_input(self, mock_orchestrator):
        with pytest.raises(ValidationError, match="empty"):
            mock_orchestrator.process("", "mock")
        assert mock_orchestrator.stats.failed == 1

    def test_non_string_input(self, mock_orchestrator):
        with pytest.raises(ValidationError, match="must be a string"):
            mock_orchestrator.process(123, "mock")

    def test_oversized_input(self, mock_registry):
        orchestrator = CleaningOrchestrator(
            config={"processing": {"max_input_chars": 10}},
            registry=mock_registry,
        )
        with pytest.raises(ValidationError, match="too large"):
            orchestrator.process("x" * 11, "mock")

    def test_unknown_cleaner(self, mock_orchestrator):
        with pytest.raises(NotFoundError):
            mock_orchestrator.process("text", "missing")
        assert mock_orchestrator.stats.failed == 1

    def test_error_carries_context(self, orchestrator):
        with pytest.raises(FormatError) as exc_info:
            orchestrator.process("{{{", "json")

        context = exc_info.value.context
        assert context["cleaner"] == "json"
        assert context["input_length"] == 3
        assert context["process_id"].startswith("process_")
        assert "cleaner=json" in str(exc_info.value)

    def test_unexpected_error_wrapped(self, mock_orchestrator, mock_cleaner):
        mock_cleaner.fail_on("boom", RuntimeError("kaboom"))

        with pytest.raises(CleaningError, match="Text processing failed: kaboom") as exc_info:
            mock_orchestrator.process("boom", "mock")

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert mock_orchestrator.stats.failed == 1

    def test_failures_do_not_touch_time_totals(self, mock_orchestrator):
        with pytest.raises(ValidationError):
            mock_orchestrator.process("", "mock")
        assert mock_orchestrator.stats.total_time == 0.0
        assert mock_orchestrator.stats.processed == 0


class TestOrchestratorTimeout:
    def _orchestrator(self, cleaner, timeout: Optional[float] = 0.05):
        registry = CleanerRegistry()
        registry.register("slow", cleaner)
        return CleaningOrchestrator(
            config={"processing": {"timeout_seconds": timeout}},
            registry=registry,
        )

    def test_timeout_raised_once_and_counted_once(self, hanging_cleaner):
        orchestrator = self._orchestrator(hanging_cleaner)
        errors = []
        orchestrator.subscribe("process:error", errors.append)

        with pytest.raises(ProcessingTimeoutError, match="Processing timeout"):
            orchestrator.process("text", "slow")

        assert orchestrator.stats.failed == 1
        assert orchestrator.stats.processed == 0
        assert len(errors) == 1
        assert errors[0].payload["error_type"] == "ProcessingTimeoutError"

    def test_timeout_is_builtin_timeout_error(self, hanging_cleaner):
        orchestrator = self._orchestrator(hanging_cleaner)
        with pytest.raises(TimeoutError):
            orchestrator.process("text", "slow")

    def test_cleaner_sees_cancellation(self, hanging_cleaner):
        cleaner = hanging_cleaner
        orchestrator = self._orchestrator(cleaner)

        with pytest.raises(ProcessingTimeoutError):
            orchestrator.process("text", "slow")

        deadline = time.monotonic() + 2
        while not cleaner.saw_cancellation and time.monotonic() < deadline:
            time.sleep(0.01)
        assert cleaner.saw_cancellation

    def test_builtin_code_cleaner_on_hyphenated_text_stays_within_deadline(self):
        orchestrator = CleaningOrchestrator(config={"processing": {"timeout_seconds": 0.5}})
        text = "-".join(["word"] * 40) + "."

        started = time.monotonic()
        result = orchestrator.process(text, "code")
        elapsed = time.monotonic() - started

        assert elapsed < 1.0
        assert result.metadata["language"] == "plain"
        assert "".join(result.output.split()) == text

    def test_no_deadline_runs_inline(self, mock_cleaner):
        orchestrator = self._orchestrator(mock_cleaner, timeout=None)
        assert orchestrator.process(" ok ", "slow").output == "ok"


class TestOrchestratorEvents:
    def _collect(self, orchestrator):
        seen = []
        orchestrator.subscribe("*", lambda event: seen.append(event.event_type))
        return seen

    def test_success_emits_start_then_complete(self, mock_orchestrator):
        seen = self._collect(mock_orchestrator)
        mock_orchestrator.process("x", "mock")
        assert seen == ["process:start", "process:complete"]

    def test_cleaner_failure_emits_start_then_error(self, orchestrator):
        seen = self._collect(orchestrator)
        with pytest.raises(FormatError):
            orchestrator.process("{{{", "json")
        assert seen == ["process:start", "process:error"]

    def test_complete_payload_has_no_text(self, mock_orchestrator):
        events = []
        mock_orchestrator.subscribe("process:complete", events.append)
        mock_orchestrator.process("secret", "mock")

        payload = events[0].payload
        assert payload["text_length"] == 6
        assert "secret" not in str(events[0].to_dict())

    def test_failing_listener_ignored(self, mock_orchestrator):
        def explode(event):
            raise RuntimeError("listener bug")

        mock_orchestrator.subscribe("process:start", explode)
        assert mock_orchestrator.process(" x ", "mock").output == "x"

    def test_events_disabled(self, mock_registry):
        orchestrator = CleaningOrchestrator(
            config={"events": {"enabled": False}},
            registry=mock_registry,
        )
        seen = []
        orchestrator.subscribe("*", seen.append)
        orchestrator.process("x", "mock")

        assert isinstance(orchestrator.events, NoOpEventBus)
        assert seen == []
