"""Shared test fixtures for CleanKit."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from cleankit.cleaning.registry import CleanerRegistry, create_default_registry
from cleankit.core.cancellation import CancellationToken
from cleankit.core.config import CleanKitConfig
from cleankit.core.orchestrator import CleaningOrchestrator
from cleankit.core.results import ProcessingResult


class MockCleaner:
    """Mock cleaner with controllable behavior.

    Strips its input by default (upper-cases it with ``upper=True``). Inputs
    registered with ``fail_on`` raise the given exception instead, which
    lets batch tests pick exactly which item fails.
    """

    name = "Mock Cleaner"
    description = "Deterministic cleaner for tests"
    supported_extensions = (".mock",)

    def __init__(self) -> None:
        self.calls: List[str] = []
        self.received_options: List[Any] = []
        self._failures: Dict[str, Exception] = {}

    @property
    def default_options(self) -> Dict[str, Any]:
        return {"upper": False}

    def fail_on(self, text: str, error: Exception) -> None:
        """Make ``process`` raise ``error`` for this exact input."""
        self._failures[text] = error

    def process(
        self,
        text: str,
        options: Optional[Dict[str, Any]] = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ProcessingResult:
        self.calls.append(text)
        self.received_options.append(options)
        if text in self._failures:
            raise self._failures[text]
        upper = bool((options or {}).get("upper"))
        output = text.upper() if upper else text.strip()
        return ProcessingResult(output=output, metadata={"mock": True})


class HangingCleaner:
    """Cleaner that blocks until its cancellation token is tripped."""

    name = "Hanging Cleaner"
    description = "Never finishes on its own within a test deadline"
    supported_extensions = ()

    def __init__(self, wait_seconds: float = 5.0) -> None:
        self.wait_seconds = wait_seconds
        self.saw_cancellation = False

    @property
    def default_options(self) -> Dict[str, Any]:
        return {}

    def process(
        self,
        text: str,
        options: Optional[Dict[str, Any]] = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ProcessingResult:
        assert cancel_token is not None
        self.saw_cancellation = cancel_token.wait(self.wait_seconds)
        cancel_token.raise_if_cancelled()
        return ProcessingResult(output=text)


@pytest.fixture
def default_config():
    """Provide a default CleanKitConfig."""
    return CleanKitConfig()


@pytest.fixture
def mock_cleaner():
    """Provide a mock cleaner."""
    return MockCleaner()


@pytest.fixture
def mock_registry(mock_cleaner):
    """Registry holding only the mock cleaner under id "mock"."""
    registry = CleanerRegistry()
    registry.register("mock", mock_cleaner)
    return registry


@pytest.fixture
def default_registry():
    """Registry with the built-in cleaners."""
    return create_default_registry()


@pytest.fixture
def orchestrator(default_registry):
    """Orchestrator over the built-in cleaners."""
    return CleaningOrchestrator(registry=default_registry)


@pytest.fixture
def mock_orchestrator(mock_registry):
    """Orchestrator over the mock cleaner only."""
    return CleaningOrchestrator(registry=mock_registry)


@pytest.fixture
def hanging_cleaner():
    """Provide a cleaner that only returns once cancelled."""
    return HangingCleaner()
