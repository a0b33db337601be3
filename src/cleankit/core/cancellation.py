"""Cooperative cancellation for cleaner calls."""

from __future__ import annotations

import threading
from typing import Optional

from cleankit.core.exceptions import OperationCancelled


class CancellationToken:
    """
    Flag shared between the orchestrator and a running cleaner.

    The orchestrator trips the token when a call misses its deadline. Cleaners
    poll ``raise_if_cancelled()`` at safe points; a cleaner that never polls
    keeps running in the background until it finishes on its own.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or ``timeout`` elapses. Returns ``cancelled``."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled(f"Operation cancelled: {self._reason}")


def check_cancelled(token: Optional[CancellationToken]) -> None:
    """Poll an optional token."""
    if token is not None:
        token.raise_if_cancelled()
