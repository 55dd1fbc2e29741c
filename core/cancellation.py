# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-29
# Description: cancellation.py
# -----------------------------------------------------------------------------
import threading
import time
from typing import Optional

from core.exceptions import OperationCancelled


class CancellationToken:
    """
    Ambient cancellation signal: explicit cancel() and/or a deadline.

    Long-running operations call raise_if_cancelled() at every point where
    they are about to block on I/O.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._reason = ""

    @classmethod
    def with_timeout(cls, seconds: float) -> "CancellationToken":
        return cls(timeout=seconds)

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._reason = self._reason or "deadline exceeded"
            return True
        return False

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelled(self._reason or "cancelled")
