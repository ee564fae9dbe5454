"""Caller-supplied cancellation for long-running lookups."""
import threading
import time
from dataclasses import dataclass
from typing import Optional


class CancellationToken:
    """
    Cooperative cancellation signal with an optional deadline.

    Lookups poll ``cancelled`` between units of work. A token is cancelled
    once ``cancel()`` has been called or its deadline has passed.
    """

    def __init__(self, timeout: Optional[float] = None):
        """
        Args:
            timeout: Seconds from now after which the token counts as cancelled
        """
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled"):
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

    @property
    def reason(self) -> Optional[str]:
        return self._reason


@dataclass(frozen=True)
class Cancelled:
    """Outcome returned in place of a result when a lookup was cancelled."""
    operation: str
    reason: str

    def to_dict(self):
        return {"cancelled": True, "operation": self.operation, "reason": self.reason}


def is_cancelled(token: Optional[CancellationToken]) -> bool:
    return token is not None and token.cancelled
