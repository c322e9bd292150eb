"""Cooperative cancellation for long-running scheduling searches."""

import threading
import time


class CancellationToken:
    """Signal polled by the search; a deadline is just a self-firing cancel."""

    def __init__(self, deadline: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = deadline

    @classmethod
    def with_timeout(cls, seconds: float) -> "CancellationToken":
        """Token that cancels itself once `seconds` have elapsed."""
        return cls(deadline=time.monotonic() + seconds)

    @classmethod
    def cancelled_token(cls) -> "CancellationToken":
        token = cls()
        token.cancel()
        return token

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._event.set()
            return True
        return False
