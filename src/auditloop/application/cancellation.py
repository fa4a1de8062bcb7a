"""
Cooperative cancellation for a running loop.
"""

import threading
import time
from concurrent.futures import Future, wait
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import TypeVar

from auditloop.domain.exceptions import RunCancelled

T = TypeVar("T")

# Seconds between cancellation checks while waiting on a collaborator
POLL_INTERVAL = 0.05


class CancellationToken:
    """
    Thread-safe cancellation flag.

    The Loop Controller checks it between every state transition, and the
    dispatcher and validation runner check it while waiting on their
    collaborators. A cancelled run ends ABORTED with the history gathered
    so far.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = ""

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise RunCancelled(self._reason)


def wait_for(
    future: "Future[T]",
    timeout: float,
    cancel_token: CancellationToken | None = None,
) -> T:
    """
    Wait for a future's result, giving up early on cancellation.

    The future's own exception, if any, propagates unchanged.

    Raises:
        concurrent.futures.TimeoutError: If timeout elapses first
        RunCancelled: If the token is cancelled while waiting
    """
    if cancel_token is None:
        return future.result(timeout=timeout)

    deadline = time.monotonic() + timeout
    while not future.done():
        if cancel_token.cancelled:
            future.cancel()
            raise RunCancelled(cancel_token.reason)
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise FuturesTimeoutError()
        wait((future,), timeout=min(remaining, POLL_INTERVAL))
    return future.result()
