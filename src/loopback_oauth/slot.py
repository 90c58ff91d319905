import threading

from loguru import logger as log

from loopback_oauth.outcome import CallbackErrorKind, Failure, Outcome

# Event.wait raises OverflowError for timeouts near or past TIMEOUT_MAX
_MAX_WAIT = min(threading.TIMEOUT_MAX, 365 * 24 * 3600.0)


class ResultSlot:
    """Single-assignment cell holding the outcome of one callback flow.

    Any number of writers may race through ``try_complete``; exactly one of
    them wins and learns that it did. A single reader blocks in ``wait``.
    """

    def __init__(self) -> None:
        self._outcome: Outcome | None = None
        self._lock = threading.Lock()
        self._filled = threading.Event()

    @property
    def outcome(self) -> Outcome | None:
        """The recorded outcome, or None while the slot is empty."""
        return self._outcome

    def try_complete(self, outcome: Outcome) -> bool:
        """Record outcome if the slot is still empty.

        Returns:
            True if this call's outcome became the permanent result, False if
            another outcome had already been recorded.
        """
        with self._lock:
            if self._outcome is not None:
                return False
            self._outcome = outcome
        self._filled.set()
        return True

    def wait(self, timeout: float) -> Outcome:
        """Block until the slot is filled or timeout seconds have passed.

        On timeout the slot is completed with ``Failure(TIMED_OUT)`` so a late
        callback cannot replace it. Whatever outcome won is returned.
        """
        # Negative and NaN timeouts mean no wait
        bounded = min(max(0.0, timeout), _MAX_WAIT)
        if not self._filled.wait(bounded):
            if self.try_complete(Failure(CallbackErrorKind.TIMED_OUT)):
                log.warning(f"No authorization callback received within {timeout:g}s")

        # Set under the lock before try_complete returned, so never None here
        return self._outcome
