"""
apps.console.services.edit_buffer
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Debounced propagation of field edits from an open editor to its owner.

Keystrokes are buffered locally and handed to ``on_commit`` once no new edit
has arrived for ``delay`` seconds.  Every :meth:`EditBuffer.push` restarts the
timer.  Closing the buffer flushes what is still pending unless the caller
explicitly asks to drop it.
"""
from __future__ import annotations

import threading
from typing import Any, Callable

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3

#: ``[(path, value), ...]`` in the order the edits were made.
Edits = list[tuple[str, Any]]


class EditBufferClosed(RuntimeError):
    """Raised when pushing to a buffer that was already closed."""


class EditBuffer:
    """
    Collects ``(path, value)`` edits and commits them after a quiet period.

    A later edit of the same path replaces the earlier one but keeps the
    position of the first, so commit order follows first-touch order.

    Args:
        on_commit: Called with the list of buffered edits.  Runs on the timer
            thread when the debounce window elapses, or on the caller's
            thread for :meth:`flush` and :meth:`close`.
        delay: Debounce window in seconds.
        timer_factory: ``threading.Timer``-compatible factory, injectable for
            tests.
    """

    def __init__(
        self,
        on_commit: Callable[[Edits], Any],
        *,
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        timer_factory: Callable[..., Any] = threading.Timer,
    ) -> None:
        self._on_commit = on_commit
        self._delay = delay
        self._timer_factory = timer_factory
        self._pending: dict[str, Any] = {}
        self._timer = None
        self._closed = False
        self._lock = threading.Lock()

    @property
    def pending(self) -> Edits:
        with self._lock:
            return list(self._pending.items())

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, path: str, value: Any) -> None:
        """Buffer one edit and restart the debounce window."""
        with self._lock:
            if self._closed:
                raise EditBufferClosed("Cannot push edits to a closed buffer.")
            self._pending[path] = value
            self._cancel_timer()
            self._timer = self._timer_factory(self._delay, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> int:
        """Commit every buffered edit now.  Returns the number committed."""
        with self._lock:
            self._cancel_timer()
            edits = list(self._pending.items())
            self._pending.clear()
        if edits:
            self._on_commit(edits)
        return len(edits)

    def close(self, *, flush: bool = True) -> int:
        """
        Tear the buffer down.

        With ``flush=True`` (the default) pending edits are committed
        synchronously.  With ``flush=False`` they are discarded.

        Returns:
            The number of edits committed (or dropped).
        """
        if flush:
            count = self.flush()
        else:
            with self._lock:
                self._cancel_timer()
                count = len(self._pending)
                self._pending.clear()
            if count:
                logger.info("pending_edits_dropped", count=count)
        self._closed = True
        return count

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
