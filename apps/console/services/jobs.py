"""
apps.console.services.jobs
~~~~~~~~~~~~~~~~~~~~~~~~~~~
Pending flags for fire-and-forget calls to the generation service.

Each target (a tab key, a language code) carries its own flag, so distinct
targets may be in flight at the same time while a second request for a
target that is already pending is suppressed.  With ``once=True`` a target
that completed successfully is suppressed as well.
"""
from __future__ import annotations

import enum
import threading
from typing import Hashable


class JobStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class PendingJobs:
    def __init__(self, *, once: bool = False) -> None:
        self.once = once
        self._status: dict[Hashable, JobStatus] = {}
        self._lock = threading.Lock()

    def start(self, key: Hashable) -> bool:
        """Mark *key* pending.  Returns False if the request must be suppressed."""
        with self._lock:
            if key in self._status:
                return False
            self._status[key] = JobStatus.PENDING
            return True

    def finish(self, key: Hashable) -> None:
        with self._lock:
            if self.once:
                self._status[key] = JobStatus.COMPLETED
            else:
                self._status.pop(key, None)

    def fail(self, key: Hashable) -> None:
        """Clear the flag so the target can be requested again."""
        with self._lock:
            self._status.pop(key, None)

    def status(self, key: Hashable) -> JobStatus | None:
        with self._lock:
            return self._status.get(key)

    def is_pending(self, key: Hashable) -> bool:
        return self.status(key) is JobStatus.PENDING

    @property
    def any_pending(self) -> bool:
        with self._lock:
            return JobStatus.PENDING in self._status.values()

    def snapshot(self) -> dict[Hashable, JobStatus]:
        with self._lock:
            return dict(self._status)

    def clear(self) -> None:
        with self._lock:
            self._status.clear()
