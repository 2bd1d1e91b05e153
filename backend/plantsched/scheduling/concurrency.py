"""
Per-factory single-flight locking and caller-supplied deadlines.

A scheduling run (generate + commit) or a commit batch for one factory holds
that factory's lock, so two runs never read the same day load and both book
it. Across processes, the commit locks the factory's plant_configs row
FOR UPDATE before re-validating capacity.
"""
from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from plantsched.core.exceptions import SchedulingTimeoutError


class Deadline:
    """Monotonic deadline checked before each I/O-bound step."""

    def __init__(self, timeout_seconds: Optional[float]):
        self.timeout_seconds = timeout_seconds
        self._expires_at = None if timeout_seconds is None else time.monotonic() + timeout_seconds

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self, stage: str) -> None:
        if self.expired():
            raise SchedulingTimeoutError(
                f"Scheduling operation timed out during {stage}",
                {"stage": stage, "timeout_seconds": self.timeout_seconds},
            )


class FactoryLockRegistry:
    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}

    def _lock_for(self, factory_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(factory_id)
            if lock is None:
                lock = self._locks[factory_id] = threading.Lock()
            return lock

    def is_locked(self, factory_id: int) -> bool:
        return self._lock_for(factory_id).locked()

    @contextmanager
    def hold(self, factory_id: int, deadline: Optional[Deadline] = None) -> Iterator[None]:
        lock = self._lock_for(factory_id)
        remaining = deadline.remaining() if deadline else None
        acquired = lock.acquire() if remaining is None else lock.acquire(timeout=remaining)
        if not acquired:
            raise SchedulingTimeoutError(
                f"Another scheduling run for factory {factory_id} is still in progress",
                {"stage": "factory_lock", "factory_id": factory_id},
            )
        try:
            yield
        finally:
            lock.release()


factory_locks = FactoryLockRegistry()
