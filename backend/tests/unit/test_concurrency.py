import threading

import pytest

from plantsched.core.exceptions import SchedulingTimeoutError
from plantsched.scheduling.concurrency import Deadline, FactoryLockRegistry


def test_deadline_without_timeout_never_expires():
    deadline = Deadline(None)
    assert deadline.remaining() is None
    assert not deadline.expired()
    deadline.check("anything")


def test_expired_deadline_raises_with_stage():
    deadline = Deadline(0)
    with pytest.raises(SchedulingTimeoutError) as exc_info:
        deadline.check("capacity_read")
    assert exc_info.value.details["stage"] == "capacity_read"


def test_lock_is_released_after_block():
    registry = FactoryLockRegistry()
    with registry.hold(1):
        assert registry.is_locked(1)
        assert not registry.is_locked(2)
    assert not registry.is_locked(1)


def test_lock_released_when_block_raises():
    registry = FactoryLockRegistry()
    with pytest.raises(RuntimeError):
        with registry.hold(1):
            raise RuntimeError("boom")
    assert not registry.is_locked(1)


def test_second_holder_times_out_while_first_runs():
    registry = FactoryLockRegistry()
    entered = threading.Event()
    release = threading.Event()

    def first():
        with registry.hold(1):
            entered.set()
            release.wait(5)

    worker = threading.Thread(target=first)
    worker.start()
    try:
        assert entered.wait(5)
        with pytest.raises(SchedulingTimeoutError):
            with registry.hold(1, Deadline(0.05)):
                pass
    finally:
        release.set()
        worker.join(5)

    with registry.hold(1, Deadline(1)):
        assert registry.is_locked(1)
