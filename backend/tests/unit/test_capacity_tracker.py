from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from plantsched.core.exceptions import ConfigError, SchedulingTimeoutError
from plantsched.scheduling.calendar import DateWindow, PlantCapacityConfig
from plantsched.scheduling.capacity import CapacityTracker
from plantsched.scheduling.concurrency import Deadline

MONDAY = date(2030, 1, 7)


class FakeStore:
    def __init__(self, modules=()):
        self.modules = list(modules)
        self.calls = []

    def list_scheduled(self, factory_id, start, end, active_on=None):
        self.calls.append((factory_id, start, end, active_on))
        return [
            m for m in self.modules
            if start <= m.scheduled_start <= end
            and (active_on is None or m.scheduled_end is None or m.scheduled_end >= active_on)
        ]


def _scheduled(day, end=None):
    return SimpleNamespace(scheduled_start=day, scheduled_end=end or day)


def test_load_lists_every_business_day_with_zero_fill():
    config = PlantCapacityConfig.build(3, 2)
    store = FakeStore([_scheduled(MONDAY), _scheduled(MONDAY), _scheduled(MONDAY + timedelta(days=2))])
    tracker = CapacityTracker(store, config, today=MONDAY)

    loads = tracker.load(3, DateWindow.forward(MONDAY, 7))

    assert loads == {
        MONDAY: 2,
        MONDAY + timedelta(days=1): 0,
        MONDAY + timedelta(days=2): 1,
        MONDAY + timedelta(days=3): 0,
        MONDAY + timedelta(days=4): 0,
    }
    assert store.calls == [(3, MONDAY, MONDAY + timedelta(days=6), MONDAY)]


def test_load_excludes_holidays_and_ignores_finished_modules():
    holiday = MONDAY + timedelta(days=1)
    config = PlantCapacityConfig.build(3, 2, holidays=[holiday])
    finished = _scheduled(MONDAY - timedelta(days=3), end=MONDAY - timedelta(days=1))
    store = FakeStore([finished, _scheduled(holiday)])
    tracker = CapacityTracker(store, config, today=MONDAY)

    loads = tracker.load(3, DateWindow(MONDAY - timedelta(days=3), MONDAY + timedelta(days=2)))

    assert holiday not in loads
    assert sum(loads.values()) == 0


def test_existing_loads_lazily_and_extends_backwards():
    config = PlantCapacityConfig.build(3, 2)
    store = FakeStore([_scheduled(MONDAY)])
    tracker = CapacityTracker(store, config, today=MONDAY, horizon_days=5)

    assert store.calls == []
    assert tracker.existing(MONDAY + timedelta(days=1)) == 0
    assert len(store.calls) == 1
    assert tracker.existing(MONDAY) == 1
    assert len(store.calls) == 2
    assert tracker.existing(MONDAY + timedelta(days=2)) == 0
    assert len(store.calls) == 2
    assert tracker.reads == 2


def test_expired_deadline_stops_capacity_read():
    config = PlantCapacityConfig.build(3, 2)
    store = FakeStore()
    tracker = CapacityTracker(store, config, today=MONDAY, deadline=Deadline(0))

    with pytest.raises(SchedulingTimeoutError):
        tracker.load(3, DateWindow.forward(MONDAY, 5))
    assert store.calls == []


@pytest.mark.parametrize("target", [0, -1, True, "2", 1.5])
def test_invalid_target_is_config_error(target):
    with pytest.raises(ConfigError):
        PlantCapacityConfig.build(1, target)


def test_empty_or_unknown_work_days_are_config_errors():
    with pytest.raises(ConfigError):
        PlantCapacityConfig.build(1, 2, work_days=[])
    with pytest.raises(ConfigError):
        PlantCapacityConfig.build(1, 2, work_days=["funday"])
    with pytest.raises(ConfigError):
        PlantCapacityConfig.build(1, 2, holidays=["not-a-date"])


def test_work_days_accept_names_and_indexes():
    config = PlantCapacityConfig.build(1, 2, work_days=["Monday", 2, "FRI"])
    assert config.sorted_work_days() == ["mon", "wed", "fri"]
    assert config.is_work_day(MONDAY)
    assert not config.is_work_day(MONDAY + timedelta(days=1))


def test_date_window_rejects_inverted_range():
    with pytest.raises(ValueError):
        DateWindow(MONDAY, MONDAY - timedelta(days=1))
    assert MONDAY in DateWindow.forward(MONDAY, 1)
