"""
CapacityTracker — existing load per business day for one factory.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Dict, Optional, Protocol, Sequence

from plantsched.scheduling.calendar import DateWindow, PlantCapacityConfig
from plantsched.scheduling.concurrency import Deadline
from plantsched.utils.logging import log_event

logger = logging.getLogger(__name__)


class ScheduledModuleStore(Protocol):
    def list_scheduled(self, factory_id: int, start: date, end: date, active_on: Optional[date] = None) -> Sequence: ...


class CapacityTracker:
    """
    Read-only view of booked capacity.

    ``load`` returns the day-load map for a window and has no side effects on
    the store. ``existing`` serves the suggestion generator: it loads lazily on
    first use and extends its window in ``horizon_days`` chunks as the cursor
    moves forward, so an empty run never touches the store.
    """

    def __init__(
        self,
        store: ScheduledModuleStore,
        config: PlantCapacityConfig,
        today: Optional[date] = None,
        horizon_days: int = 30,
        deadline: Optional[Deadline] = None,
    ):
        self._store = store
        self.config = config
        self.factory_id = config.factory_id
        self.today = today or date.today()
        self.horizon_days = max(horizon_days, 1)
        self._deadline = deadline
        self._existing: Dict[date, int] = {}
        self._covered: Optional[DateWindow] = None
        self.reads = 0

    def load(self, factory_id: int, window: DateWindow) -> Dict[date, int]:
        if self._deadline is not None:
            self._deadline.check("capacity_read")
        modules = self._store.list_scheduled(factory_id, window.start, window.end, active_on=self.today)
        self.reads += 1

        counts = {day: 0 for day in self.config.business_days(window.start, window.end)}
        for module in modules:
            day = module.scheduled_start
            if day in counts:
                counts[day] += 1

        log_event(
            logger,
            "capacity_loaded",
            level=logging.DEBUG,
            factory_id=factory_id,
            window_start=window.start,
            window_end=window.end,
            modules=len(modules),
        )
        return counts

    def existing(self, day: date) -> int:
        if self._covered is None:
            self._cover(DateWindow.forward(day, self.horizon_days))
        elif day > self._covered.end:
            start = self._covered.end + timedelta(days=1)
            end = max(day, self._covered.end + timedelta(days=self.horizon_days))
            self._cover(DateWindow(start, end))
        elif day < self._covered.start:
            self._cover(DateWindow(day, self._covered.start - timedelta(days=1)))
        return self._existing.get(day, 0)

    def _cover(self, window: DateWindow) -> None:
        self._existing.update(self.load(self.factory_id, window))
        if self._covered is None:
            self._covered = window
        else:
            self._covered = DateWindow(min(self._covered.start, window.start), max(self._covered.end, window.end))
