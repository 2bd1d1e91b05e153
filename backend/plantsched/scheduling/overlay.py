"""
SimulationOverlay — merge the persisted schedule with ephemeral overrides.

``project`` is a pure function: it reads module attributes, never assigns to
them, and builds a fresh CalendarView on every call.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from plantsched.scheduling.calendar import DateWindow


@dataclass(frozen=True)
class CalendarEntry:
    module_id: int
    day: date
    simulated: bool = False
    original_date: Optional[date] = None
    serial_number: Optional[str] = None
    status: Optional[str] = None
    is_rush: bool = False


@dataclass(frozen=True)
class CalendarView:
    days: Mapping[date, Tuple[CalendarEntry, ...]] = field(default_factory=dict)
    unscheduled: Tuple[int, ...] = ()
    ignored_overrides: Tuple[int, ...] = ()

    def entries_on(self, day: date) -> Tuple[CalendarEntry, ...]:
        return self.days.get(day, ())

    def date_of(self, module_id: int) -> Optional[date]:
        for day, entries in self.days.items():
            if any(e.module_id == module_id for e in entries):
                return day
        return None

    @property
    def simulated_count(self) -> int:
        return sum(1 for entries in self.days.values() for e in entries if e.simulated)

    def load(self) -> Dict[date, int]:
        return {day: len(entries) for day, entries in self.days.items()}


def _status_value(status) -> Optional[str]:
    if status is None:
        return None
    return getattr(status, "value", status)


def project(
    persisted_modules: Iterable,
    overrides: Optional[Mapping[int, date]] = None,
    window: Optional[DateWindow] = None,
) -> CalendarView:
    overrides = overrides or {}
    buckets: Dict[date, List[CalendarEntry]] = {}
    unscheduled: List[int] = []
    seen = set()

    for module in persisted_modules:
        if module.id in seen:
            continue
        seen.add(module.id)

        persisted_day = module.scheduled_start
        override_day = overrides.get(module.id)
        simulated = override_day is not None
        day = override_day if override_day is not None else persisted_day

        if day is None:
            unscheduled.append(module.id)
            continue
        if window is not None and day not in window:
            continue

        buckets.setdefault(day, []).append(
            CalendarEntry(
                module_id=module.id,
                day=day,
                simulated=simulated,
                original_date=persisted_day if simulated else None,
                serial_number=getattr(module, "serial_number", None),
                status=_status_value(getattr(module, "status", None)),
                is_rush=bool(getattr(module, "is_rush", False)),
            )
        )

    ignored = tuple(sorted(module_id for module_id in overrides if module_id not in seen))
    return CalendarView(
        days={day: tuple(buckets[day]) for day in sorted(buckets)},
        unscheduled=tuple(unscheduled),
        ignored_overrides=ignored,
    )
