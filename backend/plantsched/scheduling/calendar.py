"""
Plant capacity configuration and the business-day calendar derived from it.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import FrozenSet, Iterable, Iterator, Optional

from plantsched.core.exceptions import ConfigError

WEEKDAY_CODES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
DEFAULT_WORK_DAYS: FrozenSet[str] = frozenset(WEEKDAY_CODES[:5])


def _normalize_work_day(value) -> str:
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 6:
        return WEEKDAY_CODES[value]
    if isinstance(value, str):
        code = value.strip().lower()[:3]
        if code in WEEKDAY_CODES:
            return code
    raise ConfigError(f"Unrecognized work day '{value}'", {"work_day": value})


def _parse_holiday(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise ConfigError(f"Holiday '{value}' is not an ISO date", {"holiday": value})


@dataclass(frozen=True)
class PlantCapacityConfig:
    factory_id: int
    target_throughput_per_day: int
    work_days: FrozenSet[str] = DEFAULT_WORK_DAYS
    holidays: FrozenSet[date] = field(default_factory=frozenset)
    max_wip_per_station: Optional[int] = None
    auto_schedule_enabled: bool = False

    @classmethod
    def build(
        cls,
        factory_id: int,
        target_throughput_per_day,
        work_days: Optional[Iterable] = None,
        holidays: Optional[Iterable] = None,
        max_wip_per_station: Optional[int] = None,
        auto_schedule_enabled: bool = False,
    ) -> "PlantCapacityConfig":
        """Validate raw config values; raises ConfigError on anything unusable."""
        if isinstance(target_throughput_per_day, bool) or not isinstance(target_throughput_per_day, int):
            raise ConfigError(
                "target_throughput_per_day must be an integer",
                {"factory_id": factory_id, "target_throughput_per_day": target_throughput_per_day},
            )
        if target_throughput_per_day < 1:
            raise ConfigError(
                "target_throughput_per_day must be at least 1",
                {"factory_id": factory_id, "target_throughput_per_day": target_throughput_per_day},
            )

        days = DEFAULT_WORK_DAYS if work_days is None else frozenset(_normalize_work_day(d) for d in work_days)
        if not days:
            raise ConfigError("work_days must contain at least one weekday", {"factory_id": factory_id})

        return cls(
            factory_id=factory_id,
            target_throughput_per_day=target_throughput_per_day,
            work_days=days,
            holidays=frozenset(_parse_holiday(h) for h in (holidays or ())),
            max_wip_per_station=max_wip_per_station,
            auto_schedule_enabled=bool(auto_schedule_enabled),
        )

    def is_work_day(self, day: date) -> bool:
        return WEEKDAY_CODES[day.weekday()] in self.work_days and day not in self.holidays

    def business_days(self, start: date, end: date) -> Iterator[date]:
        """Yield every eligible day in the closed range [start, end]."""
        day = start
        while day <= end:
            if self.is_work_day(day):
                yield day
            day += timedelta(days=1)

    def sorted_work_days(self) -> list:
        return [code for code in WEEKDAY_CODES if code in self.work_days]


@dataclass(frozen=True)
class DateWindow:
    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Window end {self.end} is before start {self.start}")

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    @classmethod
    def forward(cls, start: date, days: int) -> "DateWindow":
        return cls(start, start + timedelta(days=max(days, 1) - 1))
