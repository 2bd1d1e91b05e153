"""
SuggestionGenerator — greedy forward assignment of modules to business days.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from plantsched.core.exceptions import CapacityUnavailableError
from plantsched.scheduling.calendar import PlantCapacityConfig
from plantsched.scheduling.capacity import CapacityTracker
from plantsched.utils.logging import log_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleSuggestion:
    module_id: int
    suggested_date: date
    reason: str = ""
    serial_number: Optional[str] = None


class SuggestionGenerator:
    """
    Walks a single cursor forward from ``start`` and books each module on the
    first eligible day whose existing plus in-run load is below the plant's
    daily target. The cursor is never rewound, so dates come out in the same
    order the modules went in; ordering by urgency is the caller's job.
    """

    def __init__(self, max_scan_days: int = 730):
        self.max_scan_days = max_scan_days

    def generate(
        self,
        unscheduled_modules: Sequence,
        tracker: CapacityTracker,
        config: PlantCapacityConfig,
        start: Optional[date] = None,
    ) -> List[ScheduleSuggestion]:
        if not unscheduled_modules:
            return []

        target = config.target_throughput_per_day
        first_day = start or tracker.today
        limit = first_day + timedelta(days=self.max_scan_days)
        cursor = first_day
        in_run: Dict[date, int] = {}
        suggestions: List[ScheduleSuggestion] = []

        for module in unscheduled_modules:
            while True:
                if cursor > limit:
                    raise CapacityUnavailableError(
                        f"No capacity found within {self.max_scan_days} days of {first_day.isoformat()}",
                        {
                            "factory_id": config.factory_id,
                            "assigned": len(suggestions),
                            "remaining": len(unscheduled_modules) - len(suggestions),
                        },
                    )
                if config.is_work_day(cursor):
                    load = tracker.existing(cursor) + in_run.get(cursor, 0)
                    if load < target:
                        break
                cursor += timedelta(days=1)

            suggestions.append(
                ScheduleSuggestion(
                    module_id=module.id,
                    suggested_date=cursor,
                    reason=f"Capacity available ({load}/{target} modules)",
                    serial_number=getattr(module, "serial_number", None),
                )
            )
            in_run[cursor] = in_run.get(cursor, 0) + 1

        log_event(
            logger,
            "suggestions_generated",
            factory_id=config.factory_id,
            count=len(suggestions),
            first_date=suggestions[0].suggested_date,
            last_date=suggestions[-1].suggested_date,
        )
        return suggestions
