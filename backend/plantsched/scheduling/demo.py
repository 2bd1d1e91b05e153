"""
Synthetic demo data for calendar previews.

Only reachable when a caller explicitly asks for demo data and the deployment
allows it (``ALLOW_DEMO_DATA``). Every result is labeled synthetic; the
scheduler's production paths never call into this module.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from plantsched.scheduling.calendar import PlantCapacityConfig
from plantsched.scheduling.module_status import ModuleStatus

DEMO_ID_OFFSET = 9_000_000


@dataclass(frozen=True)
class DemoModule:
    id: int
    serial_number: str
    status: ModuleStatus
    scheduled_start: Optional[date]
    scheduled_end: Optional[date]
    is_rush: bool = False
    synthetic: bool = True


def build_demo_modules(
    config: PlantCapacityConfig,
    start: date,
    count: int = 12,
    seed: Optional[int] = None,
) -> List[DemoModule]:
    rng = random.Random(config.factory_id if seed is None else seed)
    modules: List[DemoModule] = []
    day = start
    booked = 0
    for idx in range(1, count + 1):
        while not config.is_work_day(day) or booked >= config.target_throughput_per_day:
            day += timedelta(days=1)
            booked = 0
        scheduled = rng.random() > 0.2
        modules.append(
            DemoModule(
                id=DEMO_ID_OFFSET + idx,
                serial_number=f"DEMO-{config.factory_id}-{idx:03d}",
                status=ModuleStatus.SCHEDULED if scheduled else ModuleStatus.NOT_STARTED,
                scheduled_start=day if scheduled else None,
                scheduled_end=day if scheduled else None,
                is_rush=rng.random() < 0.15,
            )
        )
        if scheduled:
            booked += 1
    return modules
