from datetime import date
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from plantsched.config import settings


class PlantConfigUpsertRequest(BaseModel):
    target_throughput_per_day: int = Field(default=settings.DEFAULT_TARGET_THROUGHPUT_PER_DAY)
    work_days: List[Union[int, str]] = Field(default_factory=lambda: ["mon", "tue", "wed", "thu", "fri"])
    holidays: List[date] = Field(default_factory=list)
    max_wip_per_station: Optional[int] = Field(default=None, ge=1)
    auto_schedule_enabled: bool = False


class PlantConfigResponse(BaseModel):
    factory_id: int
    target_throughput_per_day: int
    work_days: List[str]
    holidays: List[date]
    max_wip_per_station: Optional[int] = None
    auto_schedule_enabled: bool

    @classmethod
    def from_config(cls, config) -> "PlantConfigResponse":
        return cls(
            factory_id=config.factory_id,
            target_throughput_per_day=config.target_throughput_per_day,
            work_days=config.sorted_work_days(),
            holidays=sorted(config.holidays),
            max_wip_per_station=config.max_wip_per_station,
            auto_schedule_enabled=config.auto_schedule_enabled,
        )
