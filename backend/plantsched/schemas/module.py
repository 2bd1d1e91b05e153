from datetime import datetime, date
from typing import Optional

from pydantic import BaseModel, Field

from plantsched.scheduling.module_status import ModuleStatus


class ModuleStatusUpdateRequest(BaseModel):
    status: ModuleStatus


class ModuleScheduleRequest(BaseModel):
    scheduled_date: date
    timeout_seconds: Optional[float] = Field(default=None, gt=0, le=300)


class ModuleResponse(BaseModel):
    id: int
    project_id: int
    factory_id: int
    serial_number: str
    name: Optional[str] = None
    sequence_number: int
    status: ModuleStatus
    current_station_id: Optional[int] = None
    scheduled_start: Optional[date] = None
    scheduled_end: Optional[date] = None
    actual_start: Optional[datetime] = None
    actual_end: Optional[datetime] = None
    is_rush: bool
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
