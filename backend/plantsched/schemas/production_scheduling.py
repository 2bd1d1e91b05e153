from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from plantsched.scheduling.session import SessionMode


class SuggestionRequest(BaseModel):
    factory_id: int
    start_date: Optional[date] = None
    order: str = Field(default="created", pattern="^(created|rush_first)$")
    limit: Optional[int] = Field(default=None, ge=1)
    timeout_seconds: Optional[float] = Field(default=None, gt=0, le=300)


class SuggestionView(BaseModel):
    module_id: int
    suggested_date: date
    reason: str
    serial_number: Optional[str] = None

    class Config:
        from_attributes = True


class SuggestionResponse(BaseModel):
    factory_id: int
    count: int
    suggestions: List[SuggestionView]


class CommitItem(BaseModel):
    module_id: int
    suggested_date: date


class CommitRequest(BaseModel):
    factory_id: int
    suggestions: List[CommitItem] = Field(min_length=1)
    timeout_seconds: Optional[float] = Field(default=None, gt=0, le=300)


class FailedUpdateView(BaseModel):
    module_id: int
    reason: str

    class Config:
        from_attributes = True


class CommitResponse(BaseModel):
    factory_id: int
    action: str
    requested_count: int
    applied_count: int
    applied: List[int]
    failed: List[FailedUpdateView]
    audit_entry_id: Optional[int] = None
    from_simulation: bool = False
    warnings: List[str] = Field(default_factory=list)
    first_error: Optional[str] = None

    @classmethod
    def from_result(cls, result) -> "CommitResponse":
        error = result.first_error
        return cls(
            factory_id=result.factory_id,
            action=result.action,
            requested_count=result.requested_count,
            applied_count=result.applied_count,
            applied=list(result.applied),
            failed=[FailedUpdateView.model_validate(f) for f in result.failed],
            audit_entry_id=result.audit_entry_id,
            from_simulation=result.from_simulation,
            warnings=list(result.warnings),
            first_error=error.message if error else None,
        )


class CapacityDay(BaseModel):
    day: date
    load: int
    remaining: int


class CapacityResponse(BaseModel):
    factory_id: int
    target_throughput_per_day: int
    start_date: date
    end_date: date
    days: List[CapacityDay]


class AutoScheduleRequest(BaseModel):
    factory_id: int
    start_date: Optional[date] = None
    order: str = Field(default="created", pattern="^(created|rush_first)$")
    timeout_seconds: Optional[float] = Field(default=None, gt=0, le=300)


class AutoScheduleResponse(BaseModel):
    factory_id: int
    suggestions: List[SuggestionView]
    commit: Optional[CommitResponse] = None


class OverrideItem(BaseModel):
    module_id: int
    target_date: date


def overrides_to_map(items: List[OverrideItem]) -> Dict[int, date]:
    # Later items win when a module is moved twice.
    return {item.module_id: item.target_date for item in items}


class CalendarRequest(BaseModel):
    factory_id: int
    start_date: date
    end_date: date
    mode: SessionMode = SessionMode.LIVE
    overrides: List[OverrideItem] = Field(default_factory=list)
    demo: bool = False


class CalendarEntryView(BaseModel):
    module_id: int
    day: date
    simulated: bool
    original_date: Optional[date] = None
    serial_number: Optional[str] = None
    status: Optional[str] = None
    is_rush: bool = False

    class Config:
        from_attributes = True


class CalendarDay(BaseModel):
    day: date
    load: int
    entries: List[CalendarEntryView]


class CalendarResponse(BaseModel):
    factory_id: int
    mode: SessionMode
    synthetic: bool
    start_date: date
    end_date: date
    days: List[CalendarDay]
    unscheduled: List[int]
    ignored_overrides: List[int]
    simulated_count: int

    @classmethod
    def from_projection(cls, projection) -> "CalendarResponse":
        view = projection.view
        return cls(
            factory_id=projection.factory_id,
            mode=projection.mode,
            synthetic=projection.synthetic,
            start_date=projection.window.start,
            end_date=projection.window.end,
            days=[
                CalendarDay(
                    day=day,
                    load=len(entries),
                    entries=[CalendarEntryView.model_validate(e) for e in entries],
                )
                for day, entries in view.days.items()
            ],
            unscheduled=list(view.unscheduled),
            ignored_overrides=list(view.ignored_overrides),
            simulated_count=view.simulated_count,
        )


class PublishSimulationRequest(BaseModel):
    factory_id: int
    overrides: List[OverrideItem] = Field(min_length=1)
    timeout_seconds: Optional[float] = Field(default=None, gt=0, le=300)
