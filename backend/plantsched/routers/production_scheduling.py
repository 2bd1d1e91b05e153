from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from plantsched.database import get_db
from plantsched.dependencies import get_current_user_id
from plantsched.schemas.production_scheduling import (
    AutoScheduleRequest,
    AutoScheduleResponse,
    CalendarRequest,
    CalendarResponse,
    CapacityDay,
    CapacityResponse,
    CommitRequest,
    CommitResponse,
    PublishSimulationRequest,
    SuggestionRequest,
    SuggestionResponse,
    SuggestionView,
    overrides_to_map,
)
from plantsched.scheduling.suggestions import ScheduleSuggestion
from plantsched.services.capacity_scheduler_service import CapacitySchedulerService


router = APIRouter(prefix="/production-scheduling", tags=["Production Scheduling"])


def get_scheduler_service(db: Session = Depends(get_db)) -> CapacitySchedulerService:
    return CapacitySchedulerService(db)


@router.post("/suggestions", response_model=SuggestionResponse)
def generate_suggestions(
    body: SuggestionRequest,
    service: CapacitySchedulerService = Depends(get_scheduler_service),
):
    suggestions = service.generate_suggestions(
        body.factory_id,
        start_date=body.start_date,
        order=body.order,
        limit=body.limit,
        timeout_seconds=body.timeout_seconds,
    )
    return SuggestionResponse(
        factory_id=body.factory_id,
        count=len(suggestions),
        suggestions=[SuggestionView.model_validate(s) for s in suggestions],
    )


@router.post("/commit", response_model=CommitResponse)
def commit_suggestions(
    body: CommitRequest,
    service: CapacitySchedulerService = Depends(get_scheduler_service),
    user_id: Optional[int] = Depends(get_current_user_id),
):
    suggestions = [
        ScheduleSuggestion(module_id=item.module_id, suggested_date=item.suggested_date, reason="Accepted suggestion")
        for item in body.suggestions
    ]
    result = service.commit(body.factory_id, suggestions, user_id=user_id, timeout_seconds=body.timeout_seconds)
    return CommitResponse.from_result(result)


@router.get("/capacity", response_model=CapacityResponse)
def capacity(
    factory_id: int,
    start_date: Optional[date] = None,
    days: Optional[int] = Query(default=None, ge=1, le=366),
    service: CapacitySchedulerService = Depends(get_scheduler_service),
):
    snapshot = service.capacity_view(factory_id, start_date=start_date, days=days)
    return CapacityResponse(
        factory_id=snapshot.factory_id,
        target_throughput_per_day=snapshot.target_throughput_per_day,
        start_date=snapshot.window.start,
        end_date=snapshot.window.end,
        days=[
            CapacityDay(day=day, load=load, remaining=snapshot.remaining(day))
            for day, load in sorted(snapshot.days.items())
        ],
    )


@router.post("/auto-schedule", response_model=AutoScheduleResponse)
def auto_schedule(
    body: AutoScheduleRequest,
    service: CapacitySchedulerService = Depends(get_scheduler_service),
    user_id: Optional[int] = Depends(get_current_user_id),
):
    result = service.run_auto_schedule(
        body.factory_id,
        user_id=user_id,
        start_date=body.start_date,
        order=body.order,
        timeout_seconds=body.timeout_seconds,
    )
    return AutoScheduleResponse(
        factory_id=result.factory_id,
        suggestions=[SuggestionView.model_validate(s) for s in result.suggestions],
        commit=CommitResponse.from_result(result.commit) if result.commit else None,
    )


@router.post("/calendar", response_model=CalendarResponse)
def calendar(
    body: CalendarRequest,
    service: CapacitySchedulerService = Depends(get_scheduler_service),
):
    projection = service.calendar_view(
        body.factory_id,
        body.start_date,
        body.end_date,
        mode=body.mode,
        overrides=overrides_to_map(body.overrides),
        demo=body.demo,
    )
    return CalendarResponse.from_projection(projection)


@router.post("/simulation/publish", response_model=CommitResponse)
def publish_simulation(
    body: PublishSimulationRequest,
    service: CapacitySchedulerService = Depends(get_scheduler_service),
    user_id: Optional[int] = Depends(get_current_user_id),
):
    result = service.publish_simulation(
        body.factory_id,
        overrides_to_map(body.overrides),
        user_id=user_id,
        timeout_seconds=body.timeout_seconds,
    )
    return CommitResponse.from_result(result)
