from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from plantsched.database import get_db
from plantsched.dependencies import get_current_user_id
from plantsched.schemas.module import ModuleResponse, ModuleScheduleRequest, ModuleStatusUpdateRequest
from plantsched.services.capacity_scheduler_service import CapacitySchedulerService
from plantsched.services.module_service import ModuleService


router = APIRouter(prefix="/modules", tags=["Modules"])


def get_module_service(db: Session = Depends(get_db)) -> ModuleService:
    return ModuleService(db)


def get_scheduler_service(db: Session = Depends(get_db)) -> CapacitySchedulerService:
    return CapacitySchedulerService(db)


@router.get("", response_model=List[ModuleResponse])
def list_modules(
    factory_id: Optional[int] = None,
    project_id: Optional[int] = None,
    status: Optional[str] = None,
    scheduled_from: Optional[date] = None,
    scheduled_to: Optional[date] = None,
    service: ModuleService = Depends(get_module_service),
):
    return service.list_modules(
        factory_id=factory_id,
        project_id=project_id,
        status=status,
        scheduled_from=scheduled_from,
        scheduled_to=scheduled_to,
    )


@router.get("/{module_id}", response_model=ModuleResponse)
def get_module(module_id: int, service: ModuleService = Depends(get_module_service)):
    return service.get_module(module_id)


@router.patch("/{module_id}/status", response_model=ModuleResponse)
def update_module_status(
    module_id: int,
    body: ModuleStatusUpdateRequest,
    service: ModuleService = Depends(get_module_service),
    user_id: Optional[int] = Depends(get_current_user_id),
):
    return service.transition_status(module_id, body.status, user_id=user_id)


@router.patch("/{module_id}/schedule", response_model=ModuleResponse)
def schedule_module(
    module_id: int,
    body: ModuleScheduleRequest,
    service: CapacitySchedulerService = Depends(get_scheduler_service),
    user_id: Optional[int] = Depends(get_current_user_id),
):
    return service.schedule_module(
        module_id,
        body.scheduled_date,
        user_id=user_id,
        timeout_seconds=body.timeout_seconds,
    )
