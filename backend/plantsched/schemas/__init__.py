from plantsched.schemas.production_scheduling import (
    SuggestionRequest,
    SuggestionResponse,
    CommitRequest,
    CommitResponse,
    CapacityResponse,
    AutoScheduleRequest,
    AutoScheduleResponse,
    CalendarRequest,
    CalendarResponse,
    PublishSimulationRequest,
)
from plantsched.schemas.module import ModuleResponse, ModuleStatusUpdateRequest, ModuleScheduleRequest
from plantsched.schemas.plant_config import PlantConfigUpsertRequest, PlantConfigResponse
from plantsched.schemas.calendar_audit import CalendarAuditResponse
