from plantsched.models.module import Module
from plantsched.models.plant_config import PlantConfig
from plantsched.models.calendar_audit import CalendarAudit

__all__ = [
    "Module",
    "PlantConfig",
    "CalendarAudit",
]
