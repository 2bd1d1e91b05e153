# Repository Layer — Data Access (Repository Pattern, GoF)
from plantsched.repositories.base import BaseRepository
from plantsched.repositories.module_repository import ModuleRepository
from plantsched.repositories.plant_config_repository import PlantConfigRepository
from plantsched.repositories.calendar_audit_repository import CalendarAuditRepository

__all__ = [
    "BaseRepository",
    "ModuleRepository",
    "PlantConfigRepository",
    "CalendarAuditRepository",
]
