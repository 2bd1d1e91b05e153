# Scheduling core — pure capacity, suggestion and simulation logic
from plantsched.scheduling.calendar import DateWindow, PlantCapacityConfig
from plantsched.scheduling.capacity import CapacityTracker
from plantsched.scheduling.concurrency import Deadline, FactoryLockRegistry, factory_locks
from plantsched.scheduling.module_status import ModuleStatus
from plantsched.scheduling.overlay import CalendarEntry, CalendarView, project
from plantsched.scheduling.session import SchedulerSession, SessionMode
from plantsched.scheduling.suggestions import ScheduleSuggestion, SuggestionGenerator

__all__ = [
    "DateWindow",
    "PlantCapacityConfig",
    "CapacityTracker",
    "Deadline",
    "FactoryLockRegistry",
    "factory_locks",
    "ModuleStatus",
    "CalendarEntry",
    "CalendarView",
    "project",
    "SchedulerSession",
    "SessionMode",
    "ScheduleSuggestion",
    "SuggestionGenerator",
]
