# Routers package — Thin Controllers (SRP / DIP)
from plantsched.routers import (
    production_scheduling,
    modules,
    plant_config,
    calendar_audit,
)

__all__ = [
    "production_scheduling",
    "modules",
    "plant_config",
    "calendar_audit",
]
