from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel


class CalendarAuditResponse(BaseModel):
    id: int
    factory_id: int
    action: str
    entity_type: str
    entity_id: Optional[int] = None
    requested_count: int
    applied_count: int
    payload: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    user_id: Optional[int] = None
    from_simulation: bool
    created_at: datetime

    @classmethod
    def from_entry(cls, entry, payload: Optional[Dict[str, Any]] = None) -> "CalendarAuditResponse":
        return cls(
            id=entry.id,
            factory_id=entry.factory_id,
            action=entry.action,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            requested_count=entry.requested_count,
            applied_count=entry.applied_count,
            payload=payload,
            notes=entry.notes,
            user_id=entry.user_id,
            from_simulation=entry.from_simulation,
            created_at=entry.created_at,
        )
