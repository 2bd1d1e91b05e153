from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from plantsched.database import get_db
from plantsched.schemas.calendar_audit import CalendarAuditResponse
from plantsched.services.audit_log_service import AuditLogService, decode_payload


router = APIRouter(prefix="/calendar-audit", tags=["Calendar Audit"])


def get_audit_service(db: Session = Depends(get_db)) -> AuditLogService:
    return AuditLogService(db)


@router.get("", response_model=List[CalendarAuditResponse])
def list_calendar_audit(
    factory_id: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
    action: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    service: AuditLogService = Depends(get_audit_service),
):
    entries = service.query(factory_id, start=start, end=end, action=action, limit=limit)
    return [CalendarAuditResponse.from_entry(e, decode_payload(e)) for e in entries]


@router.get("/{entry_id}", response_model=CalendarAuditResponse)
def get_calendar_audit(entry_id: int, service: AuditLogService = Depends(get_audit_service)):
    entry = service.get_entry(entry_id)
    return CalendarAuditResponse.from_entry(entry, decode_payload(entry))
