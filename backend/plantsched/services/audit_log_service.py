"""
Calendar audit log — append-only record of committed scheduling actions.
"""
import json
import logging
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from plantsched.core.exceptions import AuditWriteError, BusinessRuleViolationException, EntityNotFoundException
from plantsched.models.calendar_audit import AUDIT_ACTIONS, CalendarAudit
from plantsched.repositories.calendar_audit_repository import CalendarAuditRepository
from plantsched.utils.logging import log_event

logger = logging.getLogger(__name__)


class AuditLogService:
    def __init__(self, db: Session):
        self._db = db
        self._repo = CalendarAuditRepository(db)

    def append(
        self,
        factory_id: int,
        action: str,
        requested_count: int,
        applied_count: int,
        payload: Optional[Dict[str, Any]] = None,
        user_id: Optional[int] = None,
        from_simulation: bool = False,
        notes: Optional[str] = None,
        entity_type: str = "batch",
        entity_id: Optional[int] = None,
    ) -> CalendarAudit:
        if action not in AUDIT_ACTIONS:
            raise BusinessRuleViolationException(
                f"Unknown audit action '{action}'", {"allowed": list(AUDIT_ACTIONS)}
            )

        entry = CalendarAudit(
            factory_id=factory_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            requested_count=requested_count,
            applied_count=applied_count,
            payload_json=json.dumps(payload, default=str) if payload is not None else None,
            notes=notes,
            user_id=user_id,
            from_simulation=from_simulation,
        )
        try:
            entry = self._repo.append(entry)
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise AuditWriteError(
                f"Audit append failed for factory {factory_id}",
                {"factory_id": factory_id, "action": action, "cause": exc.__class__.__name__},
            ) from exc

        log_event(
            logger,
            "calendar_audit_appended",
            audit_id=entry.id,
            factory_id=factory_id,
            action=action,
            requested=requested_count,
            applied=applied_count,
            from_simulation=from_simulation,
        )
        return entry

    def get_entry(self, entry_id: int) -> CalendarAudit:
        entry = self._repo.get_by_id(entry_id)
        if not entry:
            raise EntityNotFoundException("CalendarAudit", entry_id)
        return entry

    def query(
        self,
        factory_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        action: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[CalendarAudit]:
        """Entries for one factory in append order; ``start``/``end`` bound ``created_at`` (UTC), inclusive."""
        if start is not None and end is not None and end < start:
            raise BusinessRuleViolationException("end must not be before start")
        if action is not None and action not in AUDIT_ACTIONS:
            raise BusinessRuleViolationException(
                f"Unknown audit action '{action}'", {"allowed": list(AUDIT_ACTIONS)}
            )
        return self._repo.query(
            factory_id,
            start=_day_start(start),
            end=_day_end(end),
            action=action,
            limit=limit,
        )


def _day_start(value: Optional[date]) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def _day_end(value: Optional[date]) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max)


def decode_payload(entry: CalendarAudit) -> Optional[Dict[str, Any]]:
    if not entry.payload_json:
        return None
    return json.loads(entry.payload_json)
