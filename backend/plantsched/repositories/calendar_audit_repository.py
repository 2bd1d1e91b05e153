"""
Calendar audit repository.

Append-only: entries are created and read, never updated or deleted, so this
does not extend BaseRepository.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from plantsched.models.calendar_audit import CalendarAudit


class CalendarAuditRepository:

    def __init__(self, db: Session):
        self.db = db

    def append(self, entry: CalendarAudit) -> CalendarAudit:
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def get_by_id(self, entry_id: int) -> Optional[CalendarAudit]:
        return self.db.get(CalendarAudit, entry_id)

    def query(
        self,
        factory_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        action: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[CalendarAudit]:
        q = self.db.query(CalendarAudit).filter(CalendarAudit.factory_id == factory_id)
        if start is not None:
            q = q.filter(CalendarAudit.created_at >= start)
        if end is not None:
            q = q.filter(CalendarAudit.created_at <= end)
        if action is not None:
            q = q.filter(CalendarAudit.action == action)
        q = q.order_by(CalendarAudit.created_at, CalendarAudit.id)
        if limit is not None:
            q = q.limit(limit)
        return q.all()

