from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Boolean,
    CheckConstraint,
    Index,
)

from plantsched.database import Base

AUDIT_ACTIONS = ("auto_schedule", "manual_schedule", "sim_publish")


class CalendarAudit(Base):
    __tablename__ = "calendar_audits"
    __table_args__ = (
        CheckConstraint(
            "action IN ('auto_schedule', 'manual_schedule', 'sim_publish')",
            name="ck_calendar_audits_action",
        ),
        CheckConstraint("applied_count >= 0", name="ck_calendar_audits_applied_non_negative"),
        CheckConstraint("applied_count <= requested_count", name="ck_calendar_audits_applied_le_requested"),
        Index("ix_calendar_audits_factory_created", "factory_id", "created_at"),
        Index("ix_calendar_audits_action", "action"),
    )

    id = Column(Integer, primary_key=True, index=True)
    factory_id = Column(Integer, nullable=False, index=True)
    action = Column(String(30), nullable=False)
    entity_type = Column(String(30), nullable=False, default="batch")
    entity_id = Column(Integer, nullable=True)

    requested_count = Column(Integer, nullable=False, default=0)
    applied_count = Column(Integer, nullable=False, default=0)
    payload_json = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    user_id = Column(Integer, nullable=True, index=True)
    from_simulation = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
