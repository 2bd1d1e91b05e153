from sqlalchemy import (
    Boolean,
    Column,
    Integer,
    String,
    Text,
    Date,
    DateTime,
    CheckConstraint,
    UniqueConstraint,
    Index,
    func,
)
from plantsched.database import Base
from plantsched.scheduling.module_status import ModuleStatus

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in ModuleStatus)


class Module(Base):
    __tablename__ = "modules"
    __table_args__ = (
        UniqueConstraint("project_id", "serial_number", name="uq_modules_project_serial"),
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_modules_status"),
        CheckConstraint(
            "scheduled_end IS NULL OR scheduled_start IS NULL OR scheduled_end >= scheduled_start",
            name="ck_modules_schedule_order",
        ),
        Index("ix_modules_factory_scheduled_start", "factory_id", "scheduled_start"),
        Index("ix_modules_factory_status", "factory_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, nullable=False, index=True)
    factory_id = Column(Integer, nullable=False, index=True)

    serial_number = Column(String(50), nullable=False)
    name = Column(String(100), nullable=True)
    sequence_number = Column(Integer, nullable=False, default=1)

    status = Column(String(20), nullable=False, default=ModuleStatus.NOT_STARTED.value)
    current_station_id = Column(Integer, nullable=True, index=True)

    scheduled_start = Column(Date, nullable=True)
    scheduled_end = Column(Date, nullable=True)
    actual_start = Column(DateTime, nullable=True)
    actual_end = Column(DateTime, nullable=True)

    is_rush = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)
