from sqlalchemy import Boolean, Column, Integer, Text, DateTime, CheckConstraint, func

from plantsched.database import Base


class PlantConfig(Base):
    __tablename__ = "plant_configs"
    __table_args__ = (
        CheckConstraint("max_wip_per_station IS NULL OR max_wip_per_station >= 1", name="ck_plant_configs_wip_min_1"),
    )

    id = Column(Integer, primary_key=True, index=True)
    factory_id = Column(Integer, nullable=False, unique=True, index=True)

    # Range-checked by PlantCapacityConfig.build (ConfigError), not by a CHECK.
    target_throughput_per_day = Column(Integer, nullable=False, default=2)
    max_wip_per_station = Column(Integer, nullable=True, default=3)

    work_days_json = Column(Text, nullable=False, default='["mon", "tue", "wed", "thu", "fri"]')
    holidays_json = Column(Text, nullable=False, default="[]")
    auto_schedule_enabled = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)
