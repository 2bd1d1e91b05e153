import json
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from plantsched.core.exceptions import CapacityReadError, ConfigError
from plantsched.models.plant_config import PlantConfig
from plantsched.repositories.base import BaseRepository
from plantsched.scheduling.calendar import PlantCapacityConfig


def _load_json_list(raw: Optional[str], column: str, factory_id: int) -> list:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError as exc:
        raise ConfigError(f"{column} is not valid JSON", {"factory_id": factory_id}) from exc
    if not isinstance(value, list):
        raise ConfigError(f"{column} must be a JSON list", {"factory_id": factory_id})
    return value


def to_capacity_config(row: PlantConfig) -> PlantCapacityConfig:
    return PlantCapacityConfig.build(
        factory_id=row.factory_id,
        target_throughput_per_day=row.target_throughput_per_day,
        work_days=_load_json_list(row.work_days_json, "work_days", row.factory_id),
        holidays=_load_json_list(row.holidays_json, "holidays", row.factory_id),
        max_wip_per_station=row.max_wip_per_station,
        auto_schedule_enabled=row.auto_schedule_enabled,
    )


class PlantConfigRepository(BaseRepository[PlantConfig]):

    def __init__(self, db: Session):
        super().__init__(PlantConfig, db)

    def get_row(self, factory_id: int) -> Optional[PlantConfig]:
        try:
            return self.db.query(PlantConfig).filter(PlantConfig.factory_id == factory_id).first()
        except SQLAlchemyError as exc:
            raise CapacityReadError(
                f"Unable to read plant config for factory {factory_id}",
                {"factory_id": factory_id, "cause": exc.__class__.__name__},
            ) from exc

    def get_config(self, factory_id: int) -> PlantCapacityConfig:
        row = self.get_row(factory_id)
        if row is None:
            raise ConfigError(f"No plant config for factory {factory_id}", {"factory_id": factory_id})
        return to_capacity_config(row)

    def upsert(self, config: PlantCapacityConfig) -> PlantConfig:
        """Persist an already validated config, creating the row on first write."""
        values = {
            "target_throughput_per_day": config.target_throughput_per_day,
            "max_wip_per_station": config.max_wip_per_station,
            "work_days_json": json.dumps(config.sorted_work_days()),
            "holidays_json": json.dumps(sorted(d.isoformat() for d in config.holidays)),
            "auto_schedule_enabled": config.auto_schedule_enabled,
        }
        row = self.get_row(config.factory_id)
        if row is None:
            return self.create(PlantConfig(factory_id=config.factory_id, **values))
        return self.update(row, values)

    def list_auto_schedule_enabled(self) -> list:
        return (
            self.db.query(PlantConfig)
            .filter(PlantConfig.auto_schedule_enabled.is_(True))
            .order_by(PlantConfig.factory_id)
            .all()
        )
