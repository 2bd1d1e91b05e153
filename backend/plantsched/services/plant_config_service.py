import logging

from sqlalchemy.orm import Session

from plantsched.core.exceptions import EntityNotFoundException
from plantsched.models.plant_config import PlantConfig
from plantsched.repositories.plant_config_repository import PlantConfigRepository
from plantsched.scheduling.calendar import PlantCapacityConfig
from plantsched.schemas.plant_config import PlantConfigUpsertRequest
from plantsched.utils.logging import log_event

logger = logging.getLogger(__name__)


class PlantConfigService:
    def __init__(self, db: Session):
        self._db = db
        self._repo = PlantConfigRepository(db)

    def get(self, factory_id: int) -> PlantCapacityConfig:
        if self._repo.get_row(factory_id) is None:
            raise EntityNotFoundException("PlantConfig", factory_id)
        return self._repo.get_config(factory_id)

    def upsert(self, factory_id: int, body: PlantConfigUpsertRequest) -> PlantCapacityConfig:
        config = PlantCapacityConfig.build(
            factory_id=factory_id,
            target_throughput_per_day=body.target_throughput_per_day,
            work_days=body.work_days,
            holidays=body.holidays,
            max_wip_per_station=body.max_wip_per_station,
            auto_schedule_enabled=body.auto_schedule_enabled,
        )
        row: PlantConfig = self._repo.upsert(config)
        log_event(
            logger,
            "plant_config_saved",
            factory_id=factory_id,
            target=config.target_throughput_per_day,
            work_days=config.sorted_work_days(),
            holidays=len(config.holidays),
            config_id=row.id,
        )
        return config
