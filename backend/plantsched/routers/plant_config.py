from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from plantsched.database import get_db
from plantsched.schemas.plant_config import PlantConfigResponse, PlantConfigUpsertRequest
from plantsched.services.plant_config_service import PlantConfigService


router = APIRouter(prefix="/plant-config", tags=["Plant Config"])


def get_plant_config_service(db: Session = Depends(get_db)) -> PlantConfigService:
    return PlantConfigService(db)


@router.get("/{factory_id}", response_model=PlantConfigResponse)
def get_plant_config(factory_id: int, service: PlantConfigService = Depends(get_plant_config_service)):
    return PlantConfigResponse.from_config(service.get(factory_id))


@router.put("/{factory_id}", response_model=PlantConfigResponse)
def upsert_plant_config(
    factory_id: int,
    body: PlantConfigUpsertRequest,
    service: PlantConfigService = Depends(get_plant_config_service),
):
    return PlantConfigResponse.from_config(service.upsert(factory_id, body))
