from fastapi import APIRouter, Depends
from reefing.core.dependencies import ensure_user, get_owned_aquarium
from reefing.core.ownership import load_child
from reefing.core.responses import ApiResponse, ok
from reefing.database.supabase_client import get_supabase
from reefing.modules.aquariums.schemas import Aquarium
from reefing.modules.equipment.schemas import Equipment, EquipmentCreate, EquipmentUpdate
from reefing.modules.equipment.service import EquipmentService
from reefing.modules.users.schemas import User
from supabase import Client
from typing import List
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/aquariums/{aquarium_id}/equipment", tags=["equipment"])


def get_equipment_service(supabase: Client = Depends(get_supabase)) -> EquipmentService:
    return EquipmentService(supabase)


def get_owned_equipment(
    equipment_id: str,
    aquarium: Aquarium = Depends(get_owned_aquarium),
    service: EquipmentService = Depends(get_equipment_service),
) -> Equipment:
    return load_child(
        service.find_by_id,
        equipment_id,
        aquarium.id,
        parent_of=lambda item: item.aquarium_id,
        label="Equipment",
    )


@router.get("", response_model=ApiResponse[List[Equipment]])
async def list_equipment(
    aquarium: Aquarium = Depends(get_owned_aquarium),
    service: EquipmentService = Depends(get_equipment_service),
):
    """All equipment in an aquarium the caller owns"""
    return ok(service.find_by_aquarium_id(aquarium.id))


@router.post("", response_model=ApiResponse[Equipment], status_code=201)
async def create_equipment(
    equipment_data: EquipmentCreate,
    aquarium: Aquarium = Depends(get_owned_aquarium),
    user: User = Depends(ensure_user),
    service: EquipmentService = Depends(get_equipment_service),
):
    equipment = service.create(aquarium.id, equipment_data)
    logger.info("Equipment %s added to aquarium %s by user %s", equipment.id, aquarium.id, user.id)
    return ok(equipment, "Equipment added successfully")


@router.get("/{equipment_id}", response_model=ApiResponse[Equipment])
async def get_equipment(equipment: Equipment = Depends(get_owned_equipment)):
    return ok(equipment)


@router.put("/{equipment_id}", response_model=ApiResponse[Equipment])
async def update_equipment(
    equipment_data: EquipmentUpdate,
    equipment: Equipment = Depends(get_owned_equipment),
    service: EquipmentService = Depends(get_equipment_service),
):
    """Partial update"""
    return ok(service.update(equipment.id, equipment_data), "Equipment updated successfully")


@router.delete("/{equipment_id}", response_model=ApiResponse[None])
async def delete_equipment(
    equipment: Equipment = Depends(get_owned_equipment),
    service: EquipmentService = Depends(get_equipment_service),
):
    service.delete(equipment.id)
    logger.info("Equipment %s deleted from aquarium %s", equipment.id, equipment.aquarium_id)
    return ok(message="Equipment deleted successfully")
