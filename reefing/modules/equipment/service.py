from supabase import Client
from reefing.core.errors import InternalError, NotFoundError
from reefing.modules.equipment.schemas import Equipment, EquipmentCreate, EquipmentUpdate
from typing import Dict, List, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class EquipmentService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def find_by_id(self, equipment_id: str) -> Optional[Equipment]:
        result = self.supabase.table("equipment")\
            .select("*")\
            .eq("id", equipment_id)\
            .limit(1)\
            .execute()
        return Equipment(**result.data[0]) if result.data else None

    def find_by_aquarium_id(self, aquarium_id: str) -> List[Equipment]:
        result = self.supabase.table("equipment")\
            .select("*")\
            .eq("aquarium_id", aquarium_id)\
            .order("created_at", desc=True)\
            .execute()
        return [Equipment(**row) for row in result.data or []]

    def find_by_aquarium_ids(self, aquarium_ids: List[str]) -> Dict[str, List[Equipment]]:
        if not aquarium_ids:
            return {}
        result = self.supabase.table("equipment")\
            .select("*")\
            .in_("aquarium_id", aquarium_ids)\
            .order("created_at", desc=True)\
            .execute()
        out: Dict[str, List[Equipment]] = {}
        for row in result.data or []:
            item = Equipment(**row)
            out.setdefault(item.aquarium_id, []).append(item)
        return out

    def create(self, aquarium_id: str, equipment_data: EquipmentCreate) -> Equipment:
        try:
            result = self.supabase.table("equipment").insert({
                **equipment_data.model_dump(mode="json"),
                "aquarium_id": aquarium_id,
            }).execute()
        except Exception as e:
            logger.exception(f"Failed to create equipment in aquarium {aquarium_id}: {e}")
            raise InternalError("Failed to create equipment") from e

        if not result.data:
            raise InternalError("Failed to create equipment")
        return Equipment(**result.data[0])

    def update(self, equipment_id: str, equipment_data: EquipmentUpdate) -> Equipment:
        update_data = equipment_data.model_dump(mode="json", exclude_unset=True)
        for field in ("name", "type"):
            if field in update_data and update_data[field] is None:
                del update_data[field]
        if not update_data:
            existing = self.find_by_id(equipment_id)
            if existing is None:
                raise NotFoundError("Equipment not found")
            return existing

        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("equipment")\
                .update(update_data)\
                .eq("id", equipment_id)\
                .execute()
        except Exception as e:
            logger.exception(f"Failed to update equipment {equipment_id}: {e}")
            raise InternalError("Failed to update equipment") from e

        if not result.data:
            raise NotFoundError("Equipment not found")
        return Equipment(**result.data[0])

    def delete(self, equipment_id: str) -> bool:
        result = self.supabase.table("equipment")\
            .delete()\
            .eq("id", equipment_id)\
            .execute()
        return len(result.data or []) > 0
