from supabase import Client
from reefing.core.errors import InternalError, NotFoundError
from reefing.modules.corals.schemas import Coral, CoralCreate, CoralUpdate
from typing import Dict, List, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class CoralService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def find_by_id(self, coral_id: str) -> Optional[Coral]:
        result = self.supabase.table("corals")\
            .select("*")\
            .eq("id", coral_id)\
            .limit(1)\
            .execute()
        return Coral(**result.data[0]) if result.data else None

    def find_by_aquarium_id(self, aquarium_id: str) -> List[Coral]:
        result = self.supabase.table("corals")\
            .select("*")\
            .eq("aquarium_id", aquarium_id)\
            .order("created_at", desc=True)\
            .execute()
        return [Coral(**row) for row in result.data or []]

    def find_by_aquarium_ids(self, aquarium_ids: List[str]) -> Dict[str, List[Coral]]:
        """Return map aquarium_id -> corals, newest first."""
        if not aquarium_ids:
            return {}
        result = self.supabase.table("corals")\
            .select("*")\
            .in_("aquarium_id", aquarium_ids)\
            .order("created_at", desc=True)\
            .execute()
        out: Dict[str, List[Coral]] = {}
        for row in result.data or []:
            coral = Coral(**row)
            out.setdefault(coral.aquarium_id, []).append(coral)
        return out

    def create(self, aquarium_id: str, coral_data: CoralCreate) -> Coral:
        try:
            result = self.supabase.table("corals").insert({
                **coral_data.model_dump(mode="json"),
                "aquarium_id": aquarium_id,
            }).execute()
        except Exception as e:
            logger.exception(f"Failed to create coral in aquarium {aquarium_id}: {e}")
            raise InternalError("Failed to create coral") from e

        if not result.data:
            raise InternalError("Failed to create coral")
        return Coral(**result.data[0])

    def update(self, coral_id: str, coral_data: CoralUpdate) -> Coral:
        update_data = coral_data.model_dump(mode="json", exclude_unset=True)
        if "species" in update_data and update_data["species"] is None:
            del update_data["species"]
        return self._update(coral_id, update_data)

    def update_image_key(self, coral_id: str, image_key: str) -> Coral:
        return self._update(coral_id, {"image_key": image_key})

    def clear_image_key(self, coral_id: str) -> Coral:
        return self._update(coral_id, {"image_key": None})

    def _update(self, coral_id: str, update_data: dict) -> Coral:
        if not update_data:
            existing = self.find_by_id(coral_id)
            if existing is None:
                raise NotFoundError("Coral not found")
            return existing

        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("corals")\
                .update(update_data)\
                .eq("id", coral_id)\
                .execute()
        except Exception as e:
            logger.exception(f"Failed to update coral {coral_id}: {e}")
            raise InternalError("Failed to update coral") from e

        if not result.data:
            raise NotFoundError("Coral not found")
        return Coral(**result.data[0])

    def delete(self, coral_id: str) -> bool:
        result = self.supabase.table("corals")\
            .delete()\
            .eq("id", coral_id)\
            .execute()
        return len(result.data or []) > 0
