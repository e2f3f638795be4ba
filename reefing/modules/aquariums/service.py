from supabase import Client
from reefing.core.errors import InternalError, NotFoundError
from reefing.modules.aquariums.schemas import (
    Aquarium, AquariumCreate, AquariumUpdate, AquariumPhoto
)
from typing import Dict, List, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

# Present in the table but never nulled by a partial update
REQUIRED_FIELDS = ("name", "type", "volume")


class AquariumService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def find_by_id(self, aquarium_id: str) -> Optional[Aquarium]:
        """Get aquarium by ID, None when absent"""
        try:
            result = self.supabase.table("aquariums")\
                .select("*")\
                .eq("id", aquarium_id)\
                .limit(1)\
                .execute()
            return Aquarium(**result.data[0]) if result.data else None
        except Exception as e:
            logger.exception(f"Failed to fetch aquarium {aquarium_id}: {e}")
            raise InternalError("Failed to fetch aquarium") from e

    def find_by_user_id(self, user_id: str) -> List[Aquarium]:
        """All aquariums owned by a user, newest first"""
        try:
            result = self.supabase.table("aquariums")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            return [Aquarium(**row) for row in result.data or []]
        except Exception as e:
            logger.exception(f"Failed to fetch aquariums for user {user_id}: {e}")
            raise InternalError("Failed to fetch aquariums") from e

    def list_all(self, limit: int = 50, offset: int = 0) -> List[Aquarium]:
        result = self.supabase.table("aquariums")\
            .select("*")\
            .order("created_at", desc=True)\
            .range(offset, offset + limit - 1)\
            .execute()
        return [Aquarium(**row) for row in result.data or []]

    def create(self, user_id: str, aquarium_data: AquariumCreate) -> Aquarium:
        """Create a new aquarium owned by user_id"""
        try:
            result = self.supabase.table("aquariums").insert({
                "name": aquarium_data.name,
                "type": aquarium_data.type,
                "volume": aquarium_data.volume,
                "description": aquarium_data.description,
                "user_id": user_id,
            }).execute()

            if not result.data:
                raise InternalError("Failed to create aquarium")

            return Aquarium(**result.data[0])
        except InternalError:
            raise
        except Exception as e:
            logger.exception(f"Failed to create aquarium for user {user_id}: {e}")
            raise InternalError("Failed to create aquarium") from e

    def update(self, aquarium_id: str, aquarium_data: AquariumUpdate) -> Aquarium:
        """Merge the fields present in the request into the row"""
        update_data = aquarium_data.model_dump(mode="json", exclude_unset=True)
        for field in REQUIRED_FIELDS:
            if field in update_data and update_data[field] is None:
                del update_data[field]

        if not update_data:
            # No changes, return existing
            existing = self.find_by_id(aquarium_id)
            if existing is None:
                raise NotFoundError("Aquarium not found")
            return existing

        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("aquariums")\
                .update(update_data)\
                .eq("id", aquarium_id)\
                .execute()
        except Exception as e:
            logger.exception(f"Failed to update aquarium {aquarium_id}: {e}")
            raise InternalError("Failed to update aquarium") from e

        if not result.data:
            raise NotFoundError("Aquarium not found")
        return Aquarium(**result.data[0])

    def delete(self, aquarium_id: str) -> bool:
        """Delete aquarium; child rows go with it (ON DELETE CASCADE)"""
        try:
            result = self.supabase.table("aquariums")\
                .delete()\
                .eq("id", aquarium_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            logger.exception(f"Failed to delete aquarium {aquarium_id}: {e}")
            raise InternalError("Failed to delete aquarium") from e

    # Photos

    def list_photos(self, aquarium_id: str) -> List[AquariumPhoto]:
        result = self.supabase.table("aquarium_photos")\
            .select("*")\
            .eq("aquarium_id", aquarium_id)\
            .order("created_at")\
            .execute()
        return [AquariumPhoto(**row) for row in result.data or []]

    def list_photos_for_aquariums(self, aquarium_ids: List[str]) -> Dict[str, List[AquariumPhoto]]:
        """Return map aquarium_id -> photos, oldest first."""
        if not aquarium_ids:
            return {}
        result = self.supabase.table("aquarium_photos")\
            .select("*")\
            .in_("aquarium_id", aquarium_ids)\
            .order("created_at")\
            .execute()
        out: Dict[str, List[AquariumPhoto]] = {}
        for row in result.data or []:
            photo = AquariumPhoto(**row)
            out.setdefault(photo.aquarium_id, []).append(photo)
        return out

    def add_photos(self, aquarium_id: str, image_keys: List[str]) -> List[AquariumPhoto]:
        if not image_keys:
            return []
        try:
            result = self.supabase.table("aquarium_photos").insert(
                [{"aquarium_id": aquarium_id, "image_key": key} for key in image_keys]
            ).execute()
        except Exception as e:
            logger.exception(f"Failed to save photos for aquarium {aquarium_id}: {e}")
            raise InternalError("Failed to save photos") from e
        return [AquariumPhoto(**row) for row in result.data or []]

    def find_photo(self, photo_id: str) -> Optional[AquariumPhoto]:
        result = self.supabase.table("aquarium_photos")\
            .select("*")\
            .eq("id", photo_id)\
            .limit(1)\
            .execute()
        return AquariumPhoto(**result.data[0]) if result.data else None

    def delete_photo(self, photo_id: str) -> bool:
        result = self.supabase.table("aquarium_photos")\
            .delete()\
            .eq("id", photo_id)\
            .execute()
        return len(result.data or []) > 0
