"""
Read-only aggregates behind the unauthenticated gallery pages.

Rows are joined in Python with one `in` query per child table instead of
per-aquarium lookups.
"""

from dataclasses import dataclass, field
from supabase import Client
from reefing.core.errors import NotFoundError
from reefing.modules.aquariums.schemas import Aquarium, AquariumPhoto
from reefing.modules.aquariums.service import AquariumService
from reefing.modules.corals.schemas import Coral
from reefing.modules.corals.service import CoralService
from reefing.modules.equipment.schemas import Equipment
from reefing.modules.equipment.service import EquipmentService
from reefing.modules.users.schemas import User
from reefing.modules.users.service import UserService
from typing import List, Optional, Tuple


@dataclass
class AquariumBundle:
    aquarium: Aquarium
    owner: Optional[User] = None
    photos: List[AquariumPhoto] = field(default_factory=list)
    equipment: List[Equipment] = field(default_factory=list)
    corals: List[Coral] = field(default_factory=list)


class PublicService:
    def __init__(self, supabase: Client):
        self.aquariums = AquariumService(supabase)
        self.equipment = EquipmentService(supabase)
        self.corals = CoralService(supabase)
        self.users = UserService(supabase)

    def _bundle(self, aquariums: List[Aquarium], owners: List[User]) -> List[AquariumBundle]:
        ids = [a.id for a in aquariums]
        owners_by_id = {u.id: u for u in owners}
        photos = self.aquariums.list_photos_for_aquariums(ids)
        equipment = self.equipment.find_by_aquarium_ids(ids)
        corals = self.corals.find_by_aquarium_ids(ids)
        return [
            AquariumBundle(
                aquarium=a,
                owner=owners_by_id.get(a.user_id),
                photos=photos.get(a.id, []),
                equipment=equipment.get(a.id, []),
                corals=corals.get(a.id, []),
            )
            for a in aquariums
        ]

    def explore(self, limit: int = 50, offset: int = 0) -> List[AquariumBundle]:
        """Every aquarium, newest first, with its owner's public profile"""
        aquariums = self.aquariums.list_all(limit=limit, offset=offset)
        owners = self.users.find_by_ids([a.user_id for a in aquariums])
        return self._bundle(aquariums, owners)

    def collection(self, username: str) -> Tuple[User, List[AquariumBundle]]:
        user = self.users.find_by_username(username)
        if user is None:
            raise NotFoundError("User not found")
        aquariums = self.aquariums.find_by_user_id(user.id)
        return user, self._bundle(aquariums, [user])
