from typing import List, Optional

from pydantic import Field

from reefing.core.responses import CamelModel
from reefing.modules.aquariums.schemas import AquariumResponse
from reefing.modules.corals.schemas import CoralResponse
from reefing.modules.equipment.schemas import Equipment


class PublicOwner(CamelModel):
    name: Optional[str] = None
    username: Optional[str] = None


class PublicAquarium(AquariumResponse):
    # The nested owner summary stands in for the raw owner id
    user_id: Optional[str] = Field(default=None, exclude=True)
    user: Optional[PublicOwner] = None
    equipment: List[Equipment] = []
    corals: List[CoralResponse] = []


class PublicCollection(CamelModel):
    user: PublicOwner
    aquariums: List[PublicAquarium]
