from pydantic import Field
from typing import List, Literal, Optional
from datetime import datetime

from reefing.core.responses import CamelModel

AquariumType = Literal["reef", "saltwater", "freshwater"]


class AquariumCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    type: AquariumType
    volume: float = Field(gt=0)
    description: Optional[str] = None


class AquariumUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    type: Optional[AquariumType] = None
    volume: Optional[float] = Field(default=None, gt=0)
    description: Optional[str] = None


class Aquarium(CamelModel):
    id: str
    name: str
    type: str
    volume: float
    description: Optional[str] = None
    user_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class AquariumPhoto(CamelModel):
    """An aquarium_photos row. Internal: carries the S3 key."""

    id: str
    aquarium_id: str
    image_key: str
    created_at: datetime


class AquariumPhotoResponse(CamelModel):
    id: str
    aquarium_id: str
    url: str
    created_at: datetime


class AquariumResponse(Aquarium):
    photos: List[AquariumPhotoResponse] = []
    image_url: Optional[str] = None  # first photo, for cards and thumbnails
