from pydantic import Field
from typing import Optional
from datetime import datetime

from reefing.core.responses import CamelModel


class EquipmentCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    type: str = Field(min_length=1, max_length=100)
    brand: Optional[str] = None
    notes: Optional[str] = None


class EquipmentUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    type: Optional[str] = Field(default=None, min_length=1, max_length=100)
    brand: Optional[str] = None
    notes: Optional[str] = None


class Equipment(CamelModel):
    id: str
    name: str
    type: str
    brand: Optional[str] = None
    notes: Optional[str] = None
    aquarium_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None
