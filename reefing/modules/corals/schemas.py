from pydantic import Field
from typing import Optional
from datetime import date, datetime

from reefing.core.responses import CamelModel


class CoralCreate(CamelModel):
    species: str = Field(min_length=1, max_length=200)
    placement: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    acquisition_date: Optional[date] = None
    source: Optional[str] = None
    notes: Optional[str] = None


class CoralUpdate(CamelModel):
    species: Optional[str] = Field(default=None, min_length=1, max_length=200)
    placement: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    acquisition_date: Optional[date] = None
    source: Optional[str] = None
    notes: Optional[str] = None


class CoralBase(CamelModel):
    id: str
    species: str
    placement: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    acquisition_date: Optional[date] = None
    source: Optional[str] = None
    notes: Optional[str] = None
    aquarium_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class Coral(CoralBase):
    image_key: Optional[str] = None


class CoralResponse(CoralBase):
    image_url: Optional[str] = None
