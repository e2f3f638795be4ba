from fastapi import APIRouter, Depends, HTTPException, Query
from reefing.core.errors import InternalError
from reefing.core.responses import ApiResponse, ok
from reefing.database.supabase_client import get_supabase
from reefing.modules.aquariums.routes import present_aquarium
from reefing.modules.corals.routes import present_coral
from reefing.modules.public.schemas import PublicAquarium, PublicCollection, PublicOwner
from reefing.modules.public.service import AquariumBundle, PublicService
from reefing.storage.s3_storage import S3Storage, get_storage
from supabase import Client
from typing import List
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/public", tags=["public"])


def get_public_service(supabase: Client = Depends(get_supabase)) -> PublicService:
    return PublicService(supabase)


def present_bundle(bundle: AquariumBundle, storage: S3Storage) -> PublicAquarium:
    aquarium = present_aquarium(bundle.aquarium, bundle.photos, storage)
    owner = None
    if bundle.owner is not None:
        owner = PublicOwner(name=bundle.owner.name, username=bundle.owner.username)
    return PublicAquarium(
        **aquarium.model_dump(exclude={"user_id"}),
        user=owner,
        equipment=bundle.equipment,
        corals=[present_coral(c, storage) for c in bundle.corals],
    )


@router.get("/explore", response_model=ApiResponse[List[PublicAquarium]])
async def explore(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: PublicService = Depends(get_public_service),
    storage: S3Storage = Depends(get_storage),
):
    """Public gallery of every tank (no auth)"""
    try:
        bundles = service.explore(limit=limit, offset=offset)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error fetching public aquariums: {e}")
        raise InternalError("Failed to fetch aquariums") from e
    return ok([present_bundle(b, storage) for b in bundles])


@router.get("/collection/{username}", response_model=ApiResponse[PublicCollection])
async def collection(
    username: str,
    service: PublicService = Depends(get_public_service),
    storage: S3Storage = Depends(get_storage),
):
    """One user's tanks, addressed by username (no auth)"""
    try:
        user, bundles = service.collection(username)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error fetching public collection for {username}: {e}")
        raise InternalError("Failed to fetch collection") from e
    return ok(PublicCollection(
        user=PublicOwner(name=user.name, username=user.username),
        aquariums=[present_bundle(b, storage) for b in bundles],
    ))
