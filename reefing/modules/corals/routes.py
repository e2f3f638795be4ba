from fastapi import APIRouter, Depends, File, Request, UploadFile
from reefing.core.dependencies import get_owned_aquarium
from reefing.core.ownership import load_child
from reefing.core.rate_limit import upload_limit
from reefing.core.responses import ApiResponse, ok
from reefing.database.supabase_client import get_supabase
from reefing.modules.aquariums.schemas import Aquarium
from reefing.modules.corals.schemas import Coral, CoralCreate, CoralResponse, CoralUpdate
from reefing.modules.corals.service import CoralService
from reefing.storage import images
from reefing.storage.cleanup import BlobCleanup
from reefing.storage.s3_storage import S3Storage, get_storage
from supabase import Client
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/aquariums/{aquarium_id}/corals", tags=["corals"])


def get_coral_service(supabase: Client = Depends(get_supabase)) -> CoralService:
    return CoralService(supabase)


def present_coral(coral: Coral, storage: S3Storage) -> CoralResponse:
    """Swap the internal image key for a signed URL"""
    return CoralResponse(
        **coral.model_dump(exclude={"image_key"}),
        image_url=images.resolve_signed_url(storage, coral.image_key),
    )


def get_owned_coral(
    coral_id: str,
    aquarium: Aquarium = Depends(get_owned_aquarium),
    service: CoralService = Depends(get_coral_service),
) -> Coral:
    return load_child(
        service.find_by_id,
        coral_id,
        aquarium.id,
        parent_of=lambda coral: coral.aquarium_id,
        label="Coral",
    )


@router.get("", response_model=ApiResponse[List[CoralResponse]])
async def list_corals(
    aquarium: Aquarium = Depends(get_owned_aquarium),
    service: CoralService = Depends(get_coral_service),
    storage: S3Storage = Depends(get_storage),
):
    corals = service.find_by_aquarium_id(aquarium.id)
    return ok([present_coral(c, storage) for c in corals])


@router.post("", response_model=ApiResponse[CoralResponse], status_code=201)
async def create_coral(
    coral_data: CoralCreate,
    aquarium: Aquarium = Depends(get_owned_aquarium),
    service: CoralService = Depends(get_coral_service),
):
    coral = service.create(aquarium.id, coral_data)
    logger.info("Coral %s added to aquarium %s", coral.id, aquarium.id)
    return ok(CoralResponse(**coral.model_dump(exclude={"image_key"})), "Coral added successfully")


@router.get("/{coral_id}", response_model=ApiResponse[CoralResponse])
async def get_coral(
    coral: Coral = Depends(get_owned_coral),
    storage: S3Storage = Depends(get_storage),
):
    return ok(present_coral(coral, storage))


@router.put("/{coral_id}", response_model=ApiResponse[CoralResponse])
async def update_coral(
    coral_data: CoralUpdate,
    coral: Coral = Depends(get_owned_coral),
    service: CoralService = Depends(get_coral_service),
    storage: S3Storage = Depends(get_storage),
):
    """Partial update; the photo has its own sub-route"""
    updated = service.update(coral.id, coral_data)
    return ok(present_coral(updated, storage), "Coral updated successfully")


@router.delete("/{coral_id}", response_model=ApiResponse[None])
async def delete_coral(
    coral: Coral = Depends(get_owned_coral),
    service: CoralService = Depends(get_coral_service),
    storage: S3Storage = Depends(get_storage),
):
    cleanup = BlobCleanup(storage, context=f"coral {coral.id} deletion").add(coral.image_key)
    service.delete(coral.id)
    await cleanup.run()
    logger.info("Coral %s deleted from aquarium %s", coral.id, coral.aquarium_id)
    return ok(message="Coral deleted successfully")


@router.post("/{coral_id}/photo", response_model=ApiResponse[CoralResponse])
@upload_limit
async def upload_coral_photo(
    request: Request,
    photo: Optional[UploadFile] = File(None),
    coral: Coral = Depends(get_owned_coral),
    service: CoralService = Depends(get_coral_service),
    storage: S3Storage = Depends(get_storage),
):
    """Replace the coral's photo. The previous blob is removed first; a failed delete does not block the upload."""
    image = await images.read_image(photo)
    await BlobCleanup(storage, context=f"coral {coral.id} photo replacement").add(coral.image_key).run()

    key = await images.upload_single_image(storage, images.CORALS, coral.id, image)
    updated = service.update_image_key(coral.id, key)
    logger.info("Coral photo uploaded for %s", coral.id)
    return ok(present_coral(updated, storage), "Photo uploaded successfully")


@router.delete("/{coral_id}/photo", response_model=ApiResponse[CoralResponse])
async def delete_coral_photo(
    coral: Coral = Depends(get_owned_coral),
    service: CoralService = Depends(get_coral_service),
    storage: S3Storage = Depends(get_storage),
):
    cleanup = BlobCleanup(storage, context=f"coral {coral.id} photo deletion").add(coral.image_key)
    updated = service.clear_image_key(coral.id)
    await cleanup.run()
    logger.info("Coral photo deleted for %s", coral.id)
    return ok(present_coral(updated, storage), "Photo deleted successfully")
