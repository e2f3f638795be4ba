from fastapi import APIRouter, Depends, File, Request, UploadFile
from reefing.core.dependencies import ensure_user, get_aquarium_service, get_owned_aquarium
from reefing.core.errors import InternalError
from reefing.core.ownership import load_child
from reefing.core.rate_limit import upload_limit
from reefing.core.responses import ApiResponse, ok
from reefing.database.supabase_client import get_supabase
from reefing.modules.aquariums.schemas import (
    Aquarium, AquariumCreate, AquariumUpdate, AquariumPhoto,
    AquariumPhotoResponse, AquariumResponse
)
from reefing.modules.aquariums.service import AquariumService
from reefing.modules.corals.service import CoralService
from reefing.modules.users.schemas import User
from reefing.storage import images
from reefing.storage.cleanup import BlobCleanup
from reefing.storage.s3_storage import S3Storage, get_storage
from supabase import Client
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/aquariums", tags=["aquariums"])


def get_coral_service(supabase: Client = Depends(get_supabase)) -> CoralService:
    return CoralService(supabase)


def present_photos(photos: List[AquariumPhoto], storage: S3Storage) -> List[AquariumPhotoResponse]:
    """Signed URLs for each photo; a photo whose URL cannot be signed is left out"""
    presented = []
    for photo in photos:
        url = images.resolve_signed_url(storage, photo.image_key)
        if url:
            presented.append(AquariumPhotoResponse(
                id=photo.id,
                aquarium_id=photo.aquarium_id,
                url=url,
                created_at=photo.created_at,
            ))
    return presented


def present_aquarium(aquarium: Aquarium, photos: List[AquariumPhoto], storage: S3Storage) -> AquariumResponse:
    presented = present_photos(photos, storage)
    return AquariumResponse(
        **aquarium.model_dump(),
        photos=presented,
        image_url=presented[0].url if presented else None,
    )


@router.get("", response_model=ApiResponse[List[AquariumResponse]])
async def list_aquariums(
    user: User = Depends(ensure_user),
    service: AquariumService = Depends(get_aquarium_service),
    storage: S3Storage = Depends(get_storage),
):
    """All aquariums of the current user, newest first"""
    aquariums = service.find_by_user_id(user.id)
    photos = service.list_photos_for_aquariums([a.id for a in aquariums])
    return ok([present_aquarium(a, photos.get(a.id, []), storage) for a in aquariums])


@router.post("", response_model=ApiResponse[AquariumResponse], status_code=201)
async def create_aquarium(
    aquarium_data: AquariumCreate,
    user: User = Depends(ensure_user),
    service: AquariumService = Depends(get_aquarium_service),
):
    aquarium = service.create(user.id, aquarium_data)
    logger.info("Aquarium created: %s (user %s)", aquarium.id, user.id)
    return ok(AquariumResponse(**aquarium.model_dump()), "Aquarium created successfully")


@router.get("/{aquarium_id}", response_model=ApiResponse[AquariumResponse])
async def get_aquarium(
    aquarium: Aquarium = Depends(get_owned_aquarium),
    service: AquariumService = Depends(get_aquarium_service),
    storage: S3Storage = Depends(get_storage),
):
    return ok(present_aquarium(aquarium, service.list_photos(aquarium.id), storage))


@router.put("/{aquarium_id}", response_model=ApiResponse[AquariumResponse])
async def update_aquarium(
    aquarium_data: AquariumUpdate,
    aquarium: Aquarium = Depends(get_owned_aquarium),
    service: AquariumService = Depends(get_aquarium_service),
    storage: S3Storage = Depends(get_storage),
):
    """Partial update: only the fields present in the body change"""
    updated = service.update(aquarium.id, aquarium_data)
    return ok(
        present_aquarium(updated, service.list_photos(aquarium.id), storage),
        "Aquarium updated successfully",
    )


@router.delete("/{aquarium_id}", response_model=ApiResponse[None])
async def delete_aquarium(
    aquarium: Aquarium = Depends(get_owned_aquarium),
    service: AquariumService = Depends(get_aquarium_service),
    coral_service: CoralService = Depends(get_coral_service),
    storage: S3Storage = Depends(get_storage),
):
    """
    Delete the aquarium row, then clean up every blob that hung off it (tank
    photos and coral photos). Blob failures are logged; the row is gone either way.
    """
    cleanup = BlobCleanup(storage, context=f"aquarium {aquarium.id} deletion")
    cleanup.add(*(photo.image_key for photo in service.list_photos(aquarium.id)))
    cleanup.add(*(coral.image_key for coral in coral_service.find_by_aquarium_id(aquarium.id)))

    service.delete(aquarium.id)
    failed = await cleanup.run()
    logger.info(
        "Aquarium deleted: %s (user %s, %d blob(s) left behind)", aquarium.id, aquarium.user_id, len(failed)
    )
    return ok(message="Aquarium deleted successfully")


@router.get("/{aquarium_id}/photos", response_model=ApiResponse[List[AquariumPhotoResponse]])
async def list_aquarium_photos(
    aquarium: Aquarium = Depends(get_owned_aquarium),
    service: AquariumService = Depends(get_aquarium_service),
    storage: S3Storage = Depends(get_storage),
):
    return ok(present_photos(service.list_photos(aquarium.id), storage))


async def _add_photos(
    aquarium: Aquarium,
    files: Optional[List[UploadFile]],
    service: AquariumService,
    storage: S3Storage,
) -> dict:
    uploads = await images.read_images(files)
    keys = await images.upload_images(storage, images.AQUARIUMS, aquarium.id, uploads)
    if not keys:
        raise InternalError("Failed to upload photos")

    service.add_photos(aquarium.id, keys)
    logger.info("Aquarium photos uploaded: %s (%d of %d)", aquarium.id, len(keys), len(uploads))

    if len(keys) < len(uploads):
        message = f"Uploaded {len(keys)} of {len(uploads)} photos"
    else:
        message = "Photos uploaded successfully"
    return ok(present_aquarium(aquarium, service.list_photos(aquarium.id), storage), message)


@router.post("/{aquarium_id}/photos", response_model=ApiResponse[AquariumResponse], status_code=201)
@upload_limit
async def upload_aquarium_photos(
    request: Request,
    photos: Optional[List[UploadFile]] = File(None),
    aquarium: Aquarium = Depends(get_owned_aquarium),
    service: AquariumService = Depends(get_aquarium_service),
    storage: S3Storage = Depends(get_storage),
):
    """Add one or more photos (repeated `photos` field). Uploads are independent."""
    return await _add_photos(aquarium, photos, service, storage)


@router.post("/{aquarium_id}/photo", response_model=ApiResponse[AquariumResponse], status_code=201)
@upload_limit
async def upload_aquarium_photo(
    request: Request,
    photo: Optional[UploadFile] = File(None),
    aquarium: Aquarium = Depends(get_owned_aquarium),
    service: AquariumService = Depends(get_aquarium_service),
    storage: S3Storage = Depends(get_storage),
):
    """Single `photo` field variant used by older clients"""
    return await _add_photos(aquarium, [photo] if photo is not None else None, service, storage)


@router.delete("/{aquarium_id}/photos/{photo_id}", response_model=ApiResponse[AquariumResponse])
async def delete_aquarium_photo(
    photo_id: str,
    aquarium: Aquarium = Depends(get_owned_aquarium),
    service: AquariumService = Depends(get_aquarium_service),
    storage: S3Storage = Depends(get_storage),
):
    photo = load_child(
        service.find_photo,
        photo_id,
        aquarium.id,
        parent_of=lambda p: p.aquarium_id,
        label="Photo",
    )
    cleanup = BlobCleanup(storage, context=f"aquarium {aquarium.id} photo {photo.id}").add(photo.image_key)
    service.delete_photo(photo.id)
    await cleanup.run()
    logger.info("Aquarium photo deleted: %s (aquarium %s)", photo.id, aquarium.id)
    return ok(
        present_aquarium(aquarium, service.list_photos(aquarium.id), storage),
        "Photo deleted successfully",
    )
