from fastapi import APIRouter, Depends, File, Request, UploadFile
from reefing.core.auth import Identity
from reefing.core.dependencies import ensure_user, get_identity, get_user_service
from reefing.core.rate_limit import upload_limit
from reefing.core.responses import ApiResponse, ok
from reefing.modules.users.schemas import User, UserResponse, UserUpdate
from reefing.modules.users.service import UserService
from reefing.storage import images
from reefing.storage.cleanup import BlobCleanup
from reefing.storage.s3_storage import S3Storage, get_storage
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def present_user(user: User, storage: S3Storage) -> UserResponse:
    return UserResponse(
        **user.model_dump(exclude={"profile_image_key"}),
        profile_image_url=images.resolve_signed_url(storage, user.profile_image_key),
    )


@router.post("/sync", response_model=ApiResponse[UserResponse])
async def sync_user(
    request: Request,
    user: User = Depends(ensure_user),
    identity: Identity = Depends(get_identity),
    service: UserService = Depends(get_user_service),
    storage: S3Storage = Depends(get_storage),
):
    """
    Called by the client right after login. Resolving the user already happened
    in ensure_user; this fills in a missing display name from the token.
    """
    if identity.name and not user.name:
        user = service.update_profile(user.id, UserUpdate(name=identity.name))
    created = getattr(request.state, "user_created", False)
    return ok(present_user(user, storage), "User created" if created else "User synced")


@router.get("/me", response_model=ApiResponse[UserResponse])
async def get_me(
    user: User = Depends(ensure_user),
    storage: S3Storage = Depends(get_storage),
):
    return ok(present_user(user, storage))


@router.put("/me", response_model=ApiResponse[UserResponse])
async def update_me(
    user_data: UserUpdate,
    user: User = Depends(ensure_user),
    service: UserService = Depends(get_user_service),
    storage: S3Storage = Depends(get_storage),
):
    updated = service.update_profile(user.id, user_data)
    return ok(present_user(updated, storage), "Profile updated successfully")


@router.post("/me/photo", response_model=ApiResponse[UserResponse])
@upload_limit
async def upload_profile_photo(
    request: Request,
    photo: Optional[UploadFile] = File(None),
    user: User = Depends(ensure_user),
    service: UserService = Depends(get_user_service),
    storage: S3Storage = Depends(get_storage),
):
    image = await images.read_image(photo)
    await BlobCleanup(storage, context=f"user {user.id} profile photo replacement").add(user.profile_image_key).run()

    key = await images.upload_single_image(storage, images.USERS, user.id, image)
    updated = service.update_profile_image_key(user.id, key)
    logger.info("Profile photo uploaded for user %s", user.id)
    return ok(present_user(updated, storage), "Profile photo uploaded successfully")


@router.delete("/me/photo", response_model=ApiResponse[UserResponse])
async def delete_profile_photo(
    user: User = Depends(ensure_user),
    service: UserService = Depends(get_user_service),
    storage: S3Storage = Depends(get_storage),
):
    cleanup = BlobCleanup(storage, context=f"user {user.id} profile photo deletion").add(user.profile_image_key)
    updated = service.update_profile_image_key(user.id, None)
    await cleanup.run()
    return ok(present_user(updated, storage), "Profile photo deleted successfully")
