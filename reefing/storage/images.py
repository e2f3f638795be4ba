"""
Image attachment helpers shared by every entity that carries photos.

Uploads are validated in full before anything touches the bucket; reads turn
stored keys into presigned URLs and simply drop the ones that fail to sign.
"""

import asyncio
import logging
import re
import time
import uuid
from dataclasses import dataclass
from typing import List, Optional

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from reefing.config import settings
from reefing.core.errors import InternalError, UploadRejected
from reefing.storage.s3_storage import S3Storage

logger = logging.getLogger(__name__)

AQUARIUMS = "aquariums"
CORALS = "corals"
USERS = "users"

INVALID_TYPE_MESSAGE = "File must be a JPEG, PNG, WebP, or GIF image"


@dataclass
class ImageUpload:
    filename: str
    content_type: str
    content: bytes


def sanitize_file_name(file_name: Optional[str]) -> str:
    basename = re.split(r"[\\/]", file_name or "")[-1] or "upload"
    return re.sub(r"[^a-zA-Z0-9._-]", "_", basename)[:100]


def build_blob_key(kind: str, entity_id: str, file_name: Optional[str]) -> str:
    """<kind>/<entity id>/<epoch ms>-<random>-<file name>"""
    stamp = int(time.time() * 1000)
    return f"{kind}/{entity_id}/{stamp}-{uuid.uuid4().hex[:8]}-{sanitize_file_name(file_name)}"


async def read_image(file: Optional[UploadFile]) -> ImageUpload:
    """Validate MIME type and size of one multipart part and return its bytes."""
    if file is None:
        raise UploadRejected("No file uploaded")

    content_type = (file.content_type or "").lower()
    if content_type not in settings.get_allowed_image_types():
        raise UploadRejected(INVALID_TYPE_MESSAGE)

    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes / (1024 * 1024)
        raise UploadRejected(f"File too large. Maximum size is {limit_mb:.1f}MB")
    if not content:
        raise UploadRejected("Uploaded file is empty")

    return ImageUpload(filename=file.filename or "upload", content_type=content_type, content=content)


async def read_images(files: Optional[List[UploadFile]]) -> List[ImageUpload]:
    if not files:
        raise UploadRejected("No file uploaded")
    if len(files) > settings.max_photos_per_upload:
        raise UploadRejected(f"Too many files. Maximum is {settings.max_photos_per_upload} per upload")
    return [await read_image(f) for f in files]


async def upload_image(storage: S3Storage, kind: str, entity_id: str, image: ImageUpload) -> str:
    key = build_blob_key(kind, entity_id, image.filename)
    await run_in_threadpool(storage.upload_file, image.content, key, image.content_type)
    return key


async def upload_single_image(storage: S3Storage, kind: str, entity_id: str, image: ImageUpload) -> str:
    try:
        return await upload_image(storage, kind, entity_id, image)
    except Exception as e:
        logger.exception(f"Failed to upload {image.filename} for {kind} {entity_id}: {e}")
        raise InternalError("Failed to upload photo") from e


async def upload_images(storage: S3Storage, kind: str, entity_id: str, images: List[ImageUpload]) -> List[str]:
    """Upload concurrently. Returns the keys that made it; failures are logged, not rolled back."""
    results = await asyncio.gather(
        *(upload_image(storage, kind, entity_id, image) for image in images),
        return_exceptions=True,
    )
    keys = []
    for image, result in zip(images, results):
        if isinstance(result, Exception):
            logger.error("Failed to upload %s for %s %s: %s", image.filename, kind, entity_id, result)
        else:
            keys.append(result)
    return keys


def resolve_signed_url(storage: S3Storage, key: Optional[str]) -> Optional[str]:
    if not key:
        return None
    try:
        return storage.get_signed_url(key)
    except Exception as e:
        logger.warning(f"Failed to sign URL for {key}: {e}")
        return None
