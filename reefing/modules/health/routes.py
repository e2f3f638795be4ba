from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
from reefing.core.dependencies import ensure_user
from reefing.core.errors import InternalError
from reefing.core.rate_limit import limiter
from reefing.core.responses import ApiResponse, ok
from reefing.database.supabase_client import get_supabase, ping
from reefing.modules.users.schemas import User
from reefing.storage.s3_storage import S3Storage, get_storage
from supabase import Client
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=ApiResponse[dict])
@limiter.exempt
async def health(request: Request):
    """Liveness check"""
    return ok({"timestamp": datetime.now(timezone.utc).isoformat()}, "API is running")


@router.get("/db", response_model=ApiResponse[dict])
async def health_db(
    user: User = Depends(ensure_user),
    supabase: Client = Depends(get_supabase),
):
    try:
        await run_in_threadpool(ping, supabase)
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        raise InternalError("Database unreachable") from e
    return ok({"database": "ok"}, "Database is reachable")


@router.get("/s3", response_model=ApiResponse[dict])
async def health_s3(
    user: User = Depends(ensure_user),
    storage: S3Storage = Depends(get_storage),
):
    try:
        await run_in_threadpool(storage.check_bucket)
    except Exception as e:
        logger.error(f"S3 health check failed: {e}")
        raise InternalError("Object storage unreachable") from e
    return ok({"bucket": storage.bucket_name}, "Object storage is reachable")
