import asyncio
import logging
from typing import List, Optional

from starlette.concurrency import run_in_threadpool

from reefing.storage.s3_storage import S3Storage

logger = logging.getLogger(__name__)


class BlobCleanup:
    """
    Blob deletions attached to a primary row operation.

    Keys are collected while the route prepares the operation and deleted once
    it has been applied. Every deletion is independent and best-effort: a
    failure is logged and returned, never raised.
    """

    def __init__(self, storage: S3Storage, context: str = ""):
        self.storage = storage
        self.context = context
        self.keys: List[str] = []

    def add(self, *keys: Optional[str]) -> "BlobCleanup":
        self.keys.extend(k for k in keys if k)
        return self

    async def run(self) -> List[str]:
        """Delete every collected key; return the keys that could not be deleted."""
        if not self.keys:
            return []
        results = await asyncio.gather(
            *(run_in_threadpool(self.storage.delete_file, key) for key in self.keys),
            return_exceptions=True,
        )
        failed = []
        for key, result in zip(self.keys, results):
            if isinstance(result, Exception):
                failed.append(key)
                logger.warning("Blob cleanup failed for %s (%s): %s", key, self.context, result)
        self.keys = []
        return failed
