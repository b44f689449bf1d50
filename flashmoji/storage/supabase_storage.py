"""
Supabase Storage backend for published images.

Images live at ``images/<key>`` inside a public bucket. The supabase
client is synchronous, so calls run in a worker thread.
"""

import asyncio
from typing import Optional

from supabase import Client

from flashmoji.config import config
from flashmoji.database.client import get_supabase_admin_client
from flashmoji.errors import PublishError
from flashmoji.utils.logging import storage_logger as logger


ALLOWED_MIME_TYPES = ["image/png", "image/jpeg"]
FILE_SIZE_LIMIT = 5 * 1024 * 1024


class SupabaseImageStorage:
    """ImageStorage backed by a Supabase Storage bucket."""

    def __init__(
        self,
        client: Optional[Client] = None,
        bucket: Optional[str] = None,
        folder: str = "images"
    ):
        self._client = client
        self.bucket = bucket or config.IMAGE_BUCKET
        self.folder = folder

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_admin_client()
        return self._client

    def _path(self, key: str) -> str:
        return f"{self.folder}/{key}" if self.folder else key

    async def ensure_container(self) -> None:
        """Create the bucket if it is missing."""
        try:
            await asyncio.to_thread(self._ensure_bucket)
        except Exception as e:
            raise PublishError(f"Could not ensure bucket {self.bucket}: {e}") from e

    def _ensure_bucket(self) -> None:
        buckets = self.client.storage.list_buckets()
        if any(b.name == self.bucket for b in buckets):
            logger.debug("Bucket already exists", bucket=self.bucket)
            return

        logger.info("Creating storage bucket", bucket=self.bucket)
        self.client.storage.create_bucket(
            self.bucket,
            options={
                "public": True,
                "allowed_mime_types": ALLOWED_MIME_TYPES,
                "file_size_limit": FILE_SIZE_LIMIT,
            },
        )

    async def write(self, key: str, data: bytes, content_type: str) -> str:
        """Upload (upsert) an image and return its public URL."""
        path = self._path(key)
        try:
            return await asyncio.to_thread(self._upload, path, data, content_type)
        except Exception as e:
            raise PublishError(f"Failed to upload to Supabase: {e}") from e

    def _upload(self, path: str, data: bytes, content_type: str) -> str:
        bucket = self.client.storage.from_(self.bucket)
        bucket.upload(
            path,
            data,
            file_options={"content-type": content_type, "upsert": "true"},
        )
        public_url = bucket.get_public_url(path)
        logger.info("Uploaded image", path=path, url=public_url)
        return public_url
