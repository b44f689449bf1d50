"""
Asset publisher.

Provider-hosted outputs expire, so every finished image is downloaded and
re-uploaded to our own storage under a key derived from the entry id.
"""

import asyncio
from typing import Optional

import httpx

from flashmoji.config import config
from flashmoji.errors import FetchError
from flashmoji.storage.base import ImageStorage
from flashmoji.utils.logging import storage_logger as logger


DEFAULT_CONTENT_TYPE = "image/png"


def image_key(entry_id: int) -> str:
    """Storage key for an entry's image. Regenerating overwrites it."""
    return f"{entry_id}.png"


class AssetPublisher:
    """Makes a transient image URL permanently retrievable."""

    def __init__(
        self,
        storage: ImageStorage,
        http_client: Optional[httpx.AsyncClient] = None,
        fetch_timeout: Optional[float] = None
    ):
        self.storage = storage
        self._http_client = http_client
        self.fetch_timeout = fetch_timeout or config.HTTP_FETCH_TIMEOUT
        self._container_ready = False
        self._container_lock = asyncio.Lock()

    async def publish(self, source_url: str, entry_id: int) -> str:
        """Download ``source_url`` and store it for ``entry_id``. Returns the public URL."""
        data, content_type = await self.fetch(source_url)
        await self._ensure_container()
        public_url = await self.storage.write(image_key(entry_id), data, content_type)
        logger.info("Published image", entry_id=entry_id, url=public_url)
        return public_url

    async def fetch(self, source_url: str) -> tuple[bytes, str]:
        """Download image bytes and their media type."""
        logger.debug("Downloading image", url=source_url)
        try:
            if self._http_client is not None:
                response = await self._http_client.get(source_url)
            else:
                async with httpx.AsyncClient(
                    timeout=self.fetch_timeout, follow_redirects=True
                ) as http_client:
                    response = await http_client.get(source_url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Failed to fetch image: {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch image: {e}") from e

        content_type = response.headers.get("content-type", "")
        content_type = content_type.split(";", 1)[0].strip() or DEFAULT_CONTENT_TYPE
        return response.content, content_type

    async def _ensure_container(self):
        if self._container_ready:
            return
        async with self._container_lock:
            if not self._container_ready:
                await self.storage.ensure_container()
                self._container_ready = True
