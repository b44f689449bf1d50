"""
Local filesystem backend for development.

Files are written to a directory served under ``/images``. The returned
URL carries a cache-buster so a regenerated image replaces the old one
in the browser.
"""

import os
import time
from typing import Optional

from flashmoji.config import config
from flashmoji.errors import PublishError
from flashmoji.utils.logging import storage_logger as logger


class LocalImageStorage:
    """ImageStorage that writes into a local directory."""

    def __init__(self, directory: Optional[str] = None, url_prefix: str = "/images"):
        self.directory = directory or config.LOCAL_IMAGES_DIR
        self.url_prefix = url_prefix.rstrip("/")

    async def ensure_container(self) -> None:
        os.makedirs(self.directory, exist_ok=True)

    async def write(self, key: str, data: bytes, content_type: str) -> str:
        filepath = os.path.join(self.directory, key)
        try:
            with open(filepath, "wb") as f:
                f.write(data)
        except OSError as e:
            raise PublishError(f"Failed to save image {filepath}: {e}") from e

        logger.info("Saved image locally", path=filepath, content_type=content_type)
        return f"{self.url_prefix}/{key}?t={int(time.time() * 1000)}"
