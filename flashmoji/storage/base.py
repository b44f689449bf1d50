"""Interface shared by image storage backends."""

from typing import Protocol


class ImageStorage(Protocol):
    """A place where published images can be written and served from."""

    async def ensure_container(self) -> None:
        """Create the bucket/directory if it does not exist. Idempotent."""
        ...

    async def write(self, key: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``key`` (overwriting) and return its public URL."""
        ...
