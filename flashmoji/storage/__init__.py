"""
Image storage backends.

Supabase in production, a local directory in development. Pick one with
STORAGE_BACKEND; ``get_image_storage()`` builds the configured backend.
"""

from flashmoji.config import AppConfig, config
from flashmoji.errors import StorageConfigError
from flashmoji.storage.base import ImageStorage
from flashmoji.storage.local import LocalImageStorage
from flashmoji.storage.supabase_storage import SupabaseImageStorage


def get_image_storage(settings: AppConfig = config) -> ImageStorage:
    """Build the storage backend selected by configuration."""
    if settings.STORAGE_BACKEND == "supabase":
        if not settings.supabase_configured:
            raise StorageConfigError(
                "STORAGE_BACKEND=supabase requires SUPABASE_URL and SUPABASE_SERVICE_KEY"
            )
        return SupabaseImageStorage(bucket=settings.IMAGE_BUCKET)
    return LocalImageStorage(directory=settings.LOCAL_IMAGES_DIR)


__all__ = [
    "ImageStorage",
    "LocalImageStorage",
    "SupabaseImageStorage",
    "get_image_storage",
]
