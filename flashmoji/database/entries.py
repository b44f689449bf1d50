"""
Word Entry Service

Writes image generation outcomes onto flashcard entries in the
``word_entries`` table. The queue treats every write here as
best-effort: failures raise PersistenceError and are logged by the caller.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from supabase import Client

from flashmoji.database.client import get_supabase_admin_client
from flashmoji.errors import PersistenceError
from flashmoji.utils.logging import database_logger as logger


TABLE = "word_entries"

# Image statuses an entry can hold
IMAGE_STATUS_NONE = "none"
IMAGE_STATUS_QUEUED = "queued"
IMAGE_STATUS_PROCESSING = "processing"
IMAGE_STATUS_COMPLETED = "completed"
IMAGE_STATUS_ERROR = "error"

STALE_IMAGE_STATUSES = [IMAGE_STATUS_QUEUED, IMAGE_STATUS_PROCESSING]


class EntryStore(Protocol):
    """What the queue needs from the system of record."""

    async def update(self, entry_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        ...


class WordEntryService:
    """
    Service class for flashcard entry updates.
    """

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_admin_client()
        return self._client

    # =========================================================================
    # Updates
    # =========================================================================

    async def update(self, entry_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Update entry fields. Keys are column names."""
        update_data = dict(fields)
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

        try:
            result = await asyncio.to_thread(self._update, entry_id, update_data)
        except Exception as e:
            raise PersistenceError(f"Failed to update entry {entry_id}: {e}") from e

        if not result.data:
            raise PersistenceError(f"Entry {entry_id} not found")

        return result.data[0]

    def _update(self, entry_id: int, update_data: Dict[str, Any]):
        return (
            self.client.table(TABLE)
            .update(update_data)
            .eq("id", entry_id)
            .execute()
        )

    # =========================================================================
    # Restart Reconciliation
    # =========================================================================

    async def get_stale_image_entries(self) -> List[Dict[str, Any]]:
        """Entries left queued/processing, e.g. by a process that restarted."""
        try:
            result = await asyncio.to_thread(
                lambda: (
                    self.client.table(TABLE)
                    .select("id, original_text, image_status")
                    .in_("image_status", STALE_IMAGE_STATUSES)
                    .execute()
                )
            )
        except Exception as e:
            raise PersistenceError(f"Failed to list stale entries: {e}") from e
        return result.data or []

    async def reset_stale_image_statuses(self) -> int:
        """
        Reset entries stuck in queued/processing back to 'none'.

        The image queue lives in memory, so after a restart nothing will
        ever finish those entries. Returns the number of entries reset.
        """
        try:
            result = await asyncio.to_thread(
                lambda: (
                    self.client.table(TABLE)
                    .update({
                        "image_status": IMAGE_STATUS_NONE,
                        "updated_at": datetime.now(timezone.utc).isoformat(),
                    })
                    .in_("image_status", STALE_IMAGE_STATUSES)
                    .execute()
                )
            )
        except Exception as e:
            raise PersistenceError(f"Failed to reset stale entries: {e}") from e

        count = len(result.data or [])
        if count:
            logger.warning("Reset stale image statuses", count=count)
        return count
