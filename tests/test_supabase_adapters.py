"""Supabase storage and entry service against in-memory stand-ins."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from flashmoji.database.entries import WordEntryService
from flashmoji.errors import PersistenceError, PublishError
from flashmoji.storage.supabase_storage import SupabaseImageStorage


class FakeBucket:
    def __init__(self, name: str, files: dict[str, tuple[bytes, dict[str, str]]]) -> None:
        self.name = name
        self.files = files

    def upload(self, path: str, data: bytes, file_options: dict[str, str]) -> None:
        self.files[path] = (data, file_options)

    def get_public_url(self, path: str) -> str:
        return f"https://sb.example/storage/v1/object/public/{self.name}/{path}"


class FakeStorageApi:
    def __init__(self, existing: list[str] | None = None) -> None:
        self.buckets = list(existing or [])
        self.created: list[tuple[str, dict[str, Any]]] = []
        self.files: dict[str, tuple[bytes, dict[str, str]]] = {}
        self.fail_upload = False

    def list_buckets(self) -> list[SimpleNamespace]:
        return [SimpleNamespace(name=name) for name in self.buckets]

    def create_bucket(self, name: str, options: dict[str, Any]) -> None:
        self.buckets.append(name)
        self.created.append((name, options))

    def from_(self, name: str) -> FakeBucket:
        if self.fail_upload:
            raise RuntimeError("storage offline")
        return FakeBucket(name, self.files)


@pytest.mark.asyncio
async def test_bucket_is_created_when_missing() -> None:
    api = FakeStorageApi()
    storage = SupabaseImageStorage(client=SimpleNamespace(storage=api), bucket="emoji-images")

    await storage.ensure_container()
    await storage.ensure_container()

    assert len(api.created) == 1
    name, options = api.created[0]
    assert name == "emoji-images"
    assert options["public"] is True


@pytest.mark.asyncio
async def test_upload_upserts_under_images_folder() -> None:
    api = FakeStorageApi(existing=["emoji-images"])
    storage = SupabaseImageStorage(client=SimpleNamespace(storage=api), bucket="emoji-images")

    url = await storage.write("42.png", b"png", "image/png")

    assert url.endswith("/emoji-images/images/42.png")
    data, options = api.files["images/42.png"]
    assert data == b"png"
    assert options == {"content-type": "image/png", "upsert": "true"}


@pytest.mark.asyncio
async def test_upload_failure_is_publish_error() -> None:
    api = FakeStorageApi(existing=["emoji-images"])
    api.fail_upload = True
    storage = SupabaseImageStorage(client=SimpleNamespace(storage=api), bucket="emoji-images")

    with pytest.raises(PublishError, match="storage offline"):
        await storage.write("1.png", b"png", "image/png")


class FakeQuery:
    """Records a chained PostgREST query and returns canned rows."""

    def __init__(self, table: "FakeTable") -> None:
        self.table = table
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def __getattr__(self, name: str):
        def method(*args: Any) -> "FakeQuery":
            self.calls.append((name, args))
            return self
        return method

    def execute(self) -> SimpleNamespace:
        self.table.queries.append(self.calls)
        if self.table.error is not None:
            raise self.table.error
        return SimpleNamespace(data=self.table.rows)


class FakeTable:
    def __init__(self, rows: list[dict[str, Any]], error: Exception | None = None) -> None:
        self.rows = rows
        self.error = error
        self.queries: list[list[tuple[str, tuple[Any, ...]]]] = []


class FakeSupabase:
    def __init__(self, table: FakeTable) -> None:
        self._table = table
        self.table_names: list[str] = []

    def table(self, name: str) -> FakeQuery:
        self.table_names.append(name)
        return FakeQuery(self._table)


@pytest.mark.asyncio
async def test_entry_update_stamps_updated_at() -> None:
    table = FakeTable(rows=[{"id": 42}])
    client = FakeSupabase(table)
    service = WordEntryService(client=client)

    row = await service.update(42, {"image_status": "completed"})

    assert row == {"id": 42}
    assert client.table_names == ["word_entries"]
    [calls] = table.queries
    method, (payload,) = calls[0]
    assert method == "update"
    assert payload["image_status"] == "completed"
    assert "updated_at" in payload
    assert calls[1] == ("eq", ("id", 42))


@pytest.mark.asyncio
async def test_entry_update_missing_row_is_persistence_error() -> None:
    service = WordEntryService(client=FakeSupabase(FakeTable(rows=[])))

    with pytest.raises(PersistenceError, match="not found"):
        await service.update(1, {"image_status": "error"})


@pytest.mark.asyncio
async def test_entry_update_client_failure_is_persistence_error() -> None:
    table = FakeTable(rows=[], error=RuntimeError("timeout"))
    service = WordEntryService(client=FakeSupabase(table))

    with pytest.raises(PersistenceError, match="timeout"):
        await service.update(1, {"image_status": "error"})


@pytest.mark.asyncio
async def test_reset_stale_image_statuses_counts_rows() -> None:
    table = FakeTable(rows=[{"id": 1}, {"id": 2}])
    service = WordEntryService(client=FakeSupabase(table))

    assert await service.reset_stale_image_statuses() == 2

    [calls] = table.queries
    assert calls[0][0] == "update"
    assert calls[0][1][0]["image_status"] == "none"
    assert calls[1] == ("in_", ("image_status", ["queued", "processing"]))
