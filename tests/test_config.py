from __future__ import annotations

import pytest

from flashmoji.config import AppConfig
from flashmoji.errors import StorageConfigError
from flashmoji.storage import LocalImageStorage, SupabaseImageStorage, get_image_storage


def test_replicate_version_is_text_after_colon() -> None:
    settings = AppConfig(REPLICATE_MODEL="fofr/sdxl-emoji:abc123")

    assert settings.replicate_version == "abc123"


def test_bare_version_is_used_as_is() -> None:
    assert AppConfig(REPLICATE_MODEL="abc123").replicate_version == "abc123"


def test_allowed_origins_list() -> None:
    assert AppConfig(ALLOWED_ORIGINS="*").allowed_origins_list == ["*"]
    assert AppConfig(ALLOWED_ORIGINS="https://a.app, https://b.app,").allowed_origins_list == [
        "https://a.app",
        "https://b.app",
    ]


@pytest.mark.parametrize("raw, expected", [("true", True), ("1", True), ("off", False), ("no", False)])
def test_debug_parses_platform_strings(raw: str, expected: bool) -> None:
    assert AppConfig(DEBUG=raw).DEBUG is expected


def test_capability_flags() -> None:
    settings = AppConfig(REPLICATE_API_TOKEN=None, SUPABASE_URL=None, SUPABASE_SERVICE_KEY=None)
    assert settings.can_generate_images is False
    assert settings.supabase_configured is False

    settings = AppConfig(
        REPLICATE_API_TOKEN="r8_x",
        SUPABASE_URL="https://x.supabase.co",
        SUPABASE_SERVICE_KEY="service",
    )
    assert settings.can_generate_images is True
    assert settings.supabase_configured is True


def test_queue_timing_defaults() -> None:
    settings = AppConfig()

    assert settings.QUEUE_MAX_RETRIES == 3
    assert settings.QUEUE_RETRY_BASE_DELAY == 5.0
    assert settings.QUEUE_INTER_JOB_DELAY == 2.0


def test_local_storage_is_selected(tmp_path) -> None:
    storage = get_image_storage(AppConfig(STORAGE_BACKEND="local", LOCAL_IMAGES_DIR=str(tmp_path)))

    assert isinstance(storage, LocalImageStorage)


def test_supabase_storage_requires_credentials() -> None:
    settings = AppConfig(STORAGE_BACKEND="supabase", SUPABASE_URL=None, SUPABASE_SERVICE_KEY=None)

    with pytest.raises(StorageConfigError):
        get_image_storage(settings)


def test_supabase_storage_is_selected() -> None:
    settings = AppConfig(
        STORAGE_BACKEND="supabase",
        SUPABASE_URL="https://x.supabase.co",
        SUPABASE_SERVICE_KEY="service",
        IMAGE_BUCKET="bucket-x",
    )

    storage = get_image_storage(settings)

    assert isinstance(storage, SupabaseImageStorage)
    assert storage.bucket == "bucket-x"
