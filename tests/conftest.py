"""Pytest configuration and fixtures for flashmoji tests."""

from __future__ import annotations

import os
import tempfile
from typing import Any

# Keep the dev static mount out of the working tree
os.environ.setdefault("LOCAL_IMAGES_DIR", tempfile.mkdtemp(prefix="flashmoji-images-"))
os.environ.setdefault("STORAGE_BACKEND", "local")

import pytest

from flashmoji.jobs.queue import ImageGenerationQueue

from tests.fakes import FakeEntryStore, FakeGenerator, FakePublisher


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def entry_store() -> FakeEntryStore:
    return FakeEntryStore()


@pytest.fixture
def make_queue(publisher: FakePublisher, entry_store: FakeEntryStore):
    """Build a queue with no delays around the given generator."""

    def _make(gen: FakeGenerator, **kwargs: Any) -> ImageGenerationQueue:
        options = {
            "max_retries": 3,
            "retry_base_delay": 0,
            "inter_job_delay": 0,
            "idle_poll_interval": 0.01,
        }
        options.update(kwargs)
        return ImageGenerationQueue(
            generator=gen,
            publisher=publisher,
            entry_store=entry_store,
            **options,
        )

    return _make
