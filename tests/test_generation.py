from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import httpx
import pytest

from flashmoji.config import AppConfig
from flashmoji.errors import ProviderExecutionError, ProviderSubmissionError
from flashmoji.images.generation import GenerationClient, normalize_output
from flashmoji.images.replicate_config import create_replicate_input


URL = "https://replicate.delivery/pbxt/abc/out-0.png"


class FileOutputLike:
    """Mimics replicate's FileOutput: ``url`` is an attribute."""

    def __init__(self, url: str) -> None:
        self.url = url


class CallableUrlOutput:
    """An output whose url accessor is a method."""

    def __init__(self, url: str) -> None:
        self._url = url

    def url(self) -> str:
        return self._url


@pytest.mark.parametrize(
    "output",
    [
        [FileOutputLike(URL)],
        [CallableUrlOutput(URL)],
        FileOutputLike(URL),
        CallableUrlOutput(URL),
        {"url": URL},
        URL,
        [URL],
    ],
    ids=["list-attr", "list-method", "single-attr", "single-method", "mapping", "string", "list-string"],
)
def test_normalize_output_shapes_agree(output: Any) -> None:
    assert normalize_output(output) == URL


@pytest.mark.parametrize(
    "output",
    [[], None, 42, {"image": URL}, "", "ftp://host/x.png", "not a url", [None]],
)
def test_normalize_output_rejects_unusable_values(output: Any) -> None:
    with pytest.raises(ProviderExecutionError):
        normalize_output(output)


def test_unknown_shape_message() -> None:
    with pytest.raises(ProviderExecutionError, match="unexpected output format"):
        normalize_output(object())


def test_replicate_input_wraps_prompt_for_emoji_model() -> None:
    settings = AppConfig(IMAGE_WIDTH=512, IMAGE_HEIGHT=512)

    payload = create_replicate_input("  smiling face ", settings)

    assert payload["prompt"] == "A TOK emoji of smiling face"
    assert payload["width"] == 512
    assert payload["height"] == 512
    assert payload["num_outputs"] == 1
    assert payload["negative_prompt"] == settings.IMAGE_NEGATIVE_PROMPT


class FakePredictions:
    def __init__(self, statuses: list[SimpleNamespace], create_error: Exception | None = None) -> None:
        self.statuses = statuses
        self.create_error = create_error
        self.created: list[dict[str, Any]] = []
        self.polled: list[str] = []

    async def async_create(self, **kwargs: Any) -> SimpleNamespace:
        if self.create_error is not None:
            raise self.create_error
        self.created.append(kwargs)
        return SimpleNamespace(id="pred-123", status="starting")

    async def async_get(self, prediction_id: str) -> SimpleNamespace:
        self.polled.append(prediction_id)
        return self.statuses.pop(0)


def _client(predictions: FakePredictions) -> GenerationClient:
    settings = AppConfig(REPLICATE_API_TOKEN="r8_test", REPLICATE_MODEL="fofr/sdxl-emoji:v123")
    return GenerationClient(
        client=SimpleNamespace(predictions=predictions),
        settings=settings,
        poll_interval=0,
    )


@pytest.mark.asyncio
async def test_submit_creates_prediction_for_model_version() -> None:
    predictions = FakePredictions([])
    client = _client(predictions)

    handle = await client.submit("smiling face")

    assert handle == "pred-123"
    [call] = predictions.created
    assert call["version"] == "v123"
    assert call["input"]["prompt"] == "A TOK emoji of smiling face"


@pytest.mark.asyncio
async def test_submit_rejection_becomes_submission_error() -> None:
    predictions = FakePredictions([], create_error=httpx.ConnectError("connection refused"))
    client = _client(predictions)

    with pytest.raises(ProviderSubmissionError, match="connection refused"):
        await client.submit("smiling face")


@pytest.mark.asyncio
async def test_submit_rejects_empty_prompt() -> None:
    client = _client(FakePredictions([]))

    with pytest.raises(ProviderSubmissionError):
        await client.submit("   ")


@pytest.mark.asyncio
async def test_submit_without_token_fails() -> None:
    client = GenerationClient(settings=AppConfig(REPLICATE_API_TOKEN=None))

    with pytest.raises(ProviderSubmissionError, match="REPLICATE_API_TOKEN"):
        await client.submit("smiling face")


@pytest.mark.asyncio
async def test_await_result_polls_until_success() -> None:
    predictions = FakePredictions([
        SimpleNamespace(status="starting", output=None, error=None),
        SimpleNamespace(status="processing", output=None, error=None),
        SimpleNamespace(status="succeeded", output=[FileOutputLike(URL)], error=None),
    ])
    client = _client(predictions)

    assert await client.await_result("pred-123") == URL
    assert predictions.polled == ["pred-123"] * 3


@pytest.mark.asyncio
async def test_await_result_reports_provider_failure() -> None:
    predictions = FakePredictions([
        SimpleNamespace(status="failed", output=None, error="CUDA out of memory"),
    ])
    client = _client(predictions)

    with pytest.raises(ProviderExecutionError, match="CUDA out of memory"):
        await client.await_result("pred-123")


@pytest.mark.asyncio
async def test_await_result_rejects_bad_output() -> None:
    predictions = FakePredictions([
        SimpleNamespace(status="succeeded", output=[], error=None),
    ])
    client = _client(predictions)

    with pytest.raises(ProviderExecutionError, match="unexpected output format"):
        await client.await_result("pred-123")


@pytest.mark.asyncio
async def test_generate_returns_handle_and_url() -> None:
    predictions = FakePredictions([
        SimpleNamespace(status="succeeded", output=URL, error=None),
    ])
    client = _client(predictions)

    assert await client.generate("tree") == ("pred-123", URL)
