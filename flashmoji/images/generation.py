"""
Image generation client backed by Replicate predictions.

A generation is two steps so the queue can record the prediction id
before waiting on it:

    client = GenerationClient()
    handle = await client.submit("smiling face")
    url = await client.await_result(handle)
"""

import asyncio
from collections.abc import Mapping
from typing import Any, Optional, Tuple

import httpx
import replicate
from replicate.exceptions import ReplicateError

from flashmoji.config import AppConfig, config
from flashmoji.errors import ProviderExecutionError, ProviderSubmissionError
from flashmoji.images.replicate_config import create_replicate_input
from flashmoji.utils.logging import generation_logger as logger


SUCCEEDED = "succeeded"
TERMINAL_FAILURES = ("failed", "canceled")
URL_SCHEMES = ("http://", "https://")


def normalize_output(output: Any) -> str:
    """
    Reduce a prediction output to a single image URL.

    Accepted shapes:
        - a non-empty list of outputs (the first one is used)
        - an object with a ``url`` accessor, either a method or an attribute
          (Replicate's FileOutput), or a mapping with a "url" key
        - a bare URL string

    Raises:
        ProviderExecutionError: for any other shape, or when the extracted
            value is not an http(s) URL
    """
    if isinstance(output, (list, tuple)):
        if not output:
            raise ProviderExecutionError("unexpected output format")
        output = output[0]

    if isinstance(output, str):
        url = output
    elif isinstance(output, Mapping):
        if "url" not in output:
            raise ProviderExecutionError("unexpected output format")
        url = output["url"]
    elif hasattr(output, "url"):
        accessor = output.url
        url = accessor() if callable(accessor) else accessor
    else:
        raise ProviderExecutionError("unexpected output format")

    url = "" if url is None else str(url)
    if not url.lower().startswith(URL_SCHEMES):
        raise ProviderExecutionError(f"Invalid image URL in output: {url!r}")
    return url


class GenerationClient:
    """
    Submits prompts to the configured Replicate model and waits for results.

    Every failure surfaces as a ProviderError subclass so the queue can
    decide whether to retry.
    """

    def __init__(
        self,
        client: Optional[replicate.Client] = None,
        settings: AppConfig = config,
        poll_interval: Optional[float] = None
    ):
        self._client = client
        self.settings = settings
        self.poll_interval = (
            settings.REPLICATE_POLL_INTERVAL if poll_interval is None else poll_interval
        )

    @property
    def client(self) -> replicate.Client:
        if self._client is None:
            if not self.settings.REPLICATE_API_TOKEN:
                raise ProviderSubmissionError(
                    "REPLICATE_API_TOKEN is not configured. "
                    "Set it in your .env file or environment variables."
                )
            self._client = replicate.Client(api_token=self.settings.REPLICATE_API_TOKEN)
        return self._client

    async def submit(self, prompt: str) -> str:
        """Create a prediction and return its id."""
        if not prompt or not prompt.strip():
            raise ProviderSubmissionError("Prompt is empty")

        try:
            prediction = await self.client.predictions.async_create(
                version=self.settings.replicate_version,
                input=create_replicate_input(prompt, self.settings),
            )
        except (ReplicateError, httpx.HTTPError) as e:
            message = str(e)
            if "401" in message or "unauthorized" in message.lower():
                logger.error("Replicate authentication failed. Check REPLICATE_API_TOKEN.")
            raise ProviderSubmissionError(f"Prediction was rejected: {message}") from e

        logger.info("Prediction created", prediction_id=prediction.id)
        return prediction.id

    async def await_result(self, handle: str) -> str:
        """Poll a prediction until it finishes and return its image URL."""
        while True:
            try:
                prediction = await self.client.predictions.async_get(handle)
            except (ReplicateError, httpx.HTTPError) as e:
                raise ProviderExecutionError(
                    f"Could not read prediction {handle}: {e}"
                ) from e

            if prediction.status == SUCCEEDED:
                return normalize_output(prediction.output)

            if prediction.status in TERMINAL_FAILURES:
                raise ProviderExecutionError(
                    f"Prediction failed: {prediction.error or 'Unknown error'}"
                )

            await asyncio.sleep(self.poll_interval)

    async def generate(self, prompt: str) -> Tuple[str, str]:
        """Submit and wait in one call. Returns (prediction_id, image_url)."""
        handle = await self.submit(prompt)
        return handle, await self.await_result(handle)
