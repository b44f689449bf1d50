"""
Image generation and publishing.

Components:
- GenerationClient: submits prompts to Replicate and waits for the output URL
- AssetPublisher: copies a finished image into durable storage
"""

from flashmoji.images.generation import GenerationClient, normalize_output
from flashmoji.images.publisher import AssetPublisher, image_key
from flashmoji.images.replicate_config import create_replicate_input, emoji_prompt

__all__ = [
    "GenerationClient",
    "normalize_output",
    "AssetPublisher",
    "image_key",
    "create_replicate_input",
    "emoji_prompt",
]
