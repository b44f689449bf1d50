"""
Replicate model input for the emoji image model.

The emoji fine-tune is triggered by the "TOK" token, so every prompt is
wrapped as "A TOK emoji of <prompt>".
"""

from typing import Any, Dict

from flashmoji.config import AppConfig, config


EMOJI_TRIGGER = "A TOK emoji of"

# Fixed parameters of the sdxl-emoji model that are not worth a setting
FIXED_INPUT: Dict[str, Any] = {
    "num_outputs": 1,
    "scheduler": "K_EULER",
    "refine": "no_refiner",
    "apply_watermark": False,
    "high_noise_frac": 0.8,
    "prompt_strength": 0.8,
    "disable_safety_checker": True,
}


def emoji_prompt(prompt: str) -> str:
    return f"{EMOJI_TRIGGER} {prompt.strip()}"


def create_replicate_input(prompt: str, settings: AppConfig = config) -> Dict[str, Any]:
    """Build the prediction input for one prompt."""
    return {
        **FIXED_INPUT,
        "prompt": emoji_prompt(prompt),
        "negative_prompt": settings.IMAGE_NEGATIVE_PROMPT,
        "width": settings.IMAGE_WIDTH,
        "height": settings.IMAGE_HEIGHT,
        "num_inference_steps": settings.IMAGE_INFERENCE_STEPS,
        "guidance_scale": settings.IMAGE_GUIDANCE_SCALE,
        "lora_scale": settings.IMAGE_LORA_SCALE,
    }
