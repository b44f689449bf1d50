"""
Application configuration management using Pydantic Settings.

This module provides a type-safe, centralized configuration system
that loads from environment variables with sensible defaults.
"""

from typing import Literal
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """
    Application configuration loaded from environment variables.

    All settings can be overridden via .env file or environment variables.
    Settings are validated at startup using Pydantic.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===== Image Provider (Replicate) =====
    REPLICATE_API_TOKEN: str | None = Field(
        default=None,
        description="Replicate API token for image generation"
    )

    REPLICATE_MODEL: str = Field(
        default="fofr/sdxl-emoji:dee76b5afde21b0f01ed7925f0665b7e879c50ee718c5f78a9d38e04d523cc5e",
        description="Replicate model reference in owner/name:version form"
    )

    REPLICATE_POLL_INTERVAL: float = Field(
        default=1.0,
        ge=0.0,
        le=30.0,
        description="Seconds between prediction status checks"
    )

    # ===== Image Generation Settings =====
    IMAGE_WIDTH: int = Field(
        default=1152,
        ge=256,
        le=2048,
        description="Generated image width"
    )

    IMAGE_HEIGHT: int = Field(
        default=896,
        ge=256,
        le=2048,
        description="Generated image height"
    )

    IMAGE_NEGATIVE_PROMPT: str = Field(
        default="black skin, dark skin",
        description="Negative prompt passed to the emoji model"
    )

    IMAGE_INFERENCE_STEPS: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Number of denoising steps"
    )

    IMAGE_GUIDANCE_SCALE: float = Field(
        default=7.5,
        ge=1.0,
        le=50.0,
        description="Classifier-free guidance scale"
    )

    IMAGE_LORA_SCALE: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="LoRA additive scale for the emoji fine-tune"
    )

    # ===== Storage Configuration =====
    STORAGE_BACKEND: Literal["supabase", "local"] = Field(
        default="local",
        description="Where published images live: supabase (prod) or local (dev)"
    )

    IMAGE_BUCKET: str = Field(
        default="emoji-images",
        description="Supabase Storage bucket for published images"
    )

    LOCAL_IMAGES_DIR: str = Field(
        default="./public/images",
        description="Directory for published images when STORAGE_BACKEND=local"
    )

    HTTP_FETCH_TIMEOUT: float = Field(
        default=60.0,
        ge=1.0,
        le=600.0,
        description="Timeout in seconds for downloading a generated image"
    )

    # ===== Supabase Configuration =====
    SUPABASE_URL: str | None = Field(
        default=None,
        description="Supabase project URL"
    )

    SUPABASE_SERVICE_KEY: str | None = Field(
        default=None,
        description="Supabase service role key (for server-side operations, bypasses RLS)"
    )

    # ===== Queue Settings =====
    QUEUE_MAX_RETRIES: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per job before it is marked as error"
    )

    QUEUE_RETRY_BASE_DELAY: float = Field(
        default=5.0,
        ge=0.0,
        le=300.0,
        description="Backoff unit in seconds; the delay is this times the attempt number"
    )

    QUEUE_INTER_JOB_DELAY: float = Field(
        default=2.0,
        ge=0.0,
        le=60.0,
        description="Pause in seconds between finished jobs (provider rate limits)"
    )

    QUEUE_IDLE_POLL_INTERVAL: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Re-check interval when the queue has no pending job"
    )

    GENERATION_TIMEOUT_SECONDS: float = Field(
        default=300.0,
        ge=1.0,
        le=3600.0,
        description="How long an enqueue-and-wait request waits for its job"
    )

    # ===== Application Settings =====
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment mode: development or production"
    )

    DEBUG: bool = Field(
        default=True,
        description="Enable debug mode (auto-set to False in production)"
    )

    @field_validator('DEBUG', mode='before')
    @classmethod
    def parse_bool_string(cls, v):
        """Parse boolean from string values (platform env vars are strings)."""
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.lower() in ("true", "1", "yes", "on")
        return False

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="API server host"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1024,
        le=65535,
        description="API server port"
    )

    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins. Use '*' for all (dev only)."
    )

    @property
    def allowed_origins_list(self) -> list[str]:
        """Get list of allowed CORS origins."""
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    # ===== Computed Properties =====

    @property
    def replicate_version(self) -> str:
        """Version id part of REPLICATE_MODEL (the text after ':')."""
        _, _, version = self.REPLICATE_MODEL.partition(":")
        return version or self.REPLICATE_MODEL

    @property
    def can_generate_images(self) -> bool:
        """Check if image generation is available."""
        return self.REPLICATE_API_TOKEN is not None

    @property
    def supabase_configured(self) -> bool:
        """Check if Supabase is properly configured."""
        return (
            self.SUPABASE_URL is not None
            and self.SUPABASE_SERVICE_KEY is not None
        )


# Global configuration instance
# Import this in other modules: from flashmoji.config import config
config = AppConfig()


# Validation on startup
if __name__ == "__main__":
    print("Configuration loaded successfully!")
    print(f"Model: {config.REPLICATE_MODEL}")
    print(f"Storage: {config.STORAGE_BACKEND}")
    print(f"Queue: retries={config.QUEUE_MAX_RETRIES} backoff={config.QUEUE_RETRY_BASE_DELAY}s gap={config.QUEUE_INTER_JOB_DELAY}s")
    print(f"Image Generation: {'✓' if config.can_generate_images else '✗'}")
    print(f"Supabase: {'✓' if config.supabase_configured else '✗'}")
