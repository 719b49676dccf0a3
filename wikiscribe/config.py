from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class ConfigurationError(RuntimeError):
    """Raised when a stage cannot start because a credential or URL is missing."""


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # API Keys
    openai_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("openai_api_key", "api_key"),  # API_KEY is the legacy name
    )
    anthropic_api_key: str = ""
    assemblyai_api_key: str = ""

    # Wiki.js
    wikijs_url: str = ""
    wikijs_api_key: str = ""
    wikijs_default_path: str = ""
    wikijs_locale: str = "en"
    wikijs_verify_tls: bool = True

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 3030
    log_level: str = "INFO"
    working_dir: str = "working-paths"

    # Speech-to-text
    transcription_provider: str = "openai"
    transcription_model: str = "gpt-4o-transcribe"
    transcription_language: str = "it"

    # Media tools
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"

    # Markdown generation
    generation_provider: str = "openai"
    llm_model: str = "gpt-4o"
    prompt_file: str = ""
    consolidation_strategy: str = "llm"

    # Limits
    max_concurrency: int = 4
    call_timeout_seconds: float = 600.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
