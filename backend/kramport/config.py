"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - The kernel token comes from the environment (never hardcoded)
    - get_settings() is cached (lru_cache): single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: a local SiYuan kernel works out-of-the-box
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

from kramport.core.domain_types import (
    DEFAULT_BLOCK_TIMEOUT_SECONDS,
    DEFAULT_DOCUMENT_TIMEOUT_SECONDS,
    DEFAULT_MAX_DEPTH,
)


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # SiYuan kernel
    siyuan_url: str = "http://127.0.0.1:6806"
    siyuan_token: str = ""

    @field_validator("siyuan_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    # Reference resolution
    max_depth: int = DEFAULT_MAX_DEPTH
    block_fetch_timeout_seconds: float = DEFAULT_BLOCK_TIMEOUT_SECONDS
    document_fetch_timeout_seconds: float = DEFAULT_DOCUMENT_TIMEOUT_SECONDS

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
