"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="NODEFLOW_",
        extra="ignore",
    )

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    log_level: Literal["debug", "info", "warning", "error"] = "info"

    # Application settings
    app_name: str = "nodeflow"
    app_version: str = "0.1.0"
    debug: bool = False

    # CORS settings
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Execution settings
    max_execution_records: int = 1000
    execution_timeout: float = 300.0  # seconds, per workflow run
    code_timeout: float = 5.0  # seconds, per Code node evaluation
    http_timeout: float = 30.0

    # Trigger settings
    email_poll_interval: float = 300.0
    webhook_path_matching: Literal["contains", "exact"] = "contains"

    # AI/LLM settings
    openai_api_key: str | None = None
    anthropic_api_key: str | None = None
    default_model: str = "gpt-3.5-turbo"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
