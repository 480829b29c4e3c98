"""
Base configuration settings.

Every config module inherits `.env` loading and case-insensitive env mapping
from here. Top-level process settings (log level, bind address, CORS) live
on this class and are read without a prefix.

Dependencies: pydantic_settings
System role: Foundation for all configuration classes
"""

from pydantic import Field
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict


class BaseSettings(PydanticBaseSettings):
    """Shared settings behaviour plus process-level options."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="Root logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    host: str = Field(default="0.0.0.0", description="Bind address for uvicorn")
    port: int = Field(default=8000, description="Bind port for uvicorn")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to embed the widget and call the API",
    )
