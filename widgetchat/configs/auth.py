"""
Authentication configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Bearer-token verification parameters
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from widgetchat.configs.base import BaseSettings


class AuthSettings(BaseSettings):
    """JWT verification settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="AUTH_",
        case_sensitive=False,
        extra="ignore",
    )

    jwt_secret: str = Field(default="change-me", description="HMAC secret for JWT verification")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
