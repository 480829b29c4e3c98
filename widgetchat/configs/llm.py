"""
Language-model gateway configuration settings.

Provider credentials, model ids, default/fallback selection and call timeout.

Dependencies: pydantic, pydantic_settings
System role: Model Gateway configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from widgetchat.configs.base import BaseSettings


class LLMSettings(BaseSettings):
    """Model Gateway configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LLM_",
        case_sensitive=False,
        extra="ignore",
    )

    default_model: str = Field(
        default="openai",
        description="Provider used when the context rule has no preferred model",
    )
    fallback_model: str | None = Field(
        default="gemini",
        description="Provider tried once when the primary provider fails",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        description="Upper bound for a single provider call",
    )
    temperature: float = Field(default=0.7, description="Sampling temperature")

    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_model_id: str = Field(default="gpt-4o-mini", description="OpenAI chat model id")

    google_api_key: str | None = Field(default=None, description="Google Gemini API key")
    gemini_model_id: str = Field(default="gemini-2.0-flash", description="Gemini chat model id")

    bedrock_model_id: str = Field(
        default="anthropic.claude-3-haiku-20240307-v1:0",
        description="Bedrock Converse model id",
    )
    bedrock_region: str = Field(default="us-east-1", description="AWS region for Bedrock")
