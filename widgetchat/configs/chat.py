"""
Chat session and pipeline configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Session Manager and Orchestrator tuning
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from widgetchat.configs.base import BaseSettings


class ChatSettings(BaseSettings):
    """Session lifecycle and orchestration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CHAT_",
        case_sensitive=False,
        extra="ignore",
    )

    idle_threshold_seconds: int = Field(
        default=30 * 60,
        description="Inactivity after which a session is evicted from memory",
    )
    sweep_interval_seconds: int = Field(
        default=30 * 60,
        description="Period of the idle-session eviction sweep",
    )
    history_size: int = Field(
        default=20,
        description="Messages kept in the in-memory history buffer per session",
    )
    knowledge_limit: int = Field(
        default=3,
        description="Knowledge snippets added to a prompt",
    )
    refusal_message: str = Field(
        default="I'm sorry, but I can't discuss that topic.",
        description="Replaces a response that touches an excluded topic",
    )
    apology_message: str = Field(
        default=(
            "I'm sorry, I'm having trouble generating a response right now. "
            "Please try again in a moment."
        ),
        description="Returned when every model provider failed",
    )
