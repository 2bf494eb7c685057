"""Configuration management for thingshell."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONVERSATION_ID = "local-cmdline"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="THINGSHELL_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Collaborator entrypoints
    engine: str | None = Field(default=None, description="Engine factory as module:attribute")
    conversation_factory: str | None = Field(
        default=None, description="Assistant conversation factory as module:attribute"
    )

    # Conversation options
    conversation_id: str = Field(default=DEFAULT_CONVERSATION_ID, description="Conversation id")
    sempre_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("THINGSHELL_SEMPRE_URL", "SEMPRE_URL"),
        description="Semantic parser endpoint forwarded to the assistant",
    )
    debug: bool = Field(default=False, description="Ask the assistant for debug output")
    show_welcome: bool = Field(default=True, description="Let the assistant greet on start")

    # Terminal
    prompt: str = Field(default="$ ", description="Input prompt")

    # Logging Configuration
    log_level: str = Field(default="WARNING", description="Log level")

    def conversation_options(self) -> dict[str, Any]:
        return {"sempre_url": self.sempre_url, "debug": self.debug, "show_welcome": self.show_welcome}


def load_settings(**overrides: Any) -> Settings:
    """Load settings from the environment, applying non-empty overrides.

    Args:
        **overrides: Field values that take precedence over the environment.

    Returns:
        Settings instance
    """
    settings = Settings()
    updates = {key: value for key, value in overrides.items() if value is not None}
    if updates:
        settings = settings.model_copy(update=updates)
    return settings
