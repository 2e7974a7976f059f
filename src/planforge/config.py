"""Configuration settings for planforge."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def split_names(value: str | None) -> list[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or overrides."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, populate_by_name=True
    )

    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1", validation_alias="OPENAI_BASE_URL"
    )
    openai_model: str = Field(default="gpt-4.1-mini", validation_alias="OPENAI_MODEL")
    openai_timeout_seconds: int = Field(
        default=30, validation_alias="OPENAI_TIMEOUT_SECONDS"
    )
    openai_extra_headers: str | None = Field(
        default=None, validation_alias="OPENAI_EXTRA_HEADERS"
    )
    context_window_tokens: int = Field(default=4096, validation_alias="CONTEXT_WINDOW_TOKENS")
    token_char_ratio: int = Field(default=4, ge=1, validation_alias="TOKEN_CHAR_RATIO")
    budget_low_water: int = Field(default=1200, validation_alias="BUDGET_LOW_WATER")
    budget_high_water: int = Field(default=2000, validation_alias="BUDGET_HIGH_WATER")
    workspace_dir: str = Field(default="./workspace", validation_alias="WORKSPACE_DIR")
    allow_tools: str | None = Field(default=None, validation_alias="ALLOW_TOOLS")
    disabled_commands: str | None = Field(default=None, validation_alias="DISABLED_COMMANDS")
    employee_max_turns: int | None = Field(default=None, validation_alias="EMPLOYEE_MAX_TURNS")

    @property
    def allow_tool_names(self) -> list[str]:
        return split_names(self.allow_tools)

    @property
    def disabled_command_names(self) -> list[str]:
        return split_names(self.disabled_commands)
