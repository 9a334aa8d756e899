"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Mantle configuration. All values come from environment variables."""

    # Agent identity
    agent_name: str = Field(default="Unnamed Agent")

    # Anthropic
    anthropic_api_key: str = Field(default="")
    claude_model: str = Field(default="claude-sonnet-4-5-20250929")
    claude_max_tokens: int = Field(default=4096)
    llm_timeout_seconds: float = Field(default=120.0)

    # Database
    database_path: Path = Field(default=Path("data/mantle.db"))

    # Turso (hosted libSQL) — when set, overrides local database_path
    turso_database_url: str = Field(default="")
    turso_auth_token: str = Field(default="")

    # Context assembly
    primary_channel: str = Field(default="chat")
    context_history_limit: int = Field(default=30)
    context_cross_channel_limit: int = Field(default=10)

    # Usage accounting
    usage_window: int = Field(default=1000)

    # Security scanning (SquidBay)
    squidbay_api_base: str = Field(default="https://api.squidbay.io")
    squidbay_agent_id: str = Field(default="")
    squidbay_api_key: str = Field(default="")
    scan_repo: str = Field(default="")
    scan_timeout_seconds: float = Field(default=60.0)
    free_scan_allowance: int = Field(default=10)
    trust_alert_threshold: int = Field(default=80)

    # SMS (Telnyx) — owner notifications
    telnyx_api_key: str = Field(default="")
    telnyx_phone_number: str = Field(default="")
    owner_phone_number: str = Field(default="")

    # Payments advertised on the agent card
    lightning_address: str = Field(default="")

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def sms_enabled(self) -> bool:
        """True when outbound SMS to the owner is fully configured."""
        return bool(
            self.telnyx_api_key and self.telnyx_phone_number and self.owner_phone_number
        )

    def validate_required(self) -> list[str]:
        """Return the names of required env vars that are missing."""
        missing = []
        if not self.anthropic_api_key:
            missing.append("ANTHROPIC_API_KEY")
        return missing


settings = Settings()
