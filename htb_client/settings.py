"""Client settings loaded from environment variables and .env file."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

VERSION = "0.1.0"

DEFAULT_SERVER = "https://labs.hackthebox.com/api"
DEFAULT_USER_AGENT = f"htb-client/{VERSION}"


class Settings(BaseSettings):
    """Settings for the Hack The Box API client."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    htb_token: str | None = None
    htb_server: str = DEFAULT_SERVER
    htb_user_agent: str = DEFAULT_USER_AGENT
    htb_timeout: float = 60.0
    htb_max_retries: int = 4
    # None disables the response cache
    htb_cache_dir: Path | None = None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
