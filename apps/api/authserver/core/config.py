"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    session_secret: str
    session_cookie: str = "authserver.sid"
    session_max_age_seconds: int = 14 * 24 * 60 * 60
    session_https_only: bool = False
    basic_realm: str = "Clients"
    bearer_scope: str = "*"

    model_config = SettingsConfigDict(env_prefix="AUTHSERVER_", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
