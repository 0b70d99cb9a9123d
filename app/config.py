"""Runtime configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Attributes
    ----------
    app_name : str
        Human-readable application name.
    database_url : str
        SQLAlchemy database URL.
    public_base_url : str
        Origin used when building share links for clients.
    bootstrap_enabled : bool
        Whether unauthenticated organization bootstrap is allowed.
    default_tier : str
        Subscription tier given to bootstrapped organizations.
    log_level : str
        Root log level for the service.
    view_retry_attempts : int
        Conditional-update retries when concurrent viewers race.
    """

    model_config = SettingsConfigDict(env_prefix="SECRET_DROP_", extra="ignore")

    app_name: str = "SecretDrop"
    database_url: str = "sqlite+aiosqlite:///./secret_drop.db"
    public_base_url: str = "http://127.0.0.1:8000"
    bootstrap_enabled: bool = True
    default_tier: str = Field(default="free", pattern="^(free|pro_team|business)$")
    log_level: str = "INFO"
    view_retry_attempts: int = Field(default=3, ge=1)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings.

    Returns
    -------
    Settings
        Cached settings instance.
    """
    return Settings()
