"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Rolegate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. The
      signing secret is therefore read exactly once per process and handed to
      TokenService as an explicit dependency; nothing re-reads it per request.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. database_url -> DATABASE_URL). Type coercion and validation are built in.

Security notes:
  JWT_SECRET (or its alias SECRET_KEY) is required. A missing secret is a hard
  startup failure -- there is no development fallback, because a random key
  would silently invalidate every session on restart.

  Secrets shorter than 32 characters are rejected outright. HS256 signing
  relies on key entropy -- a short key weakens every issued token.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or items/.
"""

import logging
from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("rolegate.config")

_MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Only the signing secret is mandatory; every other field has a default so
    a single exported JWT_SECRET is enough to start the service.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    secret_key: str = Field(validation_alias=AliasChoices("JWT_SECRET", "SECRET_KEY"))
    host: str = "127.0.0.1:8080"
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=list)

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_url: str = "sqlite:///./rolegate.db"
    db_pool_size: int = Field(default=5, ge=1)
    # Bounded acquire: a request waits at most this long for a pooled
    # connection before failing with Unavailable.
    db_pool_timeout: float = Field(default=5.0, gt=0)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = Field(default=86400, gt=0)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    login_rate_limit: str = "10/minute"

    # Admin endpoints (role/permission creation, grants, assignment) require
    # this permission. PROTECT_ADMIN_ROUTES=false reopens them to anyone.
    admin_permission: str = "RBAC_ADMIN"
    protect_admin_routes: bool = True

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, value: str) -> str:
        if not value:
            raise ValueError("JWT_SECRET is required. Set JWT_SECRET in your environment or .env file.")
        if len(value) < _MIN_SECRET_LENGTH:
            raise ValueError(f"JWT_SECRET must be at least {_MIN_SECRET_LENGTH} characters.")
        return value

    @property
    def bind(self) -> tuple[str, int]:
        """Split HOST ("host:port") into its parts. A bare host binds port 8080."""
        host, sep, port = self.host.rpartition(":")
        if not sep:
            return self.host, 8080
        return host, int(port)


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Raises pydantic.ValidationError when JWT_SECRET is missing or too short;
    callers at startup let it propagate so the process refuses to start.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    settings = Settings()
    if "*" in settings.cors_origins:
        logger.warning("CORS_ORIGINS contains '*' -- any site can call the API from a browser")
    return settings
