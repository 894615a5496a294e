"""
core/config.py -- Process configuration for the Judgment Notes API.

Every environment read goes through Settings; other modules call
get_settings() and never touch os.environ themselves.

  Settings is a pydantic-settings BaseSettings, so each field is filled from
      the matching upper-case environment variable (database_url <-
      DATABASE_URL) or from .env in the working directory.

  get_settings() is wrapped in lru_cache: the first call parses the
      environment, later calls return that same object. Modules that read
      settings at import time (auth/tokens.py, api/limiter.py) therefore see
      whatever the environment held when they were first imported.

  The signing key is checked once, after all fields load. With DEBUG=true a
      missing key is replaced by a random one (tokens then die with the
      process); without DEBUG a missing key stops startup.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or judgments/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("judgmentnotes.config")

_DEFAULT_MIGRATIONS_DIR = str(Path(__file__).resolve().parent.parent / "migrations")

# Tokens live for 7 days from issuance.
_SEVEN_DAYS = 7 * 24 * 60 * 60


class Settings(BaseSettings):
    """Every tunable of the API process.

    Defaults let the test suite build Settings() with nothing but DEBUG set.
    DATABASE_URL defaults to empty; main.py refuses to serve or migrate
    without it.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"
    # "" means unset; validate_secret_key() replaces or rejects it.
    secret_key: str = ""

    # ------------------------------------------------------------------
    # Database
    # ------------------------------------------------------------------

    database_url: str = ""
    migrations_dir: str = _DEFAULT_MIGRATIONS_DIR

    # ------------------------------------------------------------------
    # HTTP listener
    # ------------------------------------------------------------------

    host: str = "0.0.0.0"  # nosec B104 -- container listener
    port: int = 8080
    allowed_hosts: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = _SEVEN_DAYS

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("database_url")
    @classmethod
    def normalize_database_url(cls, value: str) -> str:
        """Accept the Heroku/Railway style postgres:// scheme.

        SQLAlchemy 1.4+ dropped the "postgres" dialect alias, so the URL is
        rewritten to postgresql:// (psycopg2 driver) before create_engine sees it.
        """
        value = value.strip()
        if value.startswith("postgres://"):
            value = value.replace("postgres://", "postgresql://", 1)
        return value

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Fill in or reject the HS256 signing key.

        Unset with DEBUG=true: a random 64-hex-char key, logged as a warning.
        Unset otherwise: ValueError, so the process never signs tokens with a
        guessable default. Any key under 32 characters is rejected.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("SECRET_KEY not set; generated a throwaway key for this process")
            else:
                raise ValueError("SECRET_KEY must be set unless DEBUG=true.")
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings, parsing the environment on first call.

    Tests that change environment variables must call
    get_settings.cache_clear() for the change to be seen.
    """
    return Settings()
