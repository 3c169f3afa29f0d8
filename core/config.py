"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for LedgerGate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  Explicit injection: the login core never calls get_settings(). The API
      lifespan calls Settings.login_config() once and hands the resulting
      LoginConfig to the engine, so unit tests build their own LoginConfig.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. JWT signing
  relies on key entropy -- a short key weakens every issued token.

  In production mode (DEBUG not set or false), a missing SECRET_KEY is a
  hard startup failure.

Layer rule: core/ is the kernel. This module imports only the auth/models
dataclass it builds; it may not import from api/ or billing/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from auth.models import LoginConfig

logger = logging.getLogger("ledgergate.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent.parent / 'ledgergate.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
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
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    api_domain_name: str = "localhost"
    credential_pepper: str = ""
    # Changing the round count invalidates every stored credential digest.
    credential_kdf_rounds: int = Field(default=50, ge=1)
    login_timeout_seconds: float = Field(default=10.0, gt=0)
    secure_cookies: bool = False

    # ------------------------------------------------------------------
    # Billing
    # ------------------------------------------------------------------

    billing_enabled: bool = False
    # Empty means subscriptions are read from the local subscriptions table.
    billing_api_url: str = ""
    billing_api_key: str = ""
    billing_timeout_seconds: float = Field(default=5.0, gt=0)

    # ------------------------------------------------------------------
    # ReCAPTCHA (optional -- empty secret means verification is disabled)
    # ------------------------------------------------------------------

    recaptcha_secret: str = ""
    recaptcha_timeout_seconds: float = Field(default=5.0, gt=0)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated SECRET_KEY. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    def login_config(self) -> LoginConfig:
        """Return the explicit configuration handed to the login engine."""
        return LoginConfig(
            billing_enabled=self.billing_enabled,
            api_domain=self.api_domain_name,
            signing_secret=self.secret_key.encode("utf-8"),
            credential_pepper=self.credential_pepper,
            kdf_rounds=self.credential_kdf_rounds,
        )


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
