"""
core/config.py -- Centralized application configuration via pydantic-settings.

All configuration reads for the back office happen here. No module should
call os.getenv() or parse config.properties directly -- build a Settings
(or call get_settings() from the entry point) and pass it down.

Recognized keys (dotted form as written in config.properties):
  db.url, db.user, db.password      -- relational store connection
  jwt.secret, jwt.expiration (ms)   -- token signing key and lifetime
  session.timeout (ms)              -- idle timeout for the client session
  tax.rate, currency                -- business defaults used by billing screens

Source priority (first wins):
  1. Keyword arguments to Settings(...)
  2. Environment variables (DB_URL, JWT_SECRET, SESSION_TIMEOUT, ...)
  3. .env file
  4. config.properties (path from BACKOFFICE_PROPERTIES, default: repo root)
  5. Hard-coded defaults below

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once for the
      entry point. Components never call it themselves; they receive the
      instance (or the values they need) through their constructors.

  Frozen model: Settings is immutable once loaded. Token secret and TTL are
      process-wide and must not drift after the first token is issued.

Layer rule: core/ is the kernel. This module may not import from auth/,
operations/, or console/.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import model_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

logger = logging.getLogger("backoffice.config")

DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'backoffice.db'}"
_DEFAULT_PROPERTIES = Path(__file__).resolve().parent.parent / "config.properties"
PROPERTIES_ENV_VAR = "BACKOFFICE_PROPERTIES"

# Shipped fallback secret. Accepted so a fresh checkout starts, but every
# startup that uses it logs a warning.
DEFAULT_JWT_SECRET = "your-secret-key-here-change-in-production"


# ---------------------------------------------------------------------------
# config.properties source
# ---------------------------------------------------------------------------


def load_properties(path: Path) -> dict[str, str]:
    """Parse a Java-style .properties file into a flat dict.

    Supports "key=value" and "key: value" lines, "#" and "!" comments and
    blank lines. Keys keep their dotted form ("db.url"). A missing file yields
    an empty dict -- the caller falls back to defaults.
    """
    if not path.is_file():
        return {}
    props: dict[str, str] = {}
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line[0] in "#!":
            continue
        sep = min((i for i in (line.find("="), line.find(":")) if i >= 0), default=-1)
        if sep < 0:
            continue
        key, value = line[:sep].strip(), line[sep + 1 :].strip()
        if key:
            props[key] = value
    return props


class PropertiesSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by config.properties.

    Dotted keys map onto field names by replacing "." with "_", so "db.url"
    fills Settings.db_url. Unknown keys are dropped (e.g. db.driver from older
    deployments).
    """

    def __init__(self, settings_cls: type[BaseSettings], path: Path | None = None) -> None:
        super().__init__(settings_cls)
        if path is None:
            path = Path(os.environ.get(PROPERTIES_ENV_VAR, _DEFAULT_PROPERTIES))
        self.path = path
        self._values = {key.replace(".", "_"): value for key, value in load_properties(path).items()}

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        return self._values.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for field_name, field in self.settings_cls.model_fields.items():
            value, key, _ = self.get_field_value(field, field_name)
            if value is not None:
                data[key] = value
        return data


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Application settings.

    All fields have defaults so Settings() works in a fresh checkout and in
    tests without any config file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ------------------------------------------------------------------
    # Database
    # ------------------------------------------------------------------

    db_url: str = DEFAULT_DB_URL
    db_user: str = ""
    db_password: str = ""

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_expiration: int = 86_400_000  # 24 hours, ms
    session_timeout: int = 1_800_000  # 30 minutes idle, ms

    # ------------------------------------------------------------------
    # Business
    # ------------------------------------------------------------------

    tax_rate: float = 0.08
    currency: str = "USD"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            PropertiesSettingsSource(settings_cls),
            file_secret_settings,
        )

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_values(self) -> "Settings":
        """Reject settings that would break signing or timing.

        jwt.secret shorter than 32 chars is refused: HS256 relies on key
        entropy. The shipped default passes the length check but is public,
        so using it is logged loudly.
        """
        if len(self.jwt_secret) < 32:
            raise ValueError("jwt.secret must be at least 32 characters.")
        if self.jwt_secret == DEFAULT_JWT_SECRET:
            logger.warning("Using the default jwt.secret. Set JWT_SECRET before deploying.")
        if self.jwt_expiration <= 0:
            raise ValueError("jwt.expiration must be a positive number of milliseconds.")
        if self.session_timeout <= 0:
            raise ValueError("session.timeout must be a positive number of milliseconds.")
        return self

    def engine_url(self) -> URL:
        """Return db_url with db_user/db_password merged in.

        Credentials already present in the URL win. SQLite URLs never carry
        credentials, so they are returned as-is.
        """
        url = make_url(self.db_url)
        if url.drivername.startswith("sqlite") or url.username or not self.db_user:
            return url
        return url.set(username=self.db_user, password=self.db_password or None)


@lru_cache
def get_settings() -> Settings:
    """Return the process Settings, loading them on first call.

    Only the entry point calls this. In tests: construct Settings(...)
    directly, or call get_settings.cache_clear() after changing the
    environment.
    """
    return Settings()
