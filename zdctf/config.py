"""Configuration management for the ZeroDelta CTF submission service
- Handles environment variables and application settings.
- Game settings (pause, window, decay, salt, honeypot) live in the
  system_settings table; the DEFAULT_* values below are only used when a key
  is missing there.
"""

import hashlib
import os
from typing import Literal
from urllib.parse import urlparse

from pydantic import ConfigDict, model_validator
from pydantic_settings import BaseSettings

DatabaseType = Literal["sqlite", "postgresql"]

DEFAULT_SECRET_KEY = "super_long_default_key_change_this_in_production"


class Settings(BaseSettings):
    """Application settings with env variable support"""

    # Database Config
    DATABASE_URL: str = "sqlite://zdctf.db"
    DATABASE_TYPE: DatabaseType | None = None

    # Postgres Config
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "zdctf"

    # SQLite Config
    SQLITE_DB_PATH: str = "zdctf.db"

    # Database Connection settings
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_PRE_PING: bool = True
    SQLITE_BUSY_TIMEOUT_MS: int = 5000

    # Application Config
    DEBUG: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "info"

    # Security Config
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    TOKEN_SIGNING_KEY: str | None = None  # Derived from SECRET_KEY

    # Submission limits
    MAX_SUBMISSION_LENGTH: int = 500
    RATE_LIMIT_MAX_ATTEMPTS: int = 5
    RATE_LIMIT_WINDOW_SECONDS: int = 60
    # also log pause/window/duplicate/dependency rejections as attempts
    RATE_LIMIT_COUNT_GATE_REJECTIONS: bool = False

    # Regex flag guards
    REGEX_TIMEOUT_MS: int = 100
    REGEX_MAX_LENGTH: int = 500
    REGEX_MAX_QUANTIFIERS: int = 10
    REGEX_MAX_NESTING: int = 5
    REGEX_MAX_WILDCARD_RUN: int = 2

    # Game setting fallbacks
    DEFAULT_FLAG_SALT: str = "zd_s3cr3t_s4lt_2024"
    DEFAULT_HASH_ALGORITHM: str = "sha256"
    DEFAULT_DECAY_RATE: float = 0.5
    DEFAULT_DECAY_FACTOR: float = 10
    DEFAULT_MIN_POINTS: int = 50
    DEFAULT_FIRST_BLOOD_BONUS: int = 0

    # Definitions
    LOAD_DEFINITIONS_ON_STARTUP: bool = True

    model_config = ConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    @model_validator(mode="after")
    def validate_model(self):
        """Post initialization hook using Pydantic v2 model validator"""
        if not self.DATABASE_TYPE:
            self.DATABASE_TYPE = self._detect_database_type()  # pylint: disable=C0103
        if not self.TOKEN_SIGNING_KEY:
            self.TOKEN_SIGNING_KEY = self._derive_token_signing_key()  # pylint: disable=C0103
        return self

    def _derive_token_signing_key(self) -> str:
        """Derive the bearer token signing key from the SECRET_KEY"""
        return hashlib.sha256(f"{self.SECRET_KEY}:token_signing".encode()).hexdigest()

    def _detect_database_type(self) -> DatabaseType:
        """Detect the database type from the DATABASE_URL"""
        parsed = urlparse(self.DATABASE_URL)
        scheme = parsed.scheme.lower()

        if scheme.startswith(("postgresql", "postgres")):
            return "postgresql"
        return "sqlite"

    def get_database_url(self) -> str:
        """Get the formatted database URL"""

        if self.DATABASE_TYPE == "sqlite":
            return self._get_sqlite_url()
        elif self.DATABASE_TYPE == "postgresql":
            return self._get_postgresql_url()
        else:
            return self.DATABASE_URL

    def _get_sqlite_url(self) -> str:
        """Get the SQLite database URL"""
        if self.DATABASE_URL.startswith("sqlite"):
            if ":///" in self.DATABASE_URL:
                return self.DATABASE_URL
            db_path = self.DATABASE_URL.replace("sqlite://", "")
            return f"sqlite:///{os.path.abspath(db_path)}"
        return f"sqlite:///{os.path.abspath(self.SQLITE_DB_PATH)}"

    def _get_postgresql_url(self) -> str:
        """Get the PostgreSQL database URL"""
        if (
            self.DATABASE_URL.startswith(("postgresql", "postgres"))
            and "localhost" not in self.DATABASE_URL
        ):
            return self.DATABASE_URL
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    def get_database_config(self) -> dict:
        """Get the database specific configuration"""
        base_config = {"echo": self.DB_ECHO}
        if self.DATABASE_TYPE == "sqlite":
            base_config.update(
                {
                    "connect_args": {
                        "check_same_thread": False,
                        "timeout": self.SQLITE_BUSY_TIMEOUT_MS / 1000,
                    },
                    "pool_pre_ping": self.DB_POOL_PRE_PING,
                }
            )
        elif self.DATABASE_TYPE == "postgresql":
            base_config.update(
                {
                    "pool_size": self.DB_POOL_SIZE,
                    "max_overflow": self.DB_MAX_OVERFLOW,
                    "pool_timeout": self.DB_POOL_TIMEOUT,
                    "pool_pre_ping": self.DB_POOL_PRE_PING,
                }
            )
        return base_config


# Global settings instance
settings = Settings()

# ensure secret key is taken care of in production
if settings.SECRET_KEY == DEFAULT_SECRET_KEY:
    if not settings.DEBUG:
        raise ValueError("🚨 SECRET_KEY is not set in production")
    print("⚠️ Warning: using default SECRET_KEY in development mode")

if settings.DATABASE_TYPE not in ["sqlite", "postgresql"]:
    raise ValueError(f"🚨 Unsupported database type: {settings.DATABASE_TYPE}")
