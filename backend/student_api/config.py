"""
Student API — Application Configuration
=======================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before app starts.

Defaults point at a local CouchDB with the `admin`/`123` credential pair and
the `student` database, so the service runs without any environment set up.
"""

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes are grouped by concern for readability.
    """

    # ── CouchDB ───────────────────────────────────────────────────────────
    # Base URL of the CouchDB server, without credentials or database name
    couchdb_url: str = Field(
        default="http://localhost:5984",
        description="CouchDB server URL",
    )

    # Basic-auth credential pair sent with every store request
    couchdb_username: str = Field(default="admin")
    couchdb_password: str = Field(default="123")

    # The single collection this gateway serves
    couchdb_database: str = Field(default="student")

    # Server-side filter function for GET /changes, as <design doc>/<filter name>.
    # Must already be registered in the database; the gateway never creates it.
    changes_filter: str = Field(default="filters/by_address_and_age")

    # Per-request timeout towards CouchDB, in seconds
    couchdb_timeout: float = Field(default=10.0, gt=0, le=300)

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8080, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("couchdb_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Paths are joined as `{couchdb_url}/{database}/...`."""
        return v.rstrip("/")

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # COUCHDB_URL and couchdb_url both work
    }


# Singleton instance, imported throughout the application
settings = Settings()
