"""
Application configuration using Pydantic Settings.

All configuration is read from environment variables (12-factor app),
with sensible defaults for local development.
"""

from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Central application configuration."""

    # Store
    snapshot_path: str = Field(
        default="data/credvault.sqlite",
        description=(
            "File the store snapshot is loaded from and written to after "
            "every mutating transaction. Empty string keeps the store in memory."
        ),
    )
    unique_entries: bool = Field(
        default=False,
        description=(
            "Enforce uniqueness of (url, username, password) in the "
            "credential table; conflicting rows are skipped on insert"
        ),
    )
    search_result_limit: Optional[int] = Field(
        default=None,
        description=(
            "Cap on rows returned by a non-empty credential search; "
            "unset returns every match"
        ),
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Application log level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_file: str = Field(
        default="",
        description="Also append log lines to this file when set",
    )

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API bind host")
    api_port: int = Field(default=4000, description="API bind port")
    cors_origins: list[str] = Field(
        default=["*"], description="Origins allowed to call the API"
    )

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton, import this throughout the app
settings = Settings()
