"""
Centralized configuration management using Pydantic Settings.

Settings are loaded from environment variables and an optional .env file.
Command line flags (see crud.cli) override them by passing keyword
arguments to Settings().
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


PACKAGE_DIR = Path(__file__).resolve().parent.parent

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The driver name is not validated here: the repository factory owns the
    list of supported drivers and reports unknown ones as configuration
    errors.
    """

    # Storage
    driver: str = Field(
        default="memory",
        description="Storage driver: memory, sqlite3 or postgres"
    )
    conn: str = Field(
        default="",
        description="Connection string (ignored by the memory driver)"
    )

    # Listener
    host: str = Field(
        default="0.0.0.0",
        description="Bind address for the HTTP listener"
    )
    port: int = Field(
        default=5050,
        ge=1,
        le=65535,
        description="Bind port for the HTTP listener"
    )
    mount_prefix: str = Field(
        default="/view",
        description="Path prefix the user controller is mounted under"
    )

    # Rendering
    templates_directory: str = Field(
        default=str(PACKAGE_DIR / "templates"),
        description="Directory holding the Jinja2 page and fragment templates"
    )
    require_hx_request: bool = Field(
        default=False,
        description="Reject controller requests that lack the HX-Request header"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )
    json_logs: bool = Field(
        default=True,
        description="Emit single-line JSON logs (plain text when false)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("driver")
    @classmethod
    def normalize_driver(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("mount_prefix")
    @classmethod
    def normalize_mount_prefix(cls, v: str) -> str:
        """
        Normalize the mount prefix to "/segment" form.

        "view", "/view" and "/view/" all become "/view". An empty value
        mounts the controller at the root.
        """
        v = v.strip().strip("/")
        return f"/{v}" if v else ""

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL must be one of: {', '.join(VALID_LOG_LEVELS)}. Got: {v}"
            )
        return level


def get_settings(**overrides) -> Settings:
    """
    Build settings from the environment, applying explicit overrides.

    Overrides whose value is None are dropped so unset CLI flags fall back
    to the environment.
    """
    return Settings(**{k: v for k, v in overrides.items() if v is not None})
