"""Configuration loading for the unimock framework.

Settings are read from UNIMOCK_* environment variables or a .env file.
They bound how deep dummies nest, decide whether call arguments are
snapshotted at call time, control the scenario report logged when a
registry closes, and set up the framework logger.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Framework configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv. Every variable carries the
    ``UNIMOCK_`` prefix, e.g. ``UNIMOCK_DUMMY_MAX_DEPTH=5``.
    """

    model_config = SettingsConfigDict(
        env_prefix="UNIMOCK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Dummy construction
    dummy_max_depth: int = Field(
        default=3,
        description="Nesting depth up to which dummy fields are expanded",
    )

    # Invocation recording
    snapshot_arguments: bool = Field(
        default=True,
        description="Copy comparable arguments at call time for later matching",
    )

    # Diagnostics
    scenario_report_on_teardown: bool = Field(
        default=True,
        description="Log the invocations of all mocks at DEBUG when a registry closes",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Log level of the unimock logger",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )
    log_to_stream: bool = Field(
        default=False,
        description="Attach a stdout handler to the unimock logger",
    )

    @field_validator("dummy_max_depth")
    @classmethod
    def validate_dummy_max_depth(cls, v: int) -> int:
        """Ensure at least one level of dummy expansion."""
        if v < 1:
            raise ValueError("dummy_max_depth must be at least 1")
        return v


def load_settings(env_file: str | None = None) -> Settings:
    """Load framework settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "load_settings"]
