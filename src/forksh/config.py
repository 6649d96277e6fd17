"""Configuration management for forksh."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError
from .logging_utils import configure_logging

_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Shell settings."""

    # Interactive Configuration
    prompt: str = Field(default="$ ", description="Prompt shown by the interactive loop")

    # Execution Configuration
    create_mode: int = Field(default=0o644, description="Permission bits for files created by output redirection")
    parse_error_status: int = Field(default=-1, description="Status returned when a line fails to parse")
    exec_failure_status: int = Field(default=127, description="Child exit status when the program cannot be executed")
    exit_on_spawn_failure: bool = Field(default=True, description="Terminate the shell when fork or pipe fails")

    # Logging Configuration
    log_level: str = Field(default="WARNING", description="Log level")

    model_config = SettingsConfigDict(
        env_prefix="FORKSH_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level: {value}")
        return level

    @field_validator("create_mode", mode="before")
    @classmethod
    def _parse_create_mode(cls, value: object) -> object:
        # Permission bits are written in octal: 0644, 644 and 0o644 agree
        if isinstance(value, str):
            try:
                return int(value.strip(), 8)
            except ValueError:
                raise ValueError(f"create_mode must be octal: {value}") from None
        return value

    @field_validator("create_mode")
    @classmethod
    def _check_create_mode(cls, value: int) -> int:
        if not 0 <= value <= 0o7777:
            raise ValueError(f"create_mode out of range: {oct(value)}")
        return value

    @field_validator("exec_failure_status")
    @classmethod
    def _check_exit_status(cls, value: int) -> int:
        if not 1 <= value <= 255:
            raise ValueError("exec_failure_status must be between 1 and 255")
        return value


def get_settings(log_level: Optional[str] = None) -> Settings:
    """Get shell settings.

    Args:
        log_level: Optional log level override

    Returns:
        Settings instance
    """
    try:
        settings = Settings() if log_level is None else Settings(log_level=log_level)
    except ValueError as exc:
        # pydantic's ValidationError subclasses ValueError
        raise ConfigurationError(str(exc)) from exc

    configure_logging(settings.log_level)

    return settings
