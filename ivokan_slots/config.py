"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.exceptions import InvalidParameterError
from .domain.models import validate_timezone
from .domain.slot_discretizer import DEFAULT_BREAK_MINUTES, DEFAULT_MINIMUM_NOTICE_MINUTES


class BookingDefaults(BaseModel):
    """Default settings for slot generation."""
    lesson_duration_minutes: int = 50
    break_minutes: int = DEFAULT_BREAK_MINUTES
    minimum_notice_minutes: int = DEFAULT_MINIMUM_NOTICE_MINUTES
    range_days: int = 14

    @field_validator("lesson_duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure lesson duration is positive."""
        if value <= 0:
            raise ValueError("lesson_duration_minutes must be greater than zero")
        return value

    @field_validator("break_minutes", "minimum_notice_minutes", "range_days")
    @classmethod
    def validate_not_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"Value must not be negative, got {value}")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Paris"
    data_file: Path = Path("availability.yaml")
    defaults: BookingDefaults = Field(default_factory=BookingDefaults)

    @field_validator("timezone")
    @classmethod
    def validate_timezone_name(cls, value: str) -> str:
        """Ensure the timezone is a known IANA identifier."""
        try:
            return validate_timezone(value)
        except InvalidParameterError as exc:
            raise ValueError(str(exc)) from exc

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        A relative ``data_file`` is resolved against the config file's directory.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if not config.data_file.is_absolute():
            config = config.model_copy(
                update={"data_file": config_path.parent / config.data_file}
            )
        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load the configuration from ``config_path`` or the default location.

    Without an explicit path, a missing default file yields the built-in
    defaults instead of an error.
    """
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()
