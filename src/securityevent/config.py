"""Configuration management for the security event processor.

This module provides a centralized configuration loader that:
1. Reads YAML configuration files
2. Applies environment variable overrides
3. Provides type-safe configuration objects
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field

from openreports.config import OpenReportsConfig


class ProcessorsConfig(BaseModel):
    """Per-format processor settings."""
    openreports: OpenReportsConfig = Field(default_factory=OpenReportsConfig)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    structured: bool = True


class Config(BaseModel):
    """Main configuration object."""
    environment: str = "dev"
    app_name: str = "security-event-processor"
    processors: ProcessorsConfig = Field(default_factory=ProcessorsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def validate_config(self) -> None:
        """Check settings that may have been changed after construction.

        Raises:
            ValueError: If the OpenReports status filter holds an unknown status.
        """
        self.processors.openreports.validate_config()


def create_default_config() -> Config:
    """Configuration with every processor disabled."""
    return Config()


def load_config(environment: Optional[str] = None) -> Config:
    """Load configuration from environment variables and YAML files.

    Args:
        environment: Environment name (dev/prod). If None, uses ENVIRONMENT env var.

    Returns:
        Loaded configuration object.

    Raises:
        FileNotFoundError: If configuration file doesn't exist.
        pydantic.ValidationError: If configuration is invalid.
    """
    env = environment or os.getenv("ENVIRONMENT", "dev")

    config_dir = Path(__file__).parent.parent.parent / "config"
    config_file = config_dir / f"{env}.yml"

    config = load_config_file(config_file)
    if config.environment != env:
        config = config.model_copy(update={"environment": env})
    return config


def load_config_file(config_file: Union[str, Path]) -> Config:
    """Load configuration from an explicit YAML file plus env overrides."""
    config_file = Path(config_file)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    with open(config_file, 'r') as f:
        config_data = yaml.safe_load(f) or {}

    config_data = _apply_env_overrides(config_data)

    return Config(**config_data)


def _env_flag_true(val: Optional[str]) -> bool:
    return (val or "").lower() in ("1", "true", "yes")


def _openreports_section(config_data: Dict[str, Any]) -> Dict[str, Any]:
    # YAML keys with no value load as None
    processors = config_data.get("processors") or {}
    config_data["processors"] = processors
    section = processors.get("openreports") or {}
    processors["openreports"] = section
    return section


def _apply_env_overrides(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to configuration data."""
    enabled = os.getenv("OPENREPORTS_ENABLED")
    if enabled:
        _openreports_section(config_data)["enabled"] = _env_flag_true(enabled)

    # comma-separated, blanks ignored
    status_filter = os.getenv("OPENREPORTS_STATUS_FILTER")
    if status_filter is not None:
        statuses = [s.strip() for s in status_filter.split(",") if s.strip()]
        _openreports_section(config_data)["status_filter"] = statuses

    log_level = os.getenv("LOG_LEVEL")
    if log_level:
        config_data.setdefault("logging", {})["level"] = log_level.upper()

    return config_data
