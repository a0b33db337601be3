"""Configuration management for CleanKit."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MAX_INPUT_CHARS = 10 * 1024 * 1024
DEFAULT_MAX_BATCH_BYTES = 100 * 1024 * 1024


class ProcessingConfig(BaseModel):
    """Configuration for single orchestrated cleaner calls."""

    # Cleaner used when none is named
    default_cleaner: str = "text"

    # Deadline per call; None runs the cleaner inline with no deadline
    timeout_seconds: Optional[float] = Field(default=30.0, gt=0)

    # Largest accepted input, in characters
    max_input_chars: int = Field(default=DEFAULT_MAX_INPUT_CHARS, ge=1)


class BatchConfig(BaseModel):
    """Configuration for batch runs."""

    max_items: int = Field(default=100, ge=1)
    max_total_bytes: int = Field(default=DEFAULT_MAX_BATCH_BYTES, ge=1)

    # Isolate per-item failures (False aborts at the first failure)
    continue_on_error: bool = True

    # Chunked mode when set
    chunk_size: Optional[int] = Field(default=None, ge=1)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "text"


class EventsConfig(BaseModel):
    """Configuration for lifecycle notifications."""

    enabled: bool = True


class CleanKitConfig(BaseSettings):
    """
    Main configuration for CleanKit.

    Configuration is loaded from (in order of precedence):
    1. Explicit values passed to constructor
    2. Environment variables (CLEANKIT_* prefix)
    3. YAML config file (if specified)
    4. Default values

    Example YAML config:
        processing:
          default_cleaner: json
          timeout_seconds: 10

        batch:
          max_items: 500
          continue_on_error: false
          chunk_size: 25

        cleaners:
          csv:
            delimiter: ";"
          json:
            sort_keys: true

        logging:
          level: DEBUG

    Environment variables:
        CLEANKIT_PROCESSING__TIMEOUT_SECONDS=5
        CLEANKIT_BATCH__MAX_ITEMS=250
        CLEANKIT_LOGGING__FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="CLEANKIT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Sub-configurations
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)

    # Per-cleaner option overrides, layered under call-level options
    cleaners: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> CleanKitConfig:
        """Load configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CleanKitConfig:
        """Create configuration from a dictionary."""
        return cls(**data)

    @classmethod
    def load(
        cls,
        config: Optional[Union[CleanKitConfig, Dict[str, Any], str, Path]] = None,
    ) -> CleanKitConfig:
        """
        Load configuration from various sources.

        Args:
            config: Can be:
                - CleanKitConfig instance (returned as-is)
                - dict (parsed as config)
                - str/Path to YAML file
                - None (uses defaults + env vars)

        Returns:
            CleanKitConfig instance
        """
        if config is None:
            env_path = os.environ.get("CLEANKIT_CONFIG_PATH")
            if env_path and Path(env_path).exists():
                return cls.from_yaml(env_path)
            return cls()

        if isinstance(config, CleanKitConfig):
            return config

        if isinstance(config, dict):
            return cls.from_dict(config)

        if isinstance(config, (str, Path)):
            return cls.from_yaml(config)

        raise TypeError(f"Invalid config type: {type(config)}")

    def cleaner_defaults(self, cleaner_id: str) -> Dict[str, Any]:
        """Option overrides configured for one cleaner (a copy)."""
        return dict(self.cleaners.get(cleaner_id, {}))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration to dictionary."""
        return self.model_dump()

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)
