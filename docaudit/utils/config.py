"""Configuration management using Pydantic for validation."""

from pathlib import Path
from typing import Any, Dict, List, Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TextExtractionConfig(BaseSettings):
    """Document-to-text configuration."""

    model_config = SettingsConfigDict(env_prefix="TEXT_EXTRACTION_", case_sensitive=False)

    ocr_enabled: bool = True
    language: str = "es"
    supported_formats: List[str] = [".docx", ".pdf", ".xlsx", ".txt"]
    fallback_encoding: str = "latin-1"

    @field_validator("supported_formats")
    @classmethod
    def validate_supported_formats(cls, v: List[str]) -> List[str]:
        """Normalize extensions to lowercase with a leading dot."""
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v]


class LicenseExtractionConfig(BaseSettings):
    """License metadata extraction configuration."""

    model_config = SettingsConfigDict(env_prefix="LICENSE_", case_sensitive=False)

    anchors_file: str | None = None
    date_window: int = Field(default=3, ge=0, le=20)
    two_digit_year_pivot: int = Field(default=49, ge=0, le=99)


class PersonalDataConfig(BaseSettings):
    """Personal-data detection configuration."""

    model_config = SettingsConfigDict(env_prefix="PERSONAL_DATA_", case_sensitive=False)

    rules_file: str | None = None
    matches_per_rule: int = Field(default=3, ge=1)
    max_indicators: int = Field(default=25, ge=1)
    max_indicator_length: int = Field(default=90, ge=10)
    card_weight: float = Field(default=0.30, ge=0.0, le=1.0)
    multi_category_bonus: float = Field(default=0.10, ge=0.0, le=1.0)


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", case_sensitive=False)

    level: str = "INFO"
    format: Literal["json", "text"] = "text"
    file: str | None = None
    rotation: str = "10 MB"
    retention: int = 3


class Config(BaseSettings):
    """Main configuration class."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    text_extraction: TextExtractionConfig = Field(default_factory=TextExtractionConfig)
    license: LicenseExtractionConfig = Field(default_factory=LicenseExtractionConfig)
    personal_data: PersonalDataConfig = Field(default_factory=PersonalDataConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @staticmethod
    def _deep_merge_dict(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """Deep-merge two dicts (overrides win)."""
        merged: Dict[str, Any] = dict(base)
        for key, value in overrides.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = Config._deep_merge_dict(merged[key], value)
            else:
                merged[key] = value
        return merged

    @classmethod
    def from_yaml(cls, yaml_path: str | Path = "config/config.yaml") -> "Config":
        """Load configuration from YAML file and environment variables.

        Precedence (highest to lowest):
        1) Environment variables / .env
        2) YAML file
        3) Model defaults

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance with loaded settings

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ValueError: If the YAML root is not a mapping
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(yaml_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        if not isinstance(yaml_config, dict):
            raise ValueError(f"YAML config root must be a mapping/dict: {yaml_path}")

        # Only values that differ from the defaults count as env overrides.
        env_overrides = cls().model_dump(exclude_defaults=True)
        merged = cls._deep_merge_dict(yaml_config, env_overrides)

        return cls(**merged)

    def validate_config(self) -> None:
        """Validate configuration settings.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.text_extraction.supported_formats:
            raise ValueError("At least one supported document format is required")

        level = self.logging.level.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown logging level: {self.logging.level}")

        for label, path in (
            ("license.anchors_file", self.license.anchors_file),
            ("personal_data.rules_file", self.personal_data.rules_file),
        ):
            if path and not Path(path).exists():
                raise ValueError(f"{label} points to a missing file: {path}")


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Raises:
        RuntimeError: If configuration hasn't been initialized
    """
    global _config
    if _config is None:
        raise RuntimeError("Configuration not initialized. Call load_config() first.")
    return _config


def load_config(yaml_path: str | Path = "config/config.yaml") -> Config:
    """Load and validate configuration.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        Loaded and validated Config instance
    """
    global _config
    _config = Config.from_yaml(yaml_path)
    _config.validate_config()
    return _config


def reset_config() -> None:
    """Reset global configuration (mainly for testing)."""
    global _config
    _config = None
