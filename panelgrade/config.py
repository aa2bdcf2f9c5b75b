"""
Configuration management for the Panel Grader system.

Uses Pydantic Settings for type-safe configuration loading from environment variables.
All configuration is validated at startup to fail fast on misconfiguration.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogFormat(str, Enum):
    """Rendering mode for log output."""

    CONSOLE = "console"  # Colored, human readable
    JSON = "json"  # One JSON object per line


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are validated at startup. Grading policy constants
    default to the values the defense panels have always used.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Storage Configuration
    # ==========================================================================
    data_file: Path = Field(
        default=Path("./data/panelgrade.json"),
        description="JSON document holding users and grade sheets",
    )

    output_directory: Path = Field(
        default=Path("./output"),
        description="Directory for exported reports and backups",
    )

    # ==========================================================================
    # Grading Policy
    # ==========================================================================
    passing_score: float = Field(
        default=70.0,
        ge=0.0,
        le=100.0,
        description="Minimum group final score that counts as 'Passed'",
    )

    title_defense_share: float = Field(
        default=70.0,
        ge=0.0,
        le=100.0,
        description="Points of a panel's grade carried by the title-defense rubric",
    )

    individual_share: float = Field(
        default=30.0,
        ge=0.0,
        le=100.0,
        description="Points of a panel's grade carried by the individual rubric",
    )

    min_proponents: int = Field(
        default=3,
        ge=1,
        description="Smallest group accepted by spreadsheet import",
    )

    max_proponents: int = Field(
        default=4,
        ge=1,
        description="Largest group accepted by spreadsheet import",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================
    log_level: str = Field(
        default="INFO",
        description="Minimum log level (DEBUG, INFO, WARNING, ERROR)",
    )

    log_format: LogFormat = Field(
        default=LogFormat.CONSOLE,
        description="Log renderer",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("output_directory")
    @classmethod
    def validate_output_directory(cls, v: Path) -> Path:
        """Ensure output directory exists or can be created."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    @model_validator(mode="after")
    def validate_policy(self) -> "Settings":
        """Ensure the rubric shares make up a full grade and group bounds are ordered."""
        if abs(self.title_defense_share + self.individual_share - 100.0) > 1e-9:
            raise ValueError(
                f"title_defense_share ({self.title_defense_share}) and individual_share "
                f"({self.individual_share}) must sum to 100"
            )
        if self.min_proponents > self.max_proponents:
            raise ValueError("min_proponents cannot exceed max_proponents")
        return self


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    """
    return Settings()
