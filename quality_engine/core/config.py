# Data Quality Engine - Core Configuration
# Typed, validated settings loaded from the environment (prefix DQ_) or a .env file

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Logging level enumeration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AnalysisSettings(BaseSettings):
    """
    Tunables for a single analysis run.

    Defaults reproduce the scores users have already seen; change them only
    through the environment for experiments.
    """

    model_config = SettingsConfigDict(
        env_prefix="DQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Type inference
    type_sample_size: int = Field(default=100, ge=1, le=100_000, description="Non-null values sampled per column")
    date_ratio_threshold: float = Field(default=0.7, ge=0.0, le=1.0, description="Share of dates needed to call a column 'date'")
    pattern_ratio_threshold: float = Field(default=0.8, ge=0.0, le=1.0, description="Share of matches needed for email/phone")

    # Outliers
    outlier_z_threshold: float = Field(default=2.5, gt=0.0, description="|z| above which a value is an outlier")
    outlier_min_samples: int = Field(default=4, ge=2, description="Minimum numeric values before z-scores are computed")

    # Contextual validation
    empty_value_min_fill_ratio: float = Field(
        default=0.9, ge=0.0, le=1.0,
        description="Blank strings are flagged only in columns at least this populated"
    )

    # Logging
    log_level: LogLevel = Field(default=LogLevel.INFO)
    log_format: str = Field(default="text")  # json or text

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v.lower() not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v.lower()


@lru_cache(maxsize=1)
def get_settings() -> AnalysisSettings:
    """Get cached settings instance."""
    return AnalysisSettings()
