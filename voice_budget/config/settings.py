"""
Configuration Management for Voice Budget

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here so it is easy to see which external
services exist. The Gemini credential is optional: without it the app runs
fully offline on the heuristic extractor.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackend(str, Enum):
    """Where ledger snapshots are written."""
    JSON_FILE = "json_file"
    GOOGLE_SHEETS = "google_sheets"
    MEMORY = "memory"


class GeminiSettings(BaseSettings):
    """Gemini transcription and extraction configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key (unset means offline mode)"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Model used for structured extraction"
    )
    transcription_model_name: str = Field(
        default="gemini-1.5-flash",
        description="Model used for speech-to-text"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single remote call"
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for transient Google API errors"
    )

    @field_validator('api_key')
    @classmethod
    def blank_key_is_missing(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def is_configured(self) -> bool:
        return self.api_key is not None


class StorageSettings(BaseSettings):
    """Snapshot persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: StorageBackend = Field(
        default=StorageBackend.JSON_FILE,
        description="Snapshot backend"
    )
    snapshot_path: str = Field(
        default="data/finance_data.json",
        description="Path of the JSON snapshot file"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets snapshot backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Worksheet names within the spreadsheet
    incomes_sheet_name: str = Field(
        default="Incomes",
        description="Name of the sheet for income records"
    )
    expenses_sheet_name: str = Field(
        default="Expenses",
        description="Name of the sheet for expense records"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    debug_mode: bool = Field(
        default=False,
        description="Log at DEBUG regardless of log_level"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    # Voice input
    max_audio_size_mb: int = Field(
        default=10,
        ge=1,
        le=25,
        description="Maximum recorded audio size in MB"
    )
    heuristic_context_window: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Characters inspected on each side of a detected amount"
    )

    # Display
    currency_symbol: str = Field(
        default="$",
        max_length=4,
        description="Symbol shown next to amounts (display only)"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_mode else self.log_level

    @property
    def max_audio_size_bytes(self) -> int:
        """Get max audio size in bytes."""
        return self.max_audio_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus `<name>_error`
    entries for sections that failed to load. Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("gemini", "storage", "google_sheets", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    if results.get("gemini"):
        results["gemini_credential"] = settings.gemini.is_configured

    return results
