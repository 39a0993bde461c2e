"""
Configuration Management for ZenFinance

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist.
Unlike the other services, missing Google Sheets or Gemini configuration
is not fatal: the app drops into offline/demo mode or returns a
fallback advice message instead.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets record store configuration."""

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

    # One worksheet per entity kind
    accounts_sheet_name: str = Field(
        default="Accounts",
        description="Name of the sheet for bank accounts"
    )
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet for transactions"
    )
    users_sheet_name: str = Field(
        default="Users",
        description="Name of the sheet for sign-in credentials"
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

    def sheet_name_for(self, kind: str) -> str:
        """Map an entity kind ('accounts', 'transactions', 'users') to its worksheet."""
        names = {
            "accounts": self.accounts_sheet_name,
            "transactions": self.transactions_sheet_name,
            "users": self.users_sheet_name,
        }
        return names[kind]


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Optional: without a key the advisor returns a fallback message
    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Timeout for a single advice request"
    )
    max_attempts: int = Field(
        default=2,
        ge=1,
        le=3,
        description="Total attempts for an advice request (1 = no retry)"
    )
    retry_wait_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=30.0,
        description="Pause before retrying a failed advice request"
    )

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_key.strip())


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

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Log level for structured logging"
    )

    # Advice
    advice_language: str = Field(
        default="English",
        description="Language the AI advisor should answer in"
    )
    advice_transactions_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="How many recent transactions are summarized for the advisor"
    )

    # Dashboard
    recent_transactions_limit: int = Field(
        default=5,
        ge=1,
        le=50,
        description="How many transactions the dashboard shows"
    )

    # Validation thresholds
    future_date_tolerance_days: int = Field(
        default=7,
        description="How many days in the future a transaction date can be without a warning"
    )

    # Offline/demo identity
    demo_user_id: str = Field(
        default="demo",
        description="Owner identifier used in offline/demo mode"
    )
    demo_email: str = Field(
        default="demo@example.com",
        description="Email shown in offline/demo mode"
    )


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
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()

    @property
    def store_configured(self) -> bool:
        """True when the Google Sheets store has the settings it needs."""
        try:
            _ = self.google_sheets
        except ValidationError:
            return False
        return True


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for the settings page.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        gemini = settings.gemini
        results["gemini"] = gemini.has_credentials
        if not gemini.has_credentials:
            results["gemini_error"] = "GEMINI_API_KEY is not set"
    except Exception as e:
        results["gemini"] = False
        results["gemini_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
