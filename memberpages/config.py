"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Attributes:
        app_name: Name of the application.
        debug: Enable debug mode.
        database_url: Database connection URL.
        secret_key: Secret key for JWT signing.
        access_token_expire_minutes: JWT access token expiration time.
        refresh_token_expire_days: JWT refresh token expiration time.
        algorithm: JWT signing algorithm.
        admin_emails: Comma-separated addresses that are always approved admins.
        allowed_email_domain: Only addresses on this domain may apply (empty = any).
        member_area_path: URL prefix of the members-only area.
        sheet_export_url_template: CSV export endpoint for a spreadsheet tab.
        sheet_fetch_timeout: Timeout in seconds for spreadsheet downloads.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "memberpages"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"

    # Database
    database_url: str = "sqlite:///./memberpages.db"

    # Security
    secret_key: str = "change-this-to-a-secure-secret-key"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 7

    cors_origins: list[str] = ["http://localhost:8000", "http://127.0.0.1:8000"]

    # Membership
    admin_emails: str = ""
    allowed_email_domain: str = "gmail.com"

    # Pages and spreadsheet import
    member_area_path: str = "/dashboard"
    sheet_export_url_template: str = (
        "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?tqx=out:csv&gid={gid}"
    )
    sheet_fetch_timeout: float = 30.0

    # Uploaded media
    media_dir: str = "media"
    media_url_path: str = "/media"

    # LLM / AI settings (OpenRouter)
    llm_api_key: str = ""
    llm_base_url: str = "https://openrouter.ai/api/v1"
    llm_default_model: str = "anthropic/claude-sonnet-4"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 2048

    @property
    def admin_email_list(self) -> list[str]:
        """Admin addresses, lowercased, blanks dropped."""
        return [e.strip().lower() for e in self.admin_emails.split(",") if e.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings.
    """
    return Settings()
