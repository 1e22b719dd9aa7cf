"""
Configuration management for Nomination Desk.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", populate_by_name=True
    )

    # Application
    app_name: str = Field(default="Nomination Desk", alias="APP_NAME")
    debug: bool = Field(default=False, alias="DEBUG")
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # API
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    api_workers: int = Field(default=1, alias="API_WORKERS")

    # Database
    database_url: str = Field(
        default="sqlite:///./nomination_desk.db", alias="DATABASE_URL"
    )

    # Blob storage for nomination attachments
    blob_store_uri: str = Field(
        default="file://./uploaded_files", alias="BLOB_STORE_URI"
    )
    blob_public_base_url: Optional[str] = Field(
        default=None,
        alias="BLOB_PUBLIC_BASE_URL",
        description="Prefix used to build public URLs for stored files. "
        "Falls back to the blob store URI when unset.",
    )

    # Public site (continuation links point here)
    site_url: str = Field(default="https://tpahla.africa", alias="SITE_URL")

    # Email
    resend_api_key: Optional[str] = Field(default=None, alias="RESEND_API_KEY")
    email_from: str = Field(
        default="TPAHLA <noreply@tpahla.africa>", alias="EMAIL_FROM"
    )
    admin_notification_email: Optional[str] = Field(
        default=None, alias="ADMIN_NOTIFICATION_EMAIL"
    )

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    # Attachment limits (per nomination)
    max_cv_resume: int = Field(default=1, alias="MAX_CV_RESUME")
    max_photo_media: int = Field(default=3, alias="MAX_PHOTO_MEDIA")

    # Admin listing
    default_page_size: int = Field(default=20, alias="DEFAULT_PAGE_SIZE")


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
