"""
Configuration and settings for the studio site and CMS.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    environment: Literal["development", "production", "test"] = Field(
        default="development", env="ENVIRONMENT"
    )
    site_name: str = Field(default="ZSCORE.studio", env="SITE_NAME")
    site_base_url: str = Field(default="https://zscore.studio", env="SITE_BASE_URL")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", env="LOG_LEVEL"
    )

    # Admin authentication
    admin_username: str = Field(default="zscore_admin", env="ADMIN_USERNAME")
    admin_password_hash: str = Field(default="", env="ADMIN_PASSWORD_HASH")
    admin_secret_key: str = Field(default="", env="ADMIN_SECRET_KEY")
    session_cookie_name: str = Field(default="zscore_admin_token")
    session_duration_seconds: int = Field(
        default=3600, ge=60, env="SESSION_DURATION_SECONDS"
    )

    # Login rate limiting (process-local)
    login_max_attempts: int = Field(default=5, ge=1, env="LOGIN_MAX_ATTEMPTS")
    login_lockout_seconds: int = Field(default=300, ge=1, env="LOGIN_LOCKOUT_SECONDS")

    # Blob storage for JSON documents and HTML bodies (S3-compatible)
    content_prefix: str = Field(default="clean-data/")
    blob_endpoint: Optional[str] = Field(default=None, env="BLOB_ENDPOINT")
    blob_region: Optional[str] = Field(default=None, env="BLOB_REGION")
    blob_bucket: Optional[str] = Field(default=None, env="BLOB_BUCKET")
    blob_public_base_url: Optional[str] = Field(
        default=None, env="BLOB_PUBLIC_BASE_URL"
    )
    aws_access_key_id: Optional[str] = Field(default=None, env="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: Optional[str] = Field(
        default=None, env="AWS_SECRET_ACCESS_KEY"
    )
    local_content_dir: str = Field(default="content-data", env="LOCAL_CONTENT_DIR")

    # Git content repository for images
    github_token: Optional[str] = Field(default=None, env="GITHUB_TOKEN")
    content_github_owner: str = Field(default="zscorenotes", env="CONTENT_GITHUB_OWNER")
    content_github_repo: str = Field(default="zscore-content", env="CONTENT_GITHUB_REPO")
    content_github_branch: str = Field(default="main", env="CONTENT_GITHUB_BRANCH")

    # Uploads
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, ge=1, env="MAX_UPLOAD_BYTES")
    thumbnail_size: int = Field(default=400, ge=16, env="THUMBNAIL_SIZE")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "CMS_USE_IN_MEMORY_BACKENDS", "use_in_memory_backends"
        ),
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
