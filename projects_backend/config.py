"""
Configuration and settings for the projects backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PLACEHOLDER_IMAGE_URL = "https://placehold.co/600x400?text=Project"


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    app_name: str = Field(default="Projects Backend")
    api_prefix: str = Field(default="")

    # Record store (any SQLAlchemy URL; Postgres or SQLite expected)
    database_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "PROJECTS_USE_IN_MEMORY_BACKENDS", "use_in_memory_backends"
        ),
    )

    # Asset store selection
    asset_backend: Literal["local", "placeholder", "s3", "cloudinary"] = Field(
        default="local"
    )
    asset_folder: str = Field(default="projects")
    upload_dir: str = Field(default="uploads")
    upload_url_prefix: str = Field(default="/uploads")
    placeholder_image_url: str = Field(default=DEFAULT_PLACEHOLDER_IMAGE_URL)

    # S3-compatible storage
    s3_bucket: Optional[str] = Field(default=None)
    s3_region: Optional[str] = Field(default=None)
    s3_endpoint: Optional[str] = Field(default=None)
    s3_public_base_url: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Cloudinary
    cloudinary_cloud_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CLOUD_NAME", "cloudinary_cloud_name"),
    )
    cloudinary_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CLOUD_API_KEY", "cloudinary_api_key"),
    )
    cloudinary_api_secret: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CLOUD_API_SECRET", "cloudinary_api_secret"),
    )

    # HTTP server
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=1000)
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
