"""
Dependency wiring for the FastAPI app.

Stores are built once per process by the app lifespan and kept on
``app.state``; request handlers reach them through the callables below.
"""

from __future__ import annotations

import logging

from fastapi import Request

from projects_backend.config import Settings
from projects_backend.db import InMemoryProjectStore, ProjectStore, SqlProjectStore
from projects_backend.service import ProjectService
from projects_backend.storage import (
    AssetStore,
    CloudinaryAssetStore,
    LocalDiskAssetStore,
    PlaceholderAssetStore,
    S3AssetStore,
)

logger = logging.getLogger(__name__)


def build_project_store(settings: Settings) -> ProjectStore:
    if settings.use_in_memory_backends or not settings.database_url:
        logger.info("Using in-memory project store")
        return InMemoryProjectStore()
    return SqlProjectStore(settings.database_url)


def build_asset_store(settings: Settings) -> AssetStore:
    backend = settings.asset_backend
    placeholder = PlaceholderAssetStore(reference=settings.placeholder_image_url)

    if backend == "placeholder":
        return placeholder

    if backend == "local":
        return LocalDiskAssetStore(
            directory=settings.upload_dir, url_prefix=settings.upload_url_prefix
        )

    if backend == "s3":
        if settings.use_in_memory_backends or not settings.s3_bucket:
            logger.warning("S3 bucket not configured, using placeholder images")
            return placeholder
        return S3AssetStore(
            bucket=settings.s3_bucket,
            region=settings.s3_region or "",
            endpoint=settings.s3_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            folder=settings.asset_folder,
            public_base_url=settings.s3_public_base_url,
        )

    if backend == "cloudinary":
        if settings.use_in_memory_backends or not settings.cloudinary_cloud_name:
            logger.warning("Cloudinary not configured, using placeholder images")
            return placeholder
        return CloudinaryAssetStore(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key or "",
            api_secret=settings.cloudinary_api_secret or "",
            folder=settings.asset_folder,
        )

    raise ValueError(f"Unknown asset backend: {backend}")


def get_project_store(request: Request) -> ProjectStore:
    return request.app.state.project_store


def get_asset_store(request: Request) -> AssetStore:
    return request.app.state.asset_store


def get_project_service(request: Request) -> ProjectService:
    return ProjectService(
        store=get_project_store(request), assets=get_asset_store(request)
    )
