"""
FastAPI application entry point for the projects backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from projects_backend.config import Settings, get_settings
from projects_backend.db import ProjectStore
from projects_backend.dependencies import build_asset_store, build_project_store
from projects_backend.errors import ProjectError
from projects_backend.logging_config import configure_logging
from projects_backend.routes import router
from projects_backend.schemas import HealthResponse
from projects_backend.storage import AssetStore, LocalDiskAssetStore

logger = logging.getLogger(__name__)


def _install_exception_handlers(app: FastAPI) -> None:
    """Every error leaves the API as ``{"error": "<text>"}``."""

    @app.exception_handler(ProjectError)
    async def project_error_handler(request: Request, exc: ProjectError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Invalid request"})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s", request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def _mount_uploads(
    app: FastAPI, settings: Settings, asset_store: Optional[AssetStore]
) -> None:
    if isinstance(asset_store, LocalDiskAssetStore):
        directory, prefix = asset_store.directory, asset_store.url_prefix
    elif asset_store is None and settings.asset_backend == "local":
        directory, prefix = settings.upload_dir, "/" + settings.upload_url_prefix.strip("/")
    else:
        return
    # The directory is created by the asset store during startup.
    app.mount(prefix, StaticFiles(directory=directory, check_dir=False), name="uploads")


def create_app(
    settings: Optional[Settings] = None,
    *,
    project_store: Optional[ProjectStore] = None,
    asset_store: Optional[AssetStore] = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        app.state.project_store = project_store or build_project_store(settings)
        app.state.asset_store = asset_store or build_asset_store(settings)
        logger.info(
            "Starting %s (records: %s, assets: %s)",
            settings.app_name,
            app.state.project_store.__class__.__name__,
            app.state.asset_store.__class__.__name__,
        )
        yield
        app.state.asset_store.close()
        app.state.project_store.close()
        logger.info("Shutdown complete")

    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_exception_handlers(app)

    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(status="healthy")

    app.include_router(router, prefix=settings.api_prefix)
    _mount_uploads(app, settings, asset_store)
    return app


app = create_app()
