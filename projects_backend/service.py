"""
Project service: validates input and coordinates the asset and record stores.
"""

from __future__ import annotations

import logging
from typing import Optional

from projects_backend.db import ProjectRecord, ProjectStore
from projects_backend.errors import NotFoundError, StoreError, ValidationError
from projects_backend.storage import AssetStore, ImageUpload

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "All fields (title, description, url, image) are required"
NOT_FOUND_MESSAGE = "Project not found"


def _has_image(image: Optional[ImageUpload]) -> bool:
    return bool(image and image.filename and image.data)


class ProjectService:
    """Create, list, update and delete projects."""

    def __init__(self, store: ProjectStore, assets: AssetStore):
        self.store = store
        self.assets = assets

    def _release(self, reference: Optional[str]) -> None:
        if not reference:
            return
        try:
            self.assets.release(reference)
        except Exception:
            logger.warning("Failed to release asset %s", reference, exc_info=True)

    def list_projects(self) -> list[ProjectRecord]:
        try:
            return self.store.find_all()
        except Exception as exc:
            logger.exception("Failed to fetch projects")
            raise StoreError("Error fetching projects from database") from exc

    def create_project(
        self,
        title: Optional[str],
        description: Optional[str],
        url: Optional[str],
        image: Optional[ImageUpload],
    ) -> ProjectRecord:
        if not title or not description or not url or not _has_image(image):
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)

        try:
            image_path = self.assets.store(image)
            record = self.store.insert(
                ProjectRecord(
                    title=title,
                    description=description,
                    url=url,
                    image_path=image_path,
                )
            )
        except ValidationError:
            raise
        except Exception as exc:
            # A stored asset is not cleaned up here if the insert fails.
            logger.exception("Failed to save project %r", title)
            raise StoreError("Error saving to database") from exc

        logger.info("Created project %s", record.id)
        return record

    def update_project(
        self,
        project_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        url: Optional[str] = None,
        image: Optional[ImageUpload] = None,
    ) -> ProjectRecord:
        try:
            existing = self.store.find_by_id(project_id)
        except Exception as exc:
            logger.exception("Failed to load project %s", project_id)
            raise StoreError("Error updating project") from exc
        if not existing:
            raise NotFoundError(NOT_FOUND_MESSAGE)

        supplied = {"title": title, "description": description, "url": url}
        changes = {name: value for name, value in supplied.items() if value}
        try:
            if _has_image(image):
                changes["image_path"] = self.assets.store(image)
            updated = self.store.update(project_id, changes)
        except ValidationError:
            raise
        except Exception as exc:
            logger.exception("Failed to update project %s", project_id)
            raise StoreError("Error updating project") from exc
        if not updated:
            # Deleted between the lookup and the write.
            raise NotFoundError(NOT_FOUND_MESSAGE)

        if "image_path" in changes and existing.image_path != updated.image_path:
            self._release(existing.image_path)

        logger.info("Updated project %s", project_id)
        return updated

    def delete_project(self, project_id: str) -> ProjectRecord:
        try:
            removed = self.store.delete(project_id)
        except Exception as exc:
            logger.exception("Failed to delete project %s", project_id)
            raise StoreError("Error deleting project") from exc
        if not removed:
            raise NotFoundError(NOT_FOUND_MESSAGE)

        self._release(removed.image_path)
        logger.info("Deleted project %s", project_id)
        return removed
