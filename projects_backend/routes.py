"""
HTTP routes for the projects API.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from projects_backend.dependencies import get_project_service
from projects_backend.schemas import (
    ErrorResponse,
    MessageResponse,
    ProjectEnvelope,
    ProjectResponse,
)
from projects_backend.service import ProjectService
from projects_backend.storage import ImageUpload

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _to_image_upload(image: Optional[UploadFile]) -> Optional[ImageUpload]:
    if image is None or not image.filename:
        return None
    return ImageUpload(
        filename=image.filename,
        content_type=image.content_type or "",
        data=image.file.read(),
    )


@router.get(
    "/",
    response_model=list[ProjectResponse],
    responses={500: {"model": ErrorResponse}},
)
def list_projects(service: ProjectService = Depends(get_project_service)):
    """Newest projects first."""
    return [ProjectResponse.from_record(r) for r in service.list_projects()]


@router.post(
    "/",
    response_model=ProjectEnvelope,
    status_code=201,
    responses=ERROR_RESPONSES,
)
def create_project(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    url: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    service: ProjectService = Depends(get_project_service),
):
    record = service.create_project(
        title=title,
        description=description,
        url=url,
        image=_to_image_upload(image),
    )
    return ProjectEnvelope(
        message="Project saved successfully",
        data=ProjectResponse.from_record(record),
    )


@router.put("/{project_id}", response_model=ProjectEnvelope, responses=ERROR_RESPONSES)
def update_project(
    project_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    url: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    service: ProjectService = Depends(get_project_service),
):
    """
    Fields left out of the form keep their current values. A new image
    replaces the old one.
    """
    record = service.update_project(
        project_id,
        title=title,
        description=description,
        url=url,
        image=_to_image_upload(image),
    )
    return ProjectEnvelope(
        message="Project updated successfully",
        data=ProjectResponse.from_record(record),
    )


@router.delete(
    "/{project_id}", response_model=MessageResponse, responses=ERROR_RESPONSES
)
def delete_project(
    project_id: str, service: ProjectService = Depends(get_project_service)
):
    service.delete_project(project_id)
    return MessageResponse(message="Project deleted successfully")
