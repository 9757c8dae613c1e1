"""
Pydantic schemas for the projects API.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from projects_backend.db import ProjectRecord


class ProjectResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str
    url: str
    image_path: str = Field(..., alias="imagePath")
    created_at: datetime = Field(..., alias="createdAt")

    @classmethod
    def from_record(cls, record: ProjectRecord) -> "ProjectResponse":
        return cls(
            id=record.id,
            title=record.title,
            description=record.description,
            url=record.url,
            image_path=record.image_path,
            created_at=record.created_at,
        )


class ProjectEnvelope(BaseModel):
    message: str
    data: ProjectResponse


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
