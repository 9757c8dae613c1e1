"""
Error taxonomy shared by the service and the HTTP layer.
"""

from __future__ import annotations


class ProjectError(Exception):
    """Base error carrying a user-visible message and an HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ProjectError):
    """A required field is missing or the uploaded image type is not allowed."""

    status_code = 400


class NotFoundError(ProjectError):
    status_code = 404


class StoreError(ProjectError):
    """The asset store or the record store failed. Message stays generic."""

    status_code = 500
