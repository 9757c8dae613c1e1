"""
Asset storage for project images: local disk, a fixed placeholder, and cloud
object storage (S3-compatible or Cloudinary).
"""

from __future__ import annotations

import logging
import os
import posixpath
import re
import time
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol

import boto3
import cloudinary
import cloudinary.uploader
from botocore.config import Config

from projects_backend.errors import ValidationError

logger = logging.getLogger(__name__)

LOCAL_ALLOWED_TYPES = re.compile(r"jpeg|jpg|png|gif|svg\+xml")
LOCAL_TYPE_ERROR = "Only image files (jpeg, png, gif, svg) are allowed!"

CLOUD_ALLOWED_FORMATS = ("jpg", "jpeg", "png", "gif")
CLOUD_TYPE_ERROR = "Only image files (jpeg, png, gif) are allowed!"


@dataclass
class ImageUpload:
    """An uploaded image as received from the multipart body."""

    filename: str
    content_type: str
    data: bytes

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename or "")[1].lower()


class AssetStore(Protocol):
    """Defines the operations the service needs from image storage."""

    def store(self, upload: ImageUpload) -> str:
        ...

    def release(self, reference: str) -> None:
        ...

    def close(self) -> None:
        ...


def _check_cloud_format(upload: ImageUpload) -> None:
    subtype = (upload.content_type or "").lower().rpartition("/")[2]
    ext = upload.extension.lstrip(".")
    # The declared media type decides; a file extension, if any, must agree.
    if subtype not in CLOUD_ALLOWED_FORMATS:
        raise ValidationError(CLOUD_TYPE_ERROR)
    if ext and ext not in CLOUD_ALLOWED_FORMATS:
        raise ValidationError(CLOUD_TYPE_ERROR)


@dataclass
class PlaceholderAssetStore:
    """Stores nothing; every upload resolves to the same fixed reference."""

    reference: str

    def store(self, upload: ImageUpload) -> str:
        return self.reference

    def release(self, reference: str) -> None:
        pass

    def close(self) -> None:
        pass


@dataclass
class LocalDiskAssetStore:
    """
    Writes uploads into a directory that the app serves back under url_prefix.
    """

    directory: str
    url_prefix: str = "/uploads"

    def __post_init__(self):
        self.url_prefix = "/" + self.url_prefix.strip("/")
        os.makedirs(self.directory, exist_ok=True)

    def _new_filename(self, upload: ImageUpload) -> str:
        millis = int(time.time() * 1000)
        return f"{millis}-{uuid.uuid4().hex[:8]}{upload.extension}"

    def path_for(self, reference: str) -> Optional[str]:
        """Map a reference back to a file inside the managed directory."""
        if not reference or not reference.startswith(self.url_prefix + "/"):
            return None
        name = posixpath.basename(reference)
        if not name or name in (".", ".."):
            return None
        return os.path.join(self.directory, name)

    def store(self, upload: ImageUpload) -> str:
        if not LOCAL_ALLOWED_TYPES.search((upload.content_type or "").lower()):
            raise ValidationError(LOCAL_TYPE_ERROR)
        filename = self._new_filename(upload)
        with open(os.path.join(self.directory, filename), "wb") as f:
            f.write(upload.data)
        return f"{self.url_prefix}/{filename}"

    def release(self, reference: str) -> None:
        path = self.path_for(reference)
        if path is None:
            logger.debug("Not a local asset reference, skipping: %s", reference)
            return
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.debug("Asset already gone: %s", path)

    def close(self) -> None:
        pass


@dataclass
class S3AssetStore:
    """
    S3-compatible object storage. Objects persist independently of records.
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    folder: str = "projects"
    public_base_url: Optional[str] = None

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    def _object_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        if self.endpoint:
            scheme, _, host = self.endpoint.partition("://")
            return f"{scheme}://{self.bucket}.{host.rstrip('/')}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def store(self, upload: ImageUpload) -> str:
        _check_cloud_format(upload)
        key = f"{self.folder.strip('/')}/{uuid.uuid4().hex}{upload.extension}"
        self._client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=upload.data,
            ContentType=upload.content_type or "application/octet-stream",
        )
        return self._object_url(key)

    def release(self, reference: str) -> None:
        pass

    def close(self) -> None:
        self._client.close()


@dataclass
class CloudinaryAssetStore:
    """Cloudinary-hosted images; the reference is the secure delivery URL."""

    cloud_name: str
    api_key: str
    api_secret: str
    folder: str = "projects"

    def __post_init__(self):
        cloudinary.config(
            cloud_name=self.cloud_name,
            api_key=self.api_key,
            api_secret=self.api_secret,
            secure=True,
        )

    def store(self, upload: ImageUpload) -> str:
        _check_cloud_format(upload)
        result = cloudinary.uploader.upload(
            upload.data,
            folder=self.folder,
            resource_type="image",
            allowed_formats=list(CLOUD_ALLOWED_FORMATS),
        )
        url = result.get("secure_url")
        if not url:
            raise RuntimeError("Cloudinary upload returned no secure_url")
        return url

    def release(self, reference: str) -> None:
        pass

    def close(self) -> None:
        pass
