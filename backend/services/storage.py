"""Hosted media storage backed by a MinIO / S3-compatible bucket."""

from __future__ import annotations

import logging
import mimetypes
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal
from uuid import uuid4

from minio import Minio
from minio.error import S3Error
from PIL import Image, UnidentifiedImageError

from core import Settings

logger = logging.getLogger(__name__)

MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "NoSuchObject", "ResourceNotFound"})
EXISTING_BUCKET_CODES = frozenset({"BucketAlreadyOwnedByYou", "BucketAlreadyExists"})
DEFAULT_CONTENT_TYPE = "application/octet-stream"

UploadFailureKind = Literal["missing_file", "too_large", "invalid_image", "storage_error"]


@dataclass(frozen=True)
class MediaStorageConfig:
    """Connection settings for the media bucket, built once at startup."""

    endpoint: str
    access_key: str
    secret_key: str
    bucket: str
    public_base_url: str
    secure: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> MediaStorageConfig:
        return cls(
            endpoint=settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key.get_secret_value(),
            bucket=settings.minio_bucket,
            public_base_url=settings.media_public_base_url.rstrip("/"),
            secure=settings.minio_secure,
        )


@dataclass(frozen=True)
class UploadedMedia:
    url: str
    object_key: str


@dataclass(frozen=True)
class UploadFailure:
    kind: UploadFailureKind
    detail: str


UploadResult = UploadedMedia | UploadFailure


def _remove_local_file(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning(
            "Failed to remove local upload file",
            extra={"path": str(path)},
            exc_info=exc,
        )


def _validate_image(path: Path) -> None:
    """Raise ValueError when the file is not a decodable image."""
    try:
        with Image.open(path) as image:
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ValueError("Uploaded file is not a valid image") from exc


class MediaStorage:
    """Uploads local files to the bucket and hands back durable public URLs."""

    def __init__(self, config: MediaStorageConfig, client: Minio | None = None) -> None:
        self.config = config
        self._client = client

    @property
    def client(self) -> Minio:
        if self._client is None:
            # Local development runs without TLS; production can override via MINIO_SECURE.
            self._client = Minio(
                self.config.endpoint,
                access_key=self.config.access_key,
                secret_key=self.config.secret_key,
                secure=self.config.secure,
            )
        return self._client

    def ensure_bucket(self) -> None:
        """Ensure the configured bucket exists."""
        bucket_name = self.config.bucket
        if self.client.bucket_exists(bucket_name):  # pragma: no cover - network call
            return
        try:
            self.client.make_bucket(bucket_name)  # pragma: no cover - network call
        except S3Error as exc:  # pragma: no cover - handle race conditions
            if exc.code not in EXISTING_BUCKET_CODES:
                raise

    def public_url(self, object_key: str) -> str:
        return f"{self.config.public_base_url}/{object_key}"

    def object_key_from_url(self, url: str) -> str | None:
        """Return the object key for a URL issued by this store, else None."""
        prefix = f"{self.config.public_base_url}/"
        if not url.startswith(prefix):
            return None
        object_key = url[len(prefix):].strip()
        return object_key or None

    def upload_file(
        self,
        local_path: str | os.PathLike[str] | None,
        *,
        folder: str,
        validate_image: bool = True,
    ) -> UploadResult:
        """Upload a local file and return its URL or an explicit failure.

        The local file is deleted whether or not the upload succeeds.
        """
        if local_path is None:
            return UploadFailure(kind="missing_file", detail="No file provided")

        path = Path(local_path)
        try:
            if not path.is_file():
                return UploadFailure(kind="missing_file", detail="No file provided")
            if validate_image:
                try:
                    _validate_image(path)
                except ValueError as exc:
                    return UploadFailure(kind="invalid_image", detail=str(exc))

            suffix = path.suffix.lower() or ".bin"
            object_key = f"{folder.strip('/')}/{uuid4().hex}{suffix}"
            content_type = mimetypes.guess_type(path.name)[0] or DEFAULT_CONTENT_TYPE
            try:
                self.ensure_bucket()
                self.client.fput_object(
                    self.config.bucket,
                    object_key,
                    str(path),
                    content_type=content_type,
                )
            except (S3Error, OSError) as exc:
                logger.warning(
                    "Media upload failed",
                    extra={"object_key": object_key},
                    exc_info=exc,
                )
                return UploadFailure(kind="storage_error", detail="Failed to upload file")
            return UploadedMedia(url=self.public_url(object_key), object_key=object_key)
        finally:
            _remove_local_file(path)

    def delete_object(self, object_key: str) -> None:
        """Delete an object from the configured bucket when it exists."""
        try:
            self.client.remove_object(self.config.bucket, object_key)  # pragma: no cover - network call
        except S3Error as exc:  # pragma: no cover - network call
            if exc.code not in MISSING_OBJECT_CODES:
                raise

    def delete_url(self, url: str | None) -> bool:
        """Delete the object behind a URL issued by this store.

        Returns False for empty or foreign URLs, which are left untouched.
        """
        if not url:
            return False
        object_key = self.object_key_from_url(url)
        if object_key is None:
            return False
        self.delete_object(object_key)
        return True
