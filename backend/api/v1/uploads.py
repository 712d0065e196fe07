"""Glue between multipart uploads and the media store."""

from __future__ import annotations

import asyncio
import logging
from typing import NoReturn

from fastapi import UploadFile

from core import ApiError, settings
from services import (
    MediaStorage,
    UploadedMedia,
    UploadFailure,
    UploadTooLargeError,
    spool_upload_to_temp_file,
)

logger = logging.getLogger(__name__)


def raise_for_upload_failure(failure: UploadFailure, *, label: str) -> NoReturn:
    if failure.kind == "missing_file":
        raise ApiError.bad_request(f"{label} file is required")
    if failure.kind == "too_large":
        raise ApiError.bad_request(failure.detail)
    if failure.kind == "invalid_image":
        raise ApiError.bad_request(f"{label} must be a valid image")
    raise ApiError.internal(f"Error while uploading {label.lower()}")


async def host_upload(
    upload: UploadFile,
    storage: MediaStorage,
    *,
    folder: str,
) -> UploadedMedia | UploadFailure:
    """Spool the upload to disk and hand it to the media store.

    Every failure, an oversized file included, comes back as an UploadFailure.
    """
    try:
        local_path = await spool_upload_to_temp_file(
            upload,
            settings.upload_max_bytes,
            directory=settings.upload_tmp_dir,
        )
    except UploadTooLargeError as exc:
        return UploadFailure(kind="too_large", detail=str(exc))
    return await asyncio.to_thread(storage.upload_file, local_path, folder=folder)


async def host_required_image(
    upload: UploadFile,
    storage: MediaStorage,
    *,
    folder: str,
    label: str,
) -> UploadedMedia:
    result = await host_upload(upload, storage, folder=folder)
    if isinstance(result, UploadFailure):
        raise_for_upload_failure(result, label=label)
    return result


async def discard_media(storage: MediaStorage, url: str | None) -> None:
    """Best-effort removal of a hosted object; failures are only logged."""
    if not url:
        return
    try:
        await asyncio.to_thread(storage.delete_url, url)
    except Exception as cleanup_error:
        logger.warning(
            "Failed to cleanup hosted media object",
            extra={"media_url": url},
            exc_info=cleanup_error,
        )
