"""Spool incoming multipart files to local temp files for the media store."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from fastapi import UploadFile

CHUNK_SIZE = 64 * 1024
MAX_SUFFIX_LENGTH = 10


class UploadTooLargeError(ValueError):
    """Raised when an uploaded file exceeds the configured size limit."""


def _safe_suffix(filename: str | None) -> str:
    suffix = Path(filename or "").suffix.lower()
    if not suffix or len(suffix) > MAX_SUFFIX_LENGTH or not suffix[1:].isalnum():
        return ""
    return suffix


def has_file(upload: UploadFile | None) -> bool:
    """Return True when the form field carried an actual file."""
    return upload is not None and bool(upload.filename)


async def spool_upload_to_temp_file(
    upload: UploadFile,
    max_bytes: int,
    *,
    directory: str | None = None,
) -> Path:
    """Write an upload to a temp file and return its path.

    The caller owns the returned file; the media store deletes it after upload.
    Raises UploadTooLargeError (and removes the partial file) when the upload
    exceeds ``max_bytes``.
    """
    fd, raw_path = tempfile.mkstemp(
        prefix="upload-",
        suffix=_safe_suffix(upload.filename),
        dir=directory,
    )
    path = Path(raw_path)
    written = 0
    try:
        with os.fdopen(fd, "wb") as handle:
            while chunk := await upload.read(CHUNK_SIZE):
                written += len(chunk)
                if written > max_bytes:
                    raise UploadTooLargeError(
                        f"File exceeds maximum size of {max_bytes} bytes"
                    )
                handle.write(chunk)
    except BaseException:
        path.unlink(missing_ok=True)
        raise
    finally:
        await upload.close()
    return path
