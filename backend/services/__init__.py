"""Business logic services."""

from .rate_limiter import (
    RateLimitMiddleware,
    RateLimiter,
    get_rate_limiter,
    set_rate_limiter,
)
from .storage import (
    MediaStorage,
    MediaStorageConfig,
    UploadedMedia,
    UploadFailure,
    UploadResult,
)
from .uploads import UploadTooLargeError, has_file, spool_upload_to_temp_file

__all__ = [
    "MediaStorage",
    "MediaStorageConfig",
    "UploadedMedia",
    "UploadFailure",
    "UploadResult",
    "UploadTooLargeError",
    "has_file",
    "spool_upload_to_temp_file",
    "RateLimiter",
    "RateLimitMiddleware",
    "get_rate_limiter",
    "set_rate_limiter",
]
