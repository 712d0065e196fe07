"""Structured application error carried from services to the HTTP layer."""

from __future__ import annotations

from typing import Any

from fastapi import status


class ApiError(Exception):
    """A domain failure with an HTTP status code and a client-facing message."""

    def __init__(
        self,
        status_code: int,
        message: str = "Something went wrong",
        errors: list[Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = list(errors or [])

    def __repr__(self) -> str:
        return f"ApiError(status_code={self.status_code}, message={self.message!r})"

    @classmethod
    def bad_request(cls, message: str, errors: list[Any] | None = None) -> ApiError:
        return cls(status.HTTP_400_BAD_REQUEST, message, errors)

    @classmethod
    def unauthorized(cls, message: str = "Unauthorized request") -> ApiError:
        return cls(status.HTTP_401_UNAUTHORIZED, message)

    @classmethod
    def not_found(cls, message: str) -> ApiError:
        return cls(status.HTTP_404_NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str) -> ApiError:
        return cls(status.HTTP_409_CONFLICT, message)

    @classmethod
    def internal(cls, message: str = "Internal server error") -> ApiError:
        return cls(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


__all__ = ["ApiError"]
