"""Uniform JSON envelopes for successful responses and errors."""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from starlette.exceptions import HTTPException as StarletteHTTPException

from core import ApiError

logger = logging.getLogger(__name__)

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base for wire models: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel, Generic[DataT]):
    status_code: int
    data: DataT
    message: str = "Success"
    success: bool = True

    @classmethod
    def ok(
        cls,
        data: DataT,
        message: str = "Success",
        *,
        status_code: int = status.HTTP_200_OK,
    ) -> ApiResponse[DataT]:
        return cls(
            status_code=status_code,
            data=data,
            message=message,
            success=status_code < status.HTTP_400_BAD_REQUEST,
        )


def error_body(status_code: int, message: str, errors: list[Any] | None = None) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "message": message,
        "success": False,
        "errors": list(errors or []),
    }


def _error_response(
    status_code: int,
    message: str,
    errors: list[Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        error_body(status_code, message, errors),
        status_code=status_code,
        headers=headers,
    )


async def _handle_api_error(_request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, ApiError)
    return _error_response(exc.status_code, exc.message, exc.errors)


async def _handle_http_exception(_request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, StarletteHTTPException)
    return _error_response(
        exc.status_code,
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def _handle_validation_error(_request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    return _error_response(status.HTTP_400_BAD_REQUEST, "Invalid request", errors)


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error",
        extra={"path": request.url.path},
        exc_info=exc,
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Convert every failure into the ``{statusCode, message, success, errors}`` envelope."""
    app.add_exception_handler(ApiError, _handle_api_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)
