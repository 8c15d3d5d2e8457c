"""API error taxonomy and the JSON envelope every response uses.

Learn: Services raise ApiError subclasses; they never build HTTP
responses themselves. The handlers installed by register_exception_handlers()
render our errors and the framework's own errors in the same envelope:

    {"statusCode": 401, "data": null, "message": "...",
     "success": false, "errors": []}

Successful responses use the same shape via api_response().
"""

from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = structlog.get_logger()


class ApiError(Exception):
    """Base class for errors that map directly onto an HTTP status."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None, errors: Optional[list] = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)


class BadRequestError(ApiError):
    status_code = 400
    default_message = "Bad request"


class UnauthorizedError(ApiError):
    status_code = 401
    default_message = "Unauthorized request"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Conflict"


class InternalError(ApiError):
    status_code = 500


def api_response(data: Any, message: str = "Success", status_code: int = 200) -> dict:
    """Success envelope body."""
    return {
        "statusCode": status_code,
        "data": jsonable_encoder(data),
        "message": message,
        "success": status_code < 400,
    }


def error_response(
    status_code: int,
    message: str,
    errors: Optional[list] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "statusCode": status_code,
            "data": None,
            "message": message,
            "success": False,
            "errors": jsonable_encoder(errors or []),
        },
        headers=headers,
    )


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return error_response(exc.status_code, exc.message, exc.errors, headers)


async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return error_response(400, "Invalid request body", list(exc.errors()))


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("request.unhandled_error", path=request.url.path, error=str(exc))
    return error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Install the envelope handlers on an app."""
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
