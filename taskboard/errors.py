"""
Error taxonomy and the FastAPI handlers that turn it into JSON responses.

Every failure is returned as ``{"message": ...}`` with the status code of the
error class. Unexpected exceptions become a generic 500.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

log = logging.getLogger(__name__)


class TaskboardError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TaskboardError):
    status_code = 400
    default_message = "Required fields missing"


class DuplicateEmail(TaskboardError):
    status_code = 400
    default_message = "User already exists"


class InvalidCredentials(TaskboardError):
    status_code = 401
    default_message = "Invalid credentials"


class Unauthenticated(TaskboardError):
    status_code = 401
    default_message = "Authorization token required"


class InvalidToken(TaskboardError):
    status_code = 401
    default_message = "Invalid token"


class Forbidden(TaskboardError):
    status_code = 403
    default_message = "Not authorized"


class NotFound(TaskboardError):
    status_code = 404
    default_message = "Not found"


async def taskboard_error_handler(request: Request, exc: TaskboardError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse({"message": exc.message}, status_code=exc.status_code, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append({"field": ".".join(loc), "message": error.get("msg", "")})
    return JSONResponse(
        {"message": ValidationError.default_message, "errors": jsonable_encoder(errors)},
        status_code=400,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"message": "Server error"}, status_code=500)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskboardError, taskboard_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
