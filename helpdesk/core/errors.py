# helpdesk/core/errors.py
"""Service-level error taxonomy and its HTTP rendering."""

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from helpdesk.core.logging_config import logger


class ServiceError(Exception):
    """Base class for errors a caller can act on."""

    reason = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str, errors: list[str] | None = None):
        super().__init__(detail)
        self.detail = detail
        self.errors = errors


class ValidationFailed(ServiceError):
    reason = "validation_failed"
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationFailed(ServiceError):
    reason = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(ServiceError):
    reason = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, detail: str = "Insufficient permissions", errors: list[str] | None = None):
        super().__init__(detail, errors)


class NotFound(ServiceError):
    reason = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ServiceError):
    reason = "conflict"
    status_code = status.HTTP_409_CONFLICT


class TokenExpired(ServiceError):
    reason = "expired"
    status_code = status.HTTP_400_BAD_REQUEST


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    body = {"detail": exc.detail, "reason": exc.reason}
    if exc.errors:
        body["errors"] = exc.errors
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationFailed) else None
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors()), "reason": "validation_failed"},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
