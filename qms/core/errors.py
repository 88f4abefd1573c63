"""Error taxonomy shared by services and routes, plus the FastAPI handlers that render it."""

import logging
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base for errors that map to a client-visible status and reason string."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    reason: str = "internal_error"
    default_message: str = "Server error"

    def __init__(self, message: str | None = None, reason: str | None = None) -> None:
        self.message = message or self.default_message
        if reason is not None:
            self.reason = reason
        super().__init__(self.message)

    def headers(self) -> dict[str, str] | None:
        return None

    def body(self) -> dict[str, object]:
        return {"error": self.reason, "message": self.message}


class InputValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    reason = "invalid_input"
    default_message = "Invalid input"


class UnauthenticatedError(AppError):
    """Missing, malformed, expired or wrongly signed credential."""

    status_code = status.HTTP_401_UNAUTHORIZED
    reason = "unauthenticated"
    default_message = "Not authenticated"

    def headers(self) -> dict[str, str] | None:
        return {"WWW-Authenticate": "Bearer"}


class ForbiddenError(AppError):
    """Authenticated, but the role or tenant does not allow the operation."""

    status_code = status.HTTP_403_FORBIDDEN
    reason = "forbidden"
    default_message = "Forbidden"


class AccountDisabledError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    reason = "account_disabled"
    default_message = "Account disabled"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    reason = "not_found"
    default_message = "Not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    reason = "conflict"
    default_message = "Conflict"


class AccountLockedError(AppError):
    """Login refused because the account is locked; lock_until is None for administrative locks."""

    status_code = status.HTTP_423_LOCKED
    reason = "account_locked"
    default_message = "Account locked"

    def __init__(self, lock_until: datetime | None = None, message: str | None = None) -> None:
        self.lock_until = lock_until
        super().__init__(message)

    def body(self) -> dict[str, object]:
        body = super().body()
        body["lockUntil"] = self.lock_until.isoformat() if self.lock_until else None
        return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed: %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.body(),
        headers=exc.headers(),
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = [".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()]
    logger.info(
        "Rejected invalid request",
        extra={"path": request.url.path, "fields": [f for f in fields if f]},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": InputValidationError.reason, "message": "Invalid input"},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error: %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "message": "Server error"},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the handlers that turn the taxonomy above into JSON responses."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
