"""
Exception types for the ladder API and the FastAPI handlers that render them.

Every error response has the shape
``{"error": true, "status_code": ..., "message": ..., "details": {...}}``.
"""

from typing import Optional, Union

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from api.logging_config import get_logger

logger = get_logger()


class LadderException(Exception):
    """Base exception for the ladder API."""

    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class UpstreamError(LadderException):
    """Raised when SC2Pulse cannot be reached or answers with an error."""

    def __init__(
        self,
        message: str,
        code: Union[int, str] = "UNKNOWN",
        context: Optional[dict] = None,
    ):
        self.code = code
        self.context = context or {}
        super().__init__(
            message, status_code=502, details={"code": code, **self.context}
        )

    @property
    def retriable(self) -> bool:
        if self.code in ("timeout", "network"):
            return True
        return isinstance(self.code, int) and (self.code == 429 or self.code >= 500)


class SeasonUnavailableError(UpstreamError):
    """Raised when no current season can be determined."""

    def __init__(self, message: str = "Unable to determine the current season"):
        super().__init__(message, code="NO_SEASON")


class RosterLoadError(LadderException):
    """Raised when the display-name roster cannot be read."""

    def __init__(self, path: str, reason: str = None):
        message = f"Roster file '{path}' could not be loaded"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, status_code=500, details={"path": path})


class SnapshotNotFoundError(LadderException):
    """Raised when a stored ranking snapshot does not exist."""

    def __init__(self, snapshot_id: str = None):
        message = "Snapshot not found"
        if snapshot_id:
            message = f"Snapshot '{snapshot_id}' was not found. It may have been pruned."
        super().__init__(message, status_code=404)


class AuthenticationError(LadderException):
    def __init__(self, message: str = "Admin token required"):
        super().__init__(message, status_code=401)


class RateLimitError(LadderException):
    def __init__(self, retry_after: int = 60):
        super().__init__(
            f"Rate limit exceeded, retry in {retry_after}s",
            status_code=429,
            details={"retry_after": retry_after},
        )


class ValidationException(LadderException):
    """Raised for request values that pass type checks but make no sense."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message, status_code=400, details={"field": field} if field else {})


def create_error_response(status_code: int, message: str, details: dict = None) -> dict:
    body = {"error": True, "status_code": status_code, "message": message}
    if details:
        body["details"] = details
    return body


def _error(status_code: int, message: str, details: dict = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=create_error_response(status_code, message, details),
    )


async def ladder_exception_handler(request: Request, exc: LadderException) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{type(exc).__name__}: {exc.message}",
        extra={"context": {"path": request.url.path, "status": exc.status_code}},
    )
    return _error(exc.status_code, exc.message, exc.details)


DEFAULT_HTTP_MESSAGES = {
    400: "Bad request.",
    401: "Admin token required.",
    403: "Forbidden.",
    404: "Not found.",
    405: "Method not allowed.",
    429: "Too many requests, slow down.",
    502: "SC2Pulse is unavailable right now.",
    503: "Service unavailable.",
}


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail or DEFAULT_HTTP_MESSAGES.get(exc.status_code, "Request failed.")
    logger.warning(
        f"HTTP {exc.status_code}: {message}",
        extra={"context": {"path": request.url.path}},
    )
    return _error(exc.status_code, message)


async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Pydantic errors raised while handling a request (not request parsing)."""
    errors = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    logger.warning(
        "Model validation failed",
        extra={"context": {"path": request.url.path, "errors": len(errors)}},
    )
    return _error(422, "Invalid data: " + "; ".join(errors), {"errors": errors})


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__}: {exc}",
        exc_info=True,
        extra={"context": {"path": request.url.path}},
    )
    return _error(500, "Internal server error.")
