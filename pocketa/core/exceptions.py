from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class AppError(Exception):
    """Base application error with consistent schema."""

    def __init__(
        self,
        message: str,
        code: str = "ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code="UNAUTHORIZED", status_code=status.HTTP_401_UNAUTHORIZED)


class MissingTokenError(UnauthorizedError):
    def __init__(self, message: str = "No token provided"):
        super().__init__(message)


class InvalidTokenError(UnauthorizedError):
    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, code="FORBIDDEN", status_code=status.HTTP_403_FORBIDDEN)


class NotFoundError(AppError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message, code="NOT_FOUND", status_code=status.HTTP_404_NOT_FOUND)


class ConflictError(AppError):
    def __init__(self, message: str = "Conflict", details: dict[str, Any] | None = None):
        super().__init__(message, code="CONFLICT", status_code=status.HTTP_409_CONFLICT, details=details)


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request", details: dict[str, Any] | None = None):
        super().__init__(message, code="BAD_REQUEST", status_code=status.HTTP_400_BAD_REQUEST, details=details)


class StoreUnavailableError(AppError):
    """Persistence fault. The message stays generic; the cause is only logged."""

    def __init__(self, message: str = "Server error"):
        super().__init__(message, code="STORE_UNAVAILABLE", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def _body(request: Request, message: str, code: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"message": message, "error": code}
    if details:
        body["details"] = details
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return body


def error_response(request: Request, exc: AppError) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=exc.status_code,
        content=_body(request, exc.message, exc.code, exc.details),
    )


async def app_exception_handler(request: Request, exc: AppError) -> ORJSONResponse:
    if isinstance(exc, StoreUnavailableError):
        from pocketa.core.logging import get_logger
        get_logger(__name__).error("store_unavailable", path=request.url.path, cause=repr(exc.__cause__))
    return error_response(request, exc)


PUBLIC_API_PREFIXES = ("/api/auth/",)


def _requires_bearer(path: str) -> bool:
    return path.startswith("/api/") and not path.startswith(PUBLIC_API_PREFIXES)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    # Body and query parsing run before route dependencies, so the bearer check
    # is repeated here: a bad token must win over a bad body.
    if _requires_bearer(request.url.path):
        from pocketa.core.security import extract_bearer_token, verify_token
        try:
            verify_token(extract_bearer_token(request.headers.get("Authorization")))
        except UnauthorizedError as auth_exc:
            return error_response(request, auth_exc)
    return ORJSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_body(request, "Validation error", "VALIDATION_ERROR", {"errors": exc.errors()}),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> ORJSONResponse:
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        message, code = "Method not allowed", "METHOD_NOT_ALLOWED"
    elif exc.status_code == status.HTTP_404_NOT_FOUND:
        message, code = "Not found", "NOT_FOUND"
    else:
        message, code = str(exc.detail), "HTTP_ERROR"
    return ORJSONResponse(
        status_code=exc.status_code,
        content=_body(request, message, code),
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    from pocketa.core.logging import get_logger
    get_logger(__name__).exception("unhandled_exception", exc_info=exc)
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_body(request, "Server error", "INTERNAL_ERROR"),
    )
