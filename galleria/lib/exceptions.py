"""Error taxonomy and the Litestar handlers that render it as JSON."""

from __future__ import annotations

import logging

from litestar import Request, Response
from litestar.exceptions import HTTPException
from litestar.status_codes import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)

from galleria.lib import observability

logger = logging.getLogger(__name__)


class GalleriaError(Exception):
    """Base class for domain errors that map onto an HTTP status."""

    status_code: int = HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"
    default_detail: str = "An unexpected error occurred."

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFound(GalleriaError):
    status_code = HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Resource not found."


class Forbidden(GalleriaError):
    status_code = HTTP_403_FORBIDDEN
    code = "forbidden"
    default_detail = "You do not have permission to perform this action."


class Unauthorized(GalleriaError):
    """Missing, malformed, tampered or expired token."""

    status_code = HTTP_401_UNAUTHORIZED
    code = "unauthorized"
    default_detail = "Authentication required."


class InvalidInput(GalleriaError):
    status_code = HTTP_400_BAD_REQUEST
    code = "invalid_input"
    default_detail = "Invalid input."


class EmailExists(GalleriaError):
    status_code = HTTP_409_CONFLICT
    code = "email_exists"
    default_detail = "Email already registered."


class UsernameExists(GalleriaError):
    status_code = HTTP_409_CONFLICT
    code = "username_exists"
    default_detail = "Username already taken."


class InvalidCredentials(GalleriaError):
    status_code = HTTP_401_UNAUTHORIZED
    code = "invalid_credentials"
    default_detail = "Invalid email or password."


class InvalidFileType(GalleriaError):
    status_code = HTTP_400_BAD_REQUEST
    code = "invalid_file_type"
    default_detail = "File type is not allowed."


class FileTooLarge(GalleriaError):
    status_code = HTTP_413_REQUEST_ENTITY_TOO_LARGE
    code = "file_too_large"
    default_detail = "File exceeds the maximum upload size."


class UploadFailed(GalleriaError):
    status_code = HTTP_502_BAD_GATEWAY
    code = "upload_failed"
    default_detail = "Upload to object storage failed."


class InternalError(GalleriaError):
    pass


def _error_response(status_code: int, code: str, detail: str) -> Response:
    return Response(
        content={"status_code": status_code, "code": code, "detail": detail},
        status_code=status_code,
        media_type="application/json",
    )


def galleria_error_handler(request: Request, exc: GalleriaError) -> Response:
    """Render a domain error with its own status and stable code."""
    if exc.status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "%s on %s %s: %s",
            exc.code,
            request.method,
            request.url.path,
            exc.detail,
            exc_info=exc.__cause__,
        )
        observability.error(
            "Request failed {code}", code=exc.code, path=request.url.path
        )
    return _error_response(exc.status_code, exc.code, exc.detail)


def http_exception_handler(request: Request, exc: HTTPException) -> Response:
    """Handle Litestar's own HTTP exceptions (validation, routing, ...)."""
    status_code = exc.status_code
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    extra = getattr(exc, "extra", None)

    content: dict = {
        "status_code": status_code,
        "code": "http_error",
        "detail": detail,
    }
    if extra:
        content["extra"] = extra

    return Response(
        content=content,
        status_code=status_code,
        media_type="application/json",
    )


def internal_server_error_handler(request: Request, exc: Exception) -> Response:
    """Log unexpected exceptions and hide their details from the client."""
    if not observability.exception(
        "Unhandled exception on {method} {path}",
        method=request.method,
        path=request.url.path,
    ):
        logger.exception(
            "Unhandled exception on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
    return _error_response(
        HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", "Internal Server Error"
    )


EXCEPTION_HANDLERS = {
    GalleriaError: galleria_error_handler,
    HTTPException: http_exception_handler,
    Exception: internal_server_error_handler,
}
