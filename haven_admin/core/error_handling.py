"""
Error taxonomy and HTTP rendering

Domain errors raised by the services carry a user-facing message and are
rendered as {"success": false, "error": ...}. Gate denials and failed detail
reads become redirects with the notice in the ``error`` query parameter.
Anything else is caught by ErrorHandlingMiddleware, logged with an error id
and answered with a generic 500.
"""

import logging
import uuid
from typing import Optional
from urllib.parse import urlencode

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from haven_admin.config import settings
from haven_admin.core.logging import log_error, log_warning

logger = logging.getLogger(__name__)


class HavenError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(HavenError):
    status_code = status.HTTP_404_NOT_FOUND


class SlotTakenError(HavenError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Time slot already taken."):
        super().__init__(message)


class StoreError(HavenError):
    """A write rejected by the database; carries the store's message."""
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationFailed(HavenError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid email or password."):
        super().__init__(message)


class AccessDenied(HavenError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Access Denied"):
        super().__init__(message)


class ValidationFailed(HavenError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class GateRedirect(Exception):
    """Raised by the area dependencies when a request may not proceed."""

    def __init__(self, location: str, notice: Optional[str] = None, clear_session: bool = False):
        super().__init__(location)
        self.location = location
        self.notice = notice
        self.clear_session = clear_session


class DetailNotFound(Exception):
    """A detail page whose record is missing sends the caller back to its list."""

    def __init__(self, list_path: str, notice: str):
        super().__init__(notice)
        self.list_path = list_path
        self.notice = notice


def redirect_url(path: str, notice: Optional[str] = None) -> str:
    if not notice:
        return path
    return f"{path}?{urlencode({'error': notice})}"


async def haven_error_handler(request: Request, exc: HavenError):
    log_warning(
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
        logger_name="error_handler",
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


async def gate_redirect_handler(request: Request, exc: GateRedirect):
    response = RedirectResponse(
        url=redirect_url(exc.location, exc.notice),
        status_code=status.HTTP_302_FOUND,
    )
    if exc.clear_session:
        response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


async def detail_not_found_handler(request: Request, exc: DetailNotFound):
    log_warning(f"Detail read failed for {request.url.path}: {exc.notice}", logger_name="error_handler")
    return RedirectResponse(
        url=redirect_url(exc.list_path, exc.notice),
        status_code=status.HTTP_302_FOUND,
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(HavenError, haven_error_handler)
    app.add_exception_handler(GateRedirect, gate_redirect_handler)
    app.add_exception_handler(DetailNotFound, detail_not_found_handler)


def _generate_error_id() -> str:
    return str(uuid.uuid4())[:8]


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Catches anything the exception handlers did not, so internal details
    never reach the client
    """

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response
        except Exception as e:
            error_id = _generate_error_id()
            log_error(
                f"Unhandled exception [{error_id}]: {type(e).__name__}: {str(e)}",
                logger_name="error_handler",
                exc_info=True
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "success": False,
                    "error": "An error occurred processing your request",
                    "error_id": error_id,
                },
            )
