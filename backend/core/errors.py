# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Error taxonomy and the uniform API error body.

Every failure that leaves the API is shaped as::

    {"success": false, "error": "<message>"}

Routes keep raising ``fastapi.HTTPException``; the handlers registered by
:func:`register_exception_handlers` only change the body shape.
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from core.logger import logger


class TokenError(Exception):
    """Base class for session-token failures."""


class InvalidTokenError(TokenError):
    """Bad signature, wrong algorithm or malformed token."""


class ExpiredTokenError(TokenError):
    """Signature is fine but the ``exp`` claim is in the past."""


class RoleMappingError(Exception):
    """A stored role value has no application-level counterpart."""


class DuplicateEmailError(Exception):
    """Raised by the user directory when the email is already registered."""


# Messages shared across routes so every cause of a failure reads the same
UNAUTHENTICATED = "Not authenticated"
FORBIDDEN = "Insufficient permissions"
SERVER_ERROR = "Internal server error"


def error_body(message: str, **extra: Any) -> dict:
    body = {"success": False, "error": message}
    body.update(extra)
    return body


def _validation_details(exc: RequestValidationError) -> list[dict]:
    details = []
    for err in exc.errors():
        # loc is ("body", "password") – drop the source segment
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return details


async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        body = error_body(str(detail.get("error", "")), **{k: v for k, v in detail.items() if k != "error"})
    else:
        body = error_body(str(detail))
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid request data", details=_validation_details(exc)),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(SERVER_ERROR),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
