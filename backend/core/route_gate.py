# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Navigation gate for page requests.

Runs before a page is served and only ever redirects – API routes are left
to the dependency guards in core.guards, which answer with 401/403 bodies.

* Public pages (login, register, password reset) are open; a visitor who
  already holds a valid token is sent on to the dashboard instead.
* Any other page needs a valid token, otherwise the visitor goes to
  ``/login?redirect=<original path>``.
* A valid token whose role does not cover the path goes to the dashboard.

The gate trusts the role embedded in the token and does not touch the
database.
"""

import posixpath
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from core.errors import TokenError
from core.logger import logger
from core.permissions import DEFAULT_ROUTE, Role, has_route_access, path_matches
from core.security import AUTH_COOKIE, decode_access_token

LOGIN_PATH = "/login"
PUBLIC_PATHS = ("/login", "/register", "/forgot-password")

# Never gated: the API has its own guards, the rest are assets and tooling
PASSTHROUGH_PATHS = ("/api", "/health", "/static", "/docs", "/redoc", "/openapi.json", "/favicon.ico")

# Pages (.html) are gated like any other route
ASSET_EXTENSIONS = frozenset({
    ".css", ".js", ".map", ".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico",
    ".webp", ".woff", ".woff2", ".ttf", ".txt", ".webmanifest",
})


def _is_asset(path: str) -> bool:
    return posixpath.splitext(path)[1].lower() in ASSET_EXTENSIONS


def _token_role(request: Request) -> Role | None:
    """Role claimed by a valid cookie token, or None."""
    token = request.cookies.get(AUTH_COOKIE)
    if not token:
        return None
    try:
        claims = decode_access_token(token)
    except TokenError:
        return None
    try:
        return Role(str(claims["role"]).lower())
    except ValueError:
        return None


def _login_redirect(path: str) -> RedirectResponse:
    return RedirectResponse(f"{LOGIN_PATH}?{urlencode({'redirect': path})}")


class RouteGateMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path

        if _is_asset(path) or any(path_matches(path, p) for p in PASSTHROUGH_PATHS):
            return await call_next(request)

        role = _token_role(request)

        if any(path_matches(path, p) for p in PUBLIC_PATHS):
            if role is not None:
                return RedirectResponse(DEFAULT_ROUTE)
            return await call_next(request)

        if role is None:
            return _login_redirect(path)

        if not has_route_access(role, path):
            logger.info("Route gate: role=%s denied %s", role.value, path)
            return RedirectResponse(DEFAULT_ROUTE)

        return await call_next(request)
