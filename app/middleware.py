# =============================================================================
# app/middleware.py - Route Gating
# =============================================================================
# Cheap checks run before routing:
#
#   - Protected paths need a credential (bearer header or session cookie),
#     otherwise 401 AUTH_REQUIRED. The token itself is verified by the
#     route's dependencies.
#   - Sign-in / sign-up with a session that already verifies is answered
#     with 303 {"redirect_to": "/"}.
#
# Role checks stay in the per-route dependencies.
# =============================================================================

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.auth.dependencies import ACCESS_TOKEN_COOKIE, has_valid_session
from app.exceptions import AuthRequiredError

logger = logging.getLogger(__name__)

PROTECTED_PREFIXES = (
    "/api/v1/profile",
    "/api/v1/dashboard",
    "/api/v1/admin",
)

# (method, path) pairs that are protected even though GET on the path is public
PROTECTED_WRITES = (
    ("POST", "/api/v1/listings"),
)

AUTH_PAGES = (
    "/api/v1/auth/signin",
    "/api/v1/auth/signup",
)


def has_credential(request: Request) -> bool:
    header = request.headers.get("authorization", "")
    return header.lower().startswith("bearer ") or bool(request.cookies.get(ACCESS_TOKEN_COOKIE))


def is_protected(method: str, path: str) -> bool:
    path = path.rstrip("/") or "/"
    if any(path == p or path.startswith(p + "/") for p in PROTECTED_PREFIXES):
        return True
    return any(method == m and path == p for m, p in PROTECTED_WRITES)


class RouteGatingMiddleware(BaseHTTPMiddleware):
    """Reject unauthenticated requests to protected paths early."""

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        method = request.method

        if method == "OPTIONS":
            return await call_next(request)

        if is_protected(method, path) and not has_credential(request):
            logger.debug(f"Blocked unauthenticated {method} {path}")
            exc = AuthRequiredError(path)
            return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

        if path.rstrip("/") in AUTH_PAGES and has_valid_session(request):
            return JSONResponse(status_code=303, content={"redirect_to": "/"})

        return await call_next(request)
