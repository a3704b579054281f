# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Provides dependency injection for authentication and role gating.
#
# Tokens are read from:
# - the Authorization: Bearer header, or
# - the sb-access-token session cookie set by POST /auth/signin
#
# Supports both:
# - ES256 (new Supabase JWT signing keys) via JWKS
# - HS256 (legacy Supabase JWT secret) when SUPABASE_JWT_SECRET is set
#
# Usage:
#   from app.auth import get_current_user, require_role, AuthUser
#
#   @router.post("/listings")
#   async def create(user: AuthUser = Depends(require_role(UserRole.VENUE_OWNER))):
#       ...
# =============================================================================

import logging
import time
from typing import Optional
from uuid import UUID

import httpx
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError

from app.config import settings
from app.auth.models import AuthUser
from app.exceptions import AdminRequiredError, AuthRequiredError, RoleRequiredError
from core.models.user import UserRole
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

# Session cookie names
ACCESS_TOKEN_COOKIE = "sb-access-token"
REFRESH_TOKEN_COOKIE = "sb-refresh-token"

# HTTP Bearer token extractor (optional so the cookie can be used instead)
security_optional = HTTPBearer(auto_error=False)

# Cache for JWKS keys
_jwks_cache: dict = {}
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 3600  # 1 hour


def _get_jwks_url() -> str:
    """Get the JWKS URL from Supabase URL."""
    supabase_url = settings.SUPABASE_URL.rstrip('/')
    return f"{supabase_url}/auth/v1/.well-known/jwks.json"


def _fetch_jwks() -> dict:
    """Fetch JWKS from Supabase with caching."""
    global _jwks_cache, _jwks_cache_time

    current_time = time.time()

    # Return cached if valid
    if _jwks_cache and (current_time - _jwks_cache_time) < JWKS_CACHE_TTL:
        return _jwks_cache

    try:
        jwks_url = _get_jwks_url()
        response = httpx.get(jwks_url, timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        _jwks_cache_time = current_time
        logger.debug(f"Fetched JWKS from {jwks_url}")
        return _jwks_cache
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch JWKS: {e}")
        # Stale keys beat no keys
        if _jwks_cache:
            return _jwks_cache
        return {"keys": []}


def _get_signing_key(token: str) -> tuple[str | dict, str]:
    """
    Get the appropriate signing key for a token.

    HS256 needs the legacy project secret. Any other algorithm needs a
    matching JWKS key; there is no fallback between the two.

    Returns:
        Tuple of (key, algorithm) to use for verification

    Raises:
        JWTError: if no usable key exists for the token's header
    """
    unverified_header = jwt.get_unverified_header(token)

    alg = unverified_header.get("alg")
    kid = unverified_header.get("kid")

    if alg == "HS256":
        if not settings.SUPABASE_JWT_SECRET:
            raise JWTError("HS256 tokens are not accepted without SUPABASE_JWT_SECRET")
        return settings.SUPABASE_JWT_SECRET, "HS256"

    if alg and kid:
        for key in _fetch_jwks().get("keys", []):
            if key.get("kid") == kid:
                return key, alg

    raise JWTError(f"No signing key for alg={alg}, kid={kid}")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def verify_access_token(token: str) -> AuthUser:
    """
    Verify a Supabase access token and build the AuthUser.

    Raises:
        HTTPException: 401 if the token is invalid, expired or malformed
    """
    try:
        signing_key, algorithm = _get_signing_key(token)
        payload = jwt.decode(
            token,
            signing_key,
            algorithms=[algorithm],
            audience="authenticated"
        )
    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise _unauthorized("Token has expired")
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise _unauthorized(f"Invalid token: {str(e)}")

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("JWT token missing 'sub' claim")
        raise _unauthorized("Invalid token: missing user ID")

    try:
        user_uuid = UUID(user_id)
    except ValueError:
        logger.warning(f"Invalid UUID in token: {user_id}")
        raise _unauthorized("Invalid token: malformed user ID")

    metadata = payload.get("user_metadata") or {}
    role = metadata.get("role")

    return AuthUser(
        id=user_uuid,
        email=payload.get("email"),
        role=role if role in {r.value for r in UserRole} else None,
        user_metadata=metadata,
    )


def extract_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = None,
) -> Optional[str]:
    """Bearer header first, then the session cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_TOKEN_COOKIE) or None


def has_valid_session(request: Request) -> bool:
    """True if the request carries a token that verifies."""
    header = request.headers.get("authorization", "")
    token = header[7:] if header.lower().startswith("bearer ") else None
    token = token or request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        return False

    try:
        verify_access_token(token)
        return True
    except HTTPException:
        return False


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional),
) -> AuthUser:
    """
    Extract and validate the user from the Supabase JWT.

    Raises:
        AuthRequiredError: 401 if no token was sent
        HTTPException: 401 if the token is invalid or expired
    """
    token = extract_token(request, credentials)
    if not token:
        raise AuthRequiredError(request.url.path)

    user = verify_access_token(token)
    logger.debug(f"Authenticated user: {user.id}")
    return user


async def get_current_user_optional(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional),
) -> Optional[AuthUser]:
    """
    Optionally get the current user.

    Returns None when there is no token or it doesn't verify.
    """
    token = extract_token(request, credentials)
    if not token:
        return None

    try:
        return verify_access_token(token)
    except HTTPException:
        return None


# =============================================================================
# Role Helpers
# =============================================================================

def resolve_role(user: AuthUser) -> Optional[UserRole]:
    """
    The user's marketplace role.

    The users row is authoritative since users can rewrite their own
    auth metadata. The token's metadata role only applies to accounts
    that have no row yet.
    """
    row = SupabaseClient.fetch_user(user.id)
    if row and row.get("role"):
        return UserRole(row["role"])
    if row is None:
        return user.role
    return None


def is_authenticated(user: Optional[AuthUser]) -> bool:
    return user is not None


def has_role(user: Optional[AuthUser], *roles: UserRole) -> bool:
    if user is None:
        return False
    return resolve_role(user) in roles


def is_venue_owner(user: Optional[AuthUser]) -> bool:
    return has_role(user, UserRole.VENUE_OWNER)


def is_vendor(user: Optional[AuthUser]) -> bool:
    return has_role(user, UserRole.VENDOR)


def require_role(*roles: UserRole):
    """
    Dependency factory: the current user must have one of `roles`.

    The returned AuthUser always has `role` filled in.

    Usage:
        @router.post("/bookings")
        async def book(user: AuthUser = Depends(require_role(UserRole.VENDOR))):
            ...
    """
    def _dependency(user: AuthUser = Depends(get_current_user)) -> AuthUser:
        role = resolve_role(user)
        if role not in roles:
            raise RoleRequiredError(
                [r.value for r in roles],
                role.value if role else None,
            )
        if user.role != role:
            user = user.model_copy(update={"role": role})
        return user

    return _dependency


require_venue_owner = require_role(UserRole.VENUE_OWNER)
require_vendor = require_role(UserRole.VENDOR)


async def require_admin(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """The current user's e-mail must be listed in ADMIN_EMAILS."""
    if not user.email or user.email.lower() not in settings.admin_emails_list:
        raise AdminRequiredError()
    return user
