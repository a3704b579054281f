# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# Sign-up, sign-in, sign-out, password reset and session refresh against
# Supabase Auth.
#
# Sessions are carried in two cookies (sb-access-token, sb-refresh-token)
# as well as returned in the body, so both browser and API clients work.
# =============================================================================

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials

from app.auth.dependencies import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    extract_token,
    get_current_user,
    security_optional,
)
from app.auth.models import (
    AuthResponse,
    AuthUser,
    RefreshRequest,
    ResetPasswordRequest,
    SessionTokens,
    SignInRequest,
    SignUpRequest,
    SignUpResponse,
    UpdatePasswordRequest,
)
from app.config import settings
from app.exceptions import AuthRequiredError
from core.models.user import User
from core.services.auth_service import (
    AuthEvent,
    AuthService,
    handle_auth_event,
    redirect_for_role,
    synchronize_user,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_session_cookies(response: Response, tokens: dict) -> None:
    for name, value in (
        (ACCESS_TOKEN_COOKIE, tokens["access_token"]),
        (REFRESH_TOKEN_COOKIE, tokens["refresh_token"]),
    ):
        response.set_cookie(
            name,
            value,
            httponly=True,
            secure=settings.SESSION_COOKIE_SECURE,
            samesite="lax",
            path="/",
        )


def _clear_session_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_TOKEN_COOKIE, path="/")
    response.delete_cookie(REFRESH_TOKEN_COOKIE, path="/")


@router.post("/signup", response_model=SignUpResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(request: SignUpRequest) -> SignUpResponse:
    """
    Create an account.

    The user confirms their e-mail via a link to {SITE_URL}/auth/verify-email.
    """
    auth_user = AuthService.sign_up(request)
    return SignUpResponse(
        user_id=auth_user.id,
        email=auth_user.email or request.email,
        role=request.role,
    )


@router.post("/signin", response_model=AuthResponse)
async def sign_in(request: SignInRequest, response: Response) -> AuthResponse:
    """
    Password sign-in.

    Sets the session cookies and returns the synchronized user together
    with where the client should go next.
    """
    tokens, auth_user = AuthService.sign_in(request.email, request.password)
    user = await handle_auth_event(AuthEvent.SIGNED_IN, auth_user)

    _set_session_cookies(response, tokens)
    return AuthResponse(
        session=SessionTokens(**tokens),
        user=user,
        redirect_to=redirect_for_role(user.role),
    )


@router.post("/signout")
async def sign_out(
    request: Request,
    response: Response,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_optional),
) -> dict:
    """Clear the session cookies and revoke the session when possible."""
    token = extract_token(request, credentials)
    AuthService.sign_out(token)
    _clear_session_cookies(response)
    return {"signed_out": True, "redirect_to": "/"}


@router.post("/reset-password")
async def reset_password(request: ResetPasswordRequest) -> dict:
    """Send the password-reset e-mail."""
    AuthService.reset_password(request.email)
    return {"message": "If the account exists, a reset link has been sent"}


@router.post("/update-password")
async def update_password(
    request: UpdatePasswordRequest,
    user: AuthUser = Depends(get_current_user),
) -> dict:
    AuthService.update_password(user.id, request.new_password)
    await handle_auth_event(AuthEvent.USER_UPDATED, user)
    return {"message": "Password updated"}


@router.post("/refresh", response_model=AuthResponse)
async def refresh_session(
    request: Request,
    response: Response,
    body: RefreshRequest | None = None,
) -> AuthResponse:
    """
    Exchange a refresh token (body or cookie) for a new session.

    Raises:
        401: If there is no refresh token or it is rejected
    """
    refresh_token = (body.refresh_token if body else None) or request.cookies.get(REFRESH_TOKEN_COOKIE)
    if not refresh_token:
        raise AuthRequiredError(request.url.path)

    tokens, auth_user = AuthService.refresh_session(refresh_token)
    user = await handle_auth_event(AuthEvent.TOKEN_REFRESHED, auth_user)

    _set_session_cookies(response, tokens)
    return AuthResponse(
        session=SessionTokens(**tokens),
        user=user,
        redirect_to=redirect_for_role(user.role),
    )


@router.get("/me", response_model=User)
async def get_current_user_info(user: AuthUser = Depends(get_current_user)) -> User:
    """
    Get the current authenticated user.

    Falls back to a placeholder (is_placeholder=true) when the users row
    can't be read or created in time.
    """
    return await synchronize_user(user)


@router.get("/verify")
async def verify_token(user: AuthUser = Depends(get_current_user)) -> dict:
    """
    Verify that the current token is valid.

    Useful for checking if a stored token is still valid.

    Raises:
        401: If token is invalid or expired
    """
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email,
        "role": user.role.value if user.role else None,
    }
