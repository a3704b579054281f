# =============================================================================
# core/services/auth_service.py - Authentication & User Synchronization
# =============================================================================
# Wraps Supabase Auth (sign-up, sign-in, password reset, refresh) and keeps
# public.users in step with the auth account.
#
# User synchronization:
#   After any auth event that carries a session, the users row is looked up.
#   If it is missing (the DB trigger hasn't run, or failed), it is created
#   from the token metadata. If that still yields nothing within
#   AUTH_SYNC_TIMEOUT_SECONDS, a placeholder User is built from the token so
#   the caller can carry on; it is flagged is_placeholder=True.
# =============================================================================

import asyncio
import logging
from enum import Enum
from typing import Any
from uuid import UUID

from app.auth.models import AuthUser, SignUpRequest
from app.config import settings
from app.exceptions import AuthProviderError
from app.websocket.broadcast import publish_auth_event
from core.models.user import User, UserRole
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    """Auth state changes reported by the Supabase client."""
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"
    INITIAL_SESSION = "INITIAL_SESSION"


def redirect_for_role(role: UserRole | None) -> str:
    """Landing page after sign-in."""
    return "/dashboard" if role == UserRole.VENUE_OWNER else "/browse"


def _metadata_role(auth_user: AuthUser) -> UserRole:
    return auth_user.role or UserRole.VENDOR


def _auth_user_from_provider(provider_user: Any) -> AuthUser:
    """Build an AuthUser from a Supabase Auth user object."""
    metadata = dict(getattr(provider_user, "user_metadata", None) or {})
    role = metadata.get("role")
    return AuthUser(
        id=UUID(str(provider_user.id)),
        email=getattr(provider_user, "email", None),
        role=role if role in {r.value for r in UserRole} else None,
        user_metadata=metadata,
    )


def _session_tokens(session: Any) -> dict[str, Any]:
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "expires_in": getattr(session, "expires_in", None),
    }


# =============================================================================
# User Synchronization
# =============================================================================

def fetch_user_record(user_id: UUID | str) -> dict[str, Any] | None:
    """
    Read the users row, treating lookup errors as "missing".

    Sync must never fail the request, so errors are logged only.
    """
    try:
        return SupabaseClient.fetch_user(user_id)
    except SupabaseClientError as e:
        logger.warning(f"Could not fetch user record {user_id}: {e}")
        return None


def ensure_user_record(auth_user: AuthUser) -> dict[str, Any] | None:
    """
    Create (or overwrite) the users row from the token metadata.

    On upsert failure the row is fetched once more, in case the DB trigger
    created it in the meantime.

    Returns:
        The users row, or None if it could not be created or found
    """
    metadata = auth_user.user_metadata
    now = utc_now_iso()
    user_data = {
        "id": str(auth_user.id),
        "email": auth_user.email,
        "role": _metadata_role(auth_user).value,
        "stripe_connect_id": None,
        "first_name": metadata.get("first_name"),
        "last_name": metadata.get("last_name"),
        "phone": metadata.get("phone"),
        "created_at": now,
        "updated_at": now,
    }

    client = SupabaseClient.get_client()

    try:
        response = (
            client.table("users")
            .upsert(user_data, on_conflict="id")
            .execute()
        )
        if response.data:
            logger.info(f"Created user record for {auth_user.id}")
            return response.data[0]
        logger.warning(f"User upsert for {auth_user.id} returned no data")

    except Exception as e:
        logger.error(f"Failed to create user record for {auth_user.id}: {e}")

    return fetch_user_record(auth_user.id)


def build_placeholder_user(auth_user: AuthUser) -> User:
    """Minimal User built from the token alone."""
    metadata = auth_user.user_metadata
    return User(
        id=auth_user.id,
        email=auth_user.email or "",
        role=_metadata_role(auth_user),
        first_name=metadata.get("first_name"),
        last_name=metadata.get("last_name"),
        phone=metadata.get("phone"),
        is_placeholder=True,
    )


async def _fetch_user_record_with_timeout(user_id: UUID) -> dict[str, Any] | None:
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(fetch_user_record, user_id),
            timeout=settings.PROFILE_FETCH_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Timed out fetching user record {user_id}")
        return None


async def _resolve_user_record(auth_user: AuthUser) -> dict[str, Any] | None:
    row = await _fetch_user_record_with_timeout(auth_user.id)
    if row:
        return row

    logger.info(f"User record missing for {auth_user.id}, creating it")
    return await asyncio.to_thread(ensure_user_record, auth_user)


async def synchronize_user(auth_user: AuthUser) -> User:
    """
    Resolve the User for an authenticated account.

    Always returns a User; falls back to a placeholder when the users row
    can't be read or created within AUTH_SYNC_TIMEOUT_SECONDS.
    """
    try:
        row = await asyncio.wait_for(
            _resolve_user_record(auth_user),
            timeout=settings.AUTH_SYNC_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.warning(f"User sync timed out for {auth_user.id}")
        row = None

    if row:
        return User(**row)

    logger.warning(f"Using placeholder user for {auth_user.id}")
    return build_placeholder_user(auth_user)


async def handle_auth_event(
    event: AuthEvent | str,
    auth_user: AuthUser | None,
) -> User | None:
    """
    React to an auth state change.

    Args:
        event: The auth event name
        auth_user: The session's user, or None when there is no session

    Returns:
        The synchronized User, or None for SIGNED_OUT / no session
    """
    event = AuthEvent(event)
    logger.info(f"Auth event {event.value} (has_session={auth_user is not None})")

    if auth_user is None:
        return None

    if event == AuthEvent.SIGNED_OUT:
        publish_auth_event(str(auth_user.id), event.value)
        return None

    user = await synchronize_user(auth_user)
    publish_auth_event(str(auth_user.id), event.value, is_placeholder=user.is_placeholder)
    return user


# =============================================================================
# Supabase Auth Operations
# =============================================================================

class AuthService:
    """
    Thin wrapper over Supabase Auth.

    Provider errors are raised as AuthProviderError with the provider's
    message so the client can show it.
    """

    @staticmethod
    def sign_up(request: SignUpRequest) -> AuthUser:
        """
        Create an account. Role and names are stored in user metadata.

        Returns:
            AuthUser for the new (possibly unconfirmed) account

        Raises:
            AuthProviderError: If the provider rejects the sign-up
        """
        client = SupabaseClient.new_auth_client()
        metadata = {
            "role": request.role.value,
            "first_name": request.first_name,
            "last_name": request.last_name,
            "phone": request.phone,
        }

        try:
            response = client.auth.sign_up({
                "email": request.email,
                "password": request.password,
                "options": {
                    "data": {k: v for k, v in metadata.items() if v is not None},
                    "email_redirect_to": f"{settings.SITE_URL}/auth/verify-email",
                },
            })
        except Exception as e:
            logger.warning(f"Sign-up failed for {request.email}: {e}")
            raise AuthProviderError("sign-up", str(e))

        if not response.user:
            raise AuthProviderError("sign-up", "No user returned")

        logger.info(f"Signed up {response.user.id} as {request.role.value}")
        return _auth_user_from_provider(response.user)

    @staticmethod
    def sign_in(email: str, password: str) -> tuple[dict[str, Any], AuthUser]:
        """
        Password sign-in.

        Returns:
            (tokens dict, AuthUser)

        Raises:
            AuthProviderError: 401 if the credentials are rejected
        """
        client = SupabaseClient.new_auth_client()

        try:
            response = client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.warning(f"Sign-in failed for {email}: {e}")
            raise AuthProviderError("sign-in", str(e), status_code=401)

        if not response.session or not response.user:
            raise AuthProviderError("sign-in", "No session returned", status_code=401)

        logger.info(f"Signed in {response.user.id}")
        return _session_tokens(response.session), _auth_user_from_provider(response.user)

    @staticmethod
    def sign_out(access_token: str | None) -> None:
        """Revoke the session with the provider if we have its token."""
        if not access_token:
            return

        try:
            SupabaseClient.get_client().auth.admin.sign_out(access_token)
        except Exception as e:
            # Cookies are cleared regardless; the token expires on its own
            logger.warning(f"Provider sign-out failed: {e}")

    @staticmethod
    def reset_password(email: str) -> None:
        """Send the password-reset e-mail."""
        client = SupabaseClient.new_auth_client()

        try:
            client.auth.reset_password_for_email(
                email,
                {"redirect_to": f"{settings.SITE_URL}/auth/reset-password"},
            )
        except Exception as e:
            logger.warning(f"Password reset failed for {email}: {e}")
            raise AuthProviderError("password reset", str(e))

        logger.info(f"Password reset e-mail requested for {email}")

    @staticmethod
    def update_password(user_id: UUID | str, new_password: str) -> None:
        """Set a new password for an authenticated user."""
        try:
            SupabaseClient.get_client().auth.admin.update_user_by_id(
                str(user_id),
                {"password": new_password},
            )
        except Exception as e:
            logger.warning(f"Password update failed for {user_id}: {e}")
            raise AuthProviderError("password update", str(e))

        logger.info(f"Password updated for {user_id}")

    @staticmethod
    def refresh_session(refresh_token: str) -> tuple[dict[str, Any], AuthUser]:
        """
        Exchange a refresh token for a new session.

        Raises:
            AuthProviderError: 401 if the refresh token is rejected
        """
        client = SupabaseClient.new_auth_client()

        try:
            response = client.auth.refresh_session(refresh_token)
        except Exception as e:
            logger.warning(f"Session refresh failed: {e}")
            raise AuthProviderError("session refresh", str(e), status_code=401)

        if not response.session or not response.user:
            raise AuthProviderError("session refresh", "No session returned", status_code=401)

        return _session_tokens(response.session), _auth_user_from_provider(response.user)
