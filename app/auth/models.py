# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from core.models.user import User, UserRole


class AuthUser(BaseModel):
    """
    Authenticated user extracted from a Supabase JWT.

    This is the user info available from the token itself, without
    querying the database. `role` is the marketplace role stored in the
    user metadata at sign-up (not the Postgres role claim).
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None
    role: Optional[UserRole] = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)


class SignUpRequest(BaseModel):
    """
    Example:
        {
            "email": "sam@example.com",
            "password": "correct-horse",
            "role": "vendor",
            "first_name": "Sam"
        }
    """
    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6)
    role: UserRole
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=30)


class SignInRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class ResetPasswordRequest(BaseModel):
    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")


class UpdatePasswordRequest(BaseModel):
    new_password: str = Field(..., min_length=6)


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = Field(
        default=None,
        description="Falls back to the sb-refresh-token cookie when omitted"
    )


class SessionTokens(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: Optional[int] = None
    token_type: str = "bearer"


class AuthResponse(BaseModel):
    """Result of sign-in / refresh: tokens plus the synchronized user."""

    session: SessionTokens
    user: User
    redirect_to: str


class SignUpResponse(BaseModel):
    user_id: UUID
    email: str
    role: UserRole
    email_confirmation_required: bool = True
    message: str = "Check your e-mail to confirm your account"


class TokenPayload(BaseModel):
    """
    Decoded JWT token payload from Supabase.

    Supabase tokens include standard JWT claims plus custom claims.
    """
    sub: str  # User ID
    email: Optional[str] = None
    aud: str  # Audience (should be "authenticated")
    exp: int  # Expiration timestamp
    iat: Optional[int] = None  # Issued at timestamp
    role: Optional[str] = None  # Postgres role ("authenticated")
    user_metadata: dict[str, Any] = Field(default_factory=dict)
