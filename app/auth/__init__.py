# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Provides JWT-based authentication using Supabase Auth.
#
# Usage:
#   from app.auth import get_current_user, require_venue_owner, AuthUser
#
#   @router.post("/listings")
#   async def create(user: AuthUser = Depends(require_venue_owner)):
#       return {"owner_id": user.id}
# =============================================================================

from app.auth.dependencies import (
    get_current_user,
    get_current_user_optional,
    has_role,
    is_authenticated,
    is_vendor,
    is_venue_owner,
    require_admin,
    require_role,
    require_vendor,
    require_venue_owner,
)
from app.auth.models import AuthUser

__all__ = [
    "get_current_user",
    "get_current_user_optional",
    "has_role",
    "is_authenticated",
    "is_vendor",
    "is_venue_owner",
    "require_admin",
    "require_role",
    "require_vendor",
    "require_venue_owner",
    "AuthUser",
]
