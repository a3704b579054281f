# =============================================================================
# app/routers/profiles.py - Account & Role Profile Endpoints
# =============================================================================
# The current user's account, their venue-owner or vendor profile, profile
# photo and verification submission. All endpoints require authentication.
# =============================================================================

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from app.auth import AuthUser, get_current_user, require_role
from core.models.user import (
    User,
    UserRole,
    UserUpdate,
    UserWithProfile,
    VendorProfileUpdate,
    VenueOwnerProfileUpdate,
    VerificationRequest,
)
from core.services.user_service import UserService
from core.services.verification_service import VerificationService

router = APIRouter()

require_member = require_role(UserRole.VENUE_OWNER, UserRole.VENDOR)

PROFILE_UPDATE_MODELS: dict[UserRole, type[BaseModel]] = {
    UserRole.VENUE_OWNER: VenueOwnerProfileUpdate,
    UserRole.VENDOR: VendorProfileUpdate,
}


class PhotoUploadResponse(BaseModel):
    profile_photo_url: str


@router.get("", response_model=UserWithProfile)
def get_my_profile(user: AuthUser = Depends(get_current_user)):
    """The current user together with their role profile (if created)."""
    return UserService.get_user_with_profile(user.id)


@router.patch("", response_model=User)
def update_my_account(
    update: UserUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """Change first_name, last_name or phone."""
    return UserService.update_user_profile(user.id, update)


@router.put("/role-profile")
def upsert_my_role_profile(
    body: Annotated[dict[str, Any], Body(description="Venue-owner or vendor profile fields")],
    user: AuthUser = Depends(require_member),
):
    """
    Create or update the role profile.

    The body is validated against the venue-owner or vendor schema
    depending on the caller's role. Vendors must send food_truck_name
    when creating their profile.
    """
    update = PROFILE_UPDATE_MODELS[user.role].model_validate(body)
    return UserService.upsert_role_profile(user.id, user.role, update)


@router.post("/photo", response_model=PhotoUploadResponse)
async def upload_profile_photo(
    file: Annotated[UploadFile, File(description="JPEG, PNG, WebP or GIF image")],
    user: AuthUser = Depends(require_member),
):
    """Upload a profile photo to the profile-photos bucket."""
    content = await file.read()
    url = await run_in_threadpool(
        UserService.upload_profile_photo, user.id, user.role, file.filename or "photo", content
    )
    return PhotoUploadResponse(profile_photo_url=url)


@router.post("/verification")
def submit_verification(
    request: VerificationRequest,
    user: AuthUser = Depends(require_member),
):
    """
    Submit business documents for manual review.

    The profile's verification_status becomes pending until an admin
    reviews it.
    """
    profile = VerificationService.submit_verification(user.id, user.role, request)
    return {
        "verification_status": profile["verification_status"],
        "message": "Verification submitted for review",
    }
