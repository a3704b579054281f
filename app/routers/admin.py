# =============================================================================
# app/routers/admin.py - Admin Endpoints
# =============================================================================
# Verification review. Admins are the accounts listed in ADMIN_EMAILS.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from app.auth import AuthUser, require_admin
from core.models.user import PendingVerification, VerificationReview
from core.services.verification_service import VerificationService

router = APIRouter()


@router.get("/verifications", response_model=list[PendingVerification])
def list_pending_verifications(user: AuthUser = Depends(require_admin)):
    """Profiles of both roles awaiting review, oldest first."""
    return VerificationService.list_pending()


@router.post("/verifications/{user_id}")
def review_verification(
    user_id: Annotated[UUID, Path(description="User whose profile is reviewed")],
    review: VerificationReview,
    user: AuthUser = Depends(require_admin),
):
    """Mark a profile verified or rejected."""
    profile = VerificationService.review(user_id, review.role, review.status, review.notes)
    return {
        "user_id": str(user_id),
        "role": review.role.value,
        "verification_status": profile["verification_status"],
        "reviewed_by": user.email,
    }
