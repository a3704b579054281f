# =============================================================================
# core/services/verification_service.py - Profile Verification
# =============================================================================
# Users submit document links for manual review; admins approve or reject.
#
# There is no separate verifications table: the submission is rendered into
# a notes block on the role profile (business_description for venue owners,
# special_requirements for vendors) and verification_status goes to pending.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from app.exceptions import ProfileNotFoundError
from core.models.user import (
    PendingVerification,
    UserRole,
    VerificationRequest,
    VerificationStatus,
)
from core.services.user_service import profile_table
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import normalize_uuid, utc_now_iso

logger = logging.getLogger(__name__)

NOTES_COLUMN = {
    UserRole.VENUE_OWNER: "business_description",
    UserRole.VENDOR: "special_requirements",
}


def render_verification_notes(request: VerificationRequest, submitted_at: datetime) -> str:
    """Human-readable block an admin reads when reviewing."""
    lines = [
        request.additional_notes,
        "",
        "--- Verification Documents ---",
        f"Business License: {request.business_license_url}",
        f"Insurance: {request.insurance_certificate_url}",
        f"ID Document: {request.identity_document_url}",
    ]
    if request.business_address_proof_url:
        lines.append(f"Address Proof: {request.business_address_proof_url}")
    lines += [
        f"Contact: {request.contact_person} ({request.contact_phone})",
        f"Years Operating: {request.business_years_operating}",
        f"Submitted: {submitted_at.isoformat()}",
    ]
    return "\n".join(lines)


class VerificationService:
    """Service for submitting and reviewing verifications."""

    @staticmethod
    def submit_verification(
        user_id: UUID | str,
        role: UserRole,
        request: VerificationRequest,
    ) -> dict[str, Any]:
        """
        Attach verification documents to the user's profile and mark it pending.

        Raises:
            ProfileNotFoundError: If the user hasn't created a role profile
        """
        user_id_str = normalize_uuid(user_id)
        notes = render_verification_notes(request, datetime.now(timezone.utc))

        rows = SupabaseClient.update_rows(
            profile_table(role),
            "user_id",
            user_id_str,
            {
                "verification_status": VerificationStatus.PENDING.value,
                NOTES_COLUMN[role]: notes,
                "updated_at": utc_now_iso(),
            },
        )
        if not rows:
            raise ProfileNotFoundError(user_id_str, role.value)

        logger.info(f"Verification submitted by {user_id_str} ({role.value})")
        return rows[0]

    @staticmethod
    def list_pending() -> list[PendingVerification]:
        """Pending profiles of both roles, oldest first, with the user's name and e-mail."""
        client = SupabaseClient.get_client()
        pending: list[PendingVerification] = []

        for role in (UserRole.VENUE_OWNER, UserRole.VENDOR):
            table = profile_table(role)
            try:
                response = (
                    client.table(table)
                    .select("*")
                    .eq("verification_status", VerificationStatus.PENDING.value)
                    .execute()
                )
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to list pending verifications: {e}",
                    code="LIST_PENDING_FAILED",
                    details={"table": table},
                )

            for profile in response.data or []:
                user = SupabaseClient.fetch_user(profile["user_id"]) or {}
                name = " ".join(p for p in (user.get("first_name"), user.get("last_name")) if p)
                pending.append(PendingVerification(
                    user_id=profile["user_id"],
                    role=role,
                    email=user.get("email"),
                    name=name or None,
                    display_name=profile.get("business_name") or profile.get("food_truck_name"),
                    verification_status=profile["verification_status"],
                    notes=profile.get(NOTES_COLUMN[role]),
                    created_at=profile.get("created_at"),
                ))

        pending.sort(key=lambda p: p.created_at.isoformat() if p.created_at else "")
        return pending

    @staticmethod
    def review(
        user_id: UUID | str,
        role: UserRole,
        status: VerificationStatus,
        notes: str | None = None,
    ) -> dict[str, Any]:
        """
        Record an admin decision.

        Raises:
            ProfileNotFoundError: If the profile doesn't exist
        """
        user_id_str = normalize_uuid(user_id)
        rows = SupabaseClient.update_rows(
            profile_table(role),
            "user_id",
            user_id_str,
            {"verification_status": status.value, "updated_at": utc_now_iso()},
        )
        if not rows:
            raise ProfileNotFoundError(user_id_str, role.value)

        logger.info(
            f"Verification for {user_id_str} ({role.value}) set to {status.value}"
            + (f": {notes}" if notes else "")
        )
        return rows[0]
