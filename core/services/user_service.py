# =============================================================================
# core/services/user_service.py - Users & Role Profiles
# =============================================================================
# Handles the users row and the role-specific profile tables:
#   venue_owner  -> venue_owner_profiles
#   vendor       -> vendor_profiles
# Both profile tables are keyed by user_id (one profile per user).
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from app.exceptions import InvalidProfileError, ProfileNotFoundError, UserNotFoundError
from core.models.user import (
    UserRole,
    UserUpdate,
    UserWithProfile,
    VendorProfile,
    VendorProfileUpdate,
    VenueOwnerProfile,
    VenueOwnerProfileUpdate,
    VerificationStatus,
)
from core.services.storage_service import StorageService
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import normalize_uuid, utc_now_iso

logger = logging.getLogger(__name__)

PROFILE_TABLES = {
    UserRole.VENUE_OWNER: "venue_owner_profiles",
    UserRole.VENDOR: "vendor_profiles",
}


def profile_table(role: UserRole | str) -> str:
    return PROFILE_TABLES[UserRole(role)]


class UserService:
    """Service for account and profile operations."""

    @staticmethod
    def get_user(user_id: UUID | str) -> dict[str, Any]:
        """
        Get a users row.

        Raises:
            UserNotFoundError: If the row doesn't exist
        """
        user = SupabaseClient.fetch_user(user_id)
        if not user:
            raise UserNotFoundError(normalize_uuid(user_id))
        return user

    @staticmethod
    def update_user_profile(user_id: UUID | str, update: UserUpdate) -> dict[str, Any]:
        """
        Update name/phone on the users row.

        Returns:
            The updated row (unchanged row if nothing was sent)
        """
        data = update.model_dump(exclude_unset=True)
        if not data:
            return UserService.get_user(user_id)

        data["updated_at"] = utc_now_iso()
        rows = SupabaseClient.update_rows("users", "id", user_id, data)
        if not rows:
            raise UserNotFoundError(normalize_uuid(user_id))

        logger.info(f"Updated user {user_id}: {sorted(data)}")
        return rows[0]

    @staticmethod
    def get_role_profile(user_id: UUID | str, role: UserRole) -> dict[str, Any] | None:
        """The user's venue-owner or vendor profile, or None if not created yet."""
        return SupabaseClient.fetch_profile(profile_table(role), user_id)

    @staticmethod
    def get_user_with_profile(user_id: UUID | str) -> UserWithProfile:
        """Users row together with whichever role profile exists."""
        user = UserService.get_user(user_id)
        role = UserRole(user["role"])
        profile = UserService.get_role_profile(user_id, role)

        result = UserWithProfile(user=user)
        if profile and role == UserRole.VENUE_OWNER:
            result.venue_owner_profile = VenueOwnerProfile(**profile)
        elif profile:
            result.vendor_profile = VendorProfile(**profile)
        return result

    @staticmethod
    def upsert_role_profile(
        user_id: UUID | str,
        role: UserRole,
        update: VenueOwnerProfileUpdate | VendorProfileUpdate | BaseModel,
    ) -> dict[str, Any]:
        """
        Create or update the current user's role profile.

        Only fields that were sent are written. A new vendor profile must
        include food_truck_name.

        Raises:
            InvalidProfileError: If a new vendor profile has no food_truck_name
        """
        table = profile_table(role)
        user_id_str = normalize_uuid(user_id)
        data = update.model_dump(exclude_unset=True, mode="json")

        existing = SupabaseClient.fetch_profile(table, user_id_str)
        if existing is None:
            if role == UserRole.VENDOR and not data.get("food_truck_name"):
                raise InvalidProfileError(
                    "food_truck_name is required when creating a vendor profile",
                    role.value,
                )
            data.setdefault("verification_status", VerificationStatus.PENDING.value)
            if role == UserRole.VENDOR:
                data.setdefault("setup_time_minutes", 30)
                data.setdefault("operating_radius_km", 10)

        data["user_id"] = user_id_str
        data["updated_at"] = utc_now_iso()

        client = SupabaseClient.get_client()

        try:
            response = (
                client.table(table)
                .upsert(data, on_conflict="user_id")
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to upsert {table} for {user_id_str}: {e}")
            raise SupabaseClientError(
                message=f"Failed to save profile: {e}",
                code="PROFILE_UPSERT_FAILED",
                details={"user_id": user_id_str, "table": table},
            )

        if not response.data:
            raise ProfileNotFoundError(user_id_str, role.value)

        logger.info(f"Saved {role.value} profile for {user_id_str}")
        return response.data[0]

    @staticmethod
    def upload_profile_photo(
        user_id: UUID | str,
        role: UserRole,
        filename: str,
        content: bytes,
    ) -> str:
        """
        Store a profile photo and point the role profile at it.

        Raises:
            ProfileNotFoundError: If the user has no role profile yet
        """
        table = profile_table(role)
        user_id_str = normalize_uuid(user_id)

        if SupabaseClient.fetch_profile(table, user_id_str) is None:
            raise ProfileNotFoundError(user_id_str, role.value)

        url = StorageService.upload_profile_photo(user_id_str, filename, content)
        SupabaseClient.update_rows(
            table, "user_id", user_id_str,
            {"profile_photo_url": url, "updated_at": utc_now_iso()},
        )
        return url
