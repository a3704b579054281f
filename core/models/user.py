# =============================================================================
# core/models/user.py - User & Profile Schemas
# =============================================================================
# These models define the API contract for accounts and profiles:
# - User: the public.users row mirrored from Supabase Auth
# - VenueOwnerProfile / VendorProfile: role-specific details
# - *Update: partial updates accepted from clients
#
# Every account has exactly one role. Venue owners list outdoor space;
# vendors rent it for a food truck.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class UserRole(str, Enum):
    """Marketplace role chosen at sign-up."""
    VENUE_OWNER = "venue_owner"
    VENDOR = "vendor"


class VerificationStatus(str, Enum):
    """
    Review state of a profile.

    Flow: pending -> verified | rejected (a rejected user may resubmit -> pending)
    """
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class BusinessType(str, Enum):
    PUB = "pub"
    RESTAURANT = "restaurant"
    CAFE = "cafe"
    EVENT_SPACE = "event_space"
    RETAIL = "retail"
    OFFICE = "office"
    OTHER = "other"


class CuisineType(str, Enum):
    ASIAN = "asian"
    MEXICAN = "mexican"
    ITALIAN = "italian"
    AMERICAN = "american"
    INDIAN = "indian"
    MEDITERRANEAN = "mediterranean"
    VEGAN = "vegan"
    DESSERT = "dessert"
    BEVERAGES = "beverages"
    FUSION = "fusion"
    OTHER = "other"


# =============================================================================
# Users
# =============================================================================

class User(BaseModel):
    """
    Row from public.users.

    `is_placeholder` is never stored. It marks a user built from the access
    token alone because the row could not be read or created.
    """

    id: UUID
    email: str
    role: UserRole
    stripe_connect_id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    is_placeholder: bool = Field(
        default=False,
        description="True when built from the session because the users row was unavailable"
    )

    @property
    def display_name(self) -> str:
        """First and last name, falling back to the e-mail local part."""
        name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return name or self.email.split("@")[0]


class UserUpdate(BaseModel):
    """Fields a user may change on their own account."""

    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=30)


# =============================================================================
# Role-specific Profiles
# =============================================================================

class VenueOwnerProfileUpdate(BaseModel):
    """
    Upsert payload for a venue owner's business profile.

    Example:
        {
            "business_name": "The Red Lion",
            "business_type": "pub",
            "contact_phone": "+44 20 7946 0000"
        }
    """

    business_name: str | None = Field(default=None, max_length=200)
    business_type: BusinessType | None = None
    business_registration: str | None = None
    business_address: str | None = None
    website: str | None = None
    social_links: list[str] | None = None
    business_hours: str | None = None
    contact_person: str | None = None
    contact_phone: str | None = None
    business_description: str | None = None
    profile_photo_url: str | None = None


class VenueOwnerProfile(VenueOwnerProfileUpdate):
    """Row from venue_owner_profiles."""

    user_id: UUID
    verification_status: VerificationStatus = VerificationStatus.PENDING
    created_at: datetime | None = None
    updated_at: datetime | None = None


class VendorProfileUpdate(BaseModel):
    """
    Upsert payload for a vendor's food-truck profile.

    `food_truck_name` is required by the database, so it is required the
    first time the profile is created (enforced in the service).
    """

    food_truck_name: str | None = Field(default=None, min_length=1, max_length=200)
    cuisine_type: CuisineType | None = None
    food_license_number: str | None = None
    truck_description: str | None = None
    menu_highlights: list[str] | None = None
    website: str | None = None
    instagram_handle: str | None = None
    facebook_page: str | None = None
    social_links: list[str] | None = None
    profile_photo_url: str | None = None
    truck_size: str | None = None
    setup_time_minutes: int | None = Field(default=None, ge=0, le=24 * 60)
    operating_radius_km: int | None = Field(default=None, ge=0)
    min_booking_value: float | None = Field(default=None, ge=0)
    special_requirements: str | None = None


class VendorProfile(VendorProfileUpdate):
    """Row from vendor_profiles."""

    user_id: UUID
    food_truck_name: str
    setup_time_minutes: int = 30
    operating_radius_km: int = 10
    verification_status: VerificationStatus = VerificationStatus.PENDING
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserWithProfile(BaseModel):
    """A user together with whichever role profile they have."""

    user: User
    venue_owner_profile: VenueOwnerProfile | None = None
    vendor_profile: VendorProfile | None = None


# =============================================================================
# Verification
# =============================================================================

class VerificationRequest(BaseModel):
    """
    Documents submitted for manual verification.

    The three document URLs are mandatory; everything else is optional.
    """

    business_license_url: str = Field(..., min_length=1)
    insurance_certificate_url: str = Field(..., min_length=1)
    identity_document_url: str = Field(..., min_length=1)
    business_address_proof_url: str | None = None
    contact_person: str = ""
    contact_phone: str = ""
    business_years_operating: int = Field(default=1, ge=0)
    additional_notes: str = ""


class VerificationReview(BaseModel):
    """Admin decision on a pending verification."""

    role: UserRole
    status: VerificationStatus = Field(
        ...,
        description="verified or rejected"
    )
    notes: str | None = None

    @field_validator("status")
    @classmethod
    def check_decision(cls, value: VerificationStatus) -> VerificationStatus:
        if value == VerificationStatus.PENDING:
            raise ValueError("status must be verified or rejected")
        return value


class PendingVerification(BaseModel):
    """Summary row shown on the admin review queue."""

    user_id: UUID
    role: UserRole
    email: str | None = None
    name: str | None = None
    display_name: str | None = Field(
        default=None,
        description="Business name or food truck name"
    )
    verification_status: VerificationStatus
    notes: str | None = None
    created_at: datetime | None = None
