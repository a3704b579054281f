# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - user.py: Users, role profiles and verification
# - listing.py: Listings, amenities and search filters
# - booking.py: Bookings, availability slots and stats
# - payment.py: Mock payment intents, refunds and payout accounts
# - notification.py: E-mail notifications
# - dashboard.py: Owner and vendor dashboard figures
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# User Models - Accounts, profiles, verification
# -----------------------------------------------------------------------------
from .user import (
    BusinessType,
    CuisineType,
    PendingVerification,
    User,
    UserRole,
    UserUpdate,
    UserWithProfile,
    VendorProfile,
    VendorProfileUpdate,
    VenueOwnerProfile,
    VenueOwnerProfileUpdate,
    VerificationRequest,
    VerificationReview,
    VerificationStatus,
)

# -----------------------------------------------------------------------------
# Listing Models - Venues and amenities
# -----------------------------------------------------------------------------
from .listing import (
    AMENITY_FILTERS,
    Amenities,
    AmenitiesBase,
    AmenitiesUpdate,
    ElectricityType,
    Listing,
    ListingCreate,
    ListingSearchFilters,
    ListingStatus,
    ListingUpdate,
    ListingWithAmenities,
)

# -----------------------------------------------------------------------------
# Booking Models
# -----------------------------------------------------------------------------
from .booking import (
    ACTIVE_BOOKING_STATUSES,
    AvailabilityResponse,
    Booking,
    BookingCancel,
    BookingConfirm,
    BookingCreate,
    BookingPaymentStatus,
    BookingStats,
    BookingStatus,
    TimeSlot,
)

# -----------------------------------------------------------------------------
# Payment Models - Mock gateway
# -----------------------------------------------------------------------------
from .payment import (
    AccountLinkRequest,
    AccountLinkResponse,
    ConfirmPaymentRequest,
    ConnectAccount,
    ConnectAccountRequest,
    CreatePaymentIntentRequest,
    MockPaymentIntent,
    Payment,
    PaymentIntentStatus,
    PaymentStatus,
    PaymentStatusResponse,
    PayoutStatus,
    Refund,
    RefundRequest,
)

# -----------------------------------------------------------------------------
# Notification & Dashboard Models
# -----------------------------------------------------------------------------
from .notification import EmailTemplate, Notification, NotificationType, SentEmail
from .dashboard import OwnerDashboardStats, RecentVenue, VendorDashboardStats

__all__ = [
    # User
    "BusinessType",
    "CuisineType",
    "PendingVerification",
    "User",
    "UserRole",
    "UserUpdate",
    "UserWithProfile",
    "VendorProfile",
    "VendorProfileUpdate",
    "VenueOwnerProfile",
    "VenueOwnerProfileUpdate",
    "VerificationRequest",
    "VerificationReview",
    "VerificationStatus",
    # Listing
    "AMENITY_FILTERS",
    "Amenities",
    "AmenitiesBase",
    "AmenitiesUpdate",
    "ElectricityType",
    "Listing",
    "ListingCreate",
    "ListingSearchFilters",
    "ListingStatus",
    "ListingUpdate",
    "ListingWithAmenities",
    # Booking
    "ACTIVE_BOOKING_STATUSES",
    "AvailabilityResponse",
    "Booking",
    "BookingCancel",
    "BookingConfirm",
    "BookingCreate",
    "BookingPaymentStatus",
    "BookingStats",
    "BookingStatus",
    "TimeSlot",
    # Payment
    "AccountLinkRequest",
    "AccountLinkResponse",
    "ConfirmPaymentRequest",
    "ConnectAccount",
    "ConnectAccountRequest",
    "CreatePaymentIntentRequest",
    "MockPaymentIntent",
    "Payment",
    "PaymentIntentStatus",
    "PaymentStatus",
    "PaymentStatusResponse",
    "PayoutStatus",
    "Refund",
    "RefundRequest",
    # Notification
    "EmailTemplate",
    "Notification",
    "NotificationType",
    "SentEmail",
    # Dashboard
    "OwnerDashboardStats",
    "RecentVenue",
    "VendorDashboardStats",
]
