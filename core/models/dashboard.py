# =============================================================================
# core/models/dashboard.py - Dashboard Schemas
# =============================================================================

from datetime import date
from uuid import UUID

from pydantic import BaseModel

from .listing import ListingStatus
from .user import VerificationStatus


class OwnerDashboardStats(BaseModel):
    """
    Headline numbers for a venue owner.

    Revenue only counts completed bookings. avg_booking_value is
    total_revenue / total_bookings rounded to a whole number.
    """

    total_venues: int = 0
    total_bookings: int = 0
    pending_bookings: int = 0
    confirmed_bookings: int = 0
    total_revenue: float = 0.0
    this_month_revenue: float = 0.0
    avg_booking_value: int = 0


class RecentVenue(BaseModel):
    id: UUID
    title: str
    city: str
    bookings_count: int = 0
    last_booking: date | None = None
    status: ListingStatus


class VendorDashboardStats(BaseModel):
    """Headline numbers for a vendor."""

    total_bookings: int = 0
    upcoming_bookings: int = 0
    total_spent: float = 0.0
    completed_bookings: int = 0
    verification_status: VerificationStatus | None = None
