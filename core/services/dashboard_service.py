# =============================================================================
# core/services/dashboard_service.py - Dashboard Aggregates
# =============================================================================
# Headline numbers for the venue-owner and vendor dashboards, computed from
# the bookings and listings rows.
# =============================================================================

import logging
from datetime import date
from typing import Any
from uuid import UUID

from core.models.booking import BookingPaymentStatus, BookingStatus
from core.models.dashboard import OwnerDashboardStats, RecentVenue, VendorDashboardStats
from core.models.user import UserRole
from core.services.booking_service import BookingService
from core.services.listing_service import ListingService
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)


def _revenue(bookings: list[dict[str, Any]]) -> float:
    return round(sum(float(b.get("total_cost") or 0) for b in bookings), 2)


class DashboardService:
    """Service for dashboard statistics."""

    @staticmethod
    def get_owner_stats(owner_id: UUID | str, today: date | None = None) -> OwnerDashboardStats:
        """
        Stats across all of an owner's listings.

        Revenue counts completed bookings; this month means the booking
        date falls in today's calendar month.
        """
        today = today or date.today()
        listing_ids = BookingService.get_owner_listing_ids(owner_id)
        bookings = BookingService.get_venue_owner_bookings(owner_id)

        completed = [b for b in bookings if b.get("status") == BookingStatus.COMPLETED.value]
        month_prefix = today.strftime("%Y-%m")
        this_month = [b for b in completed if str(b["booking_date"]).startswith(month_prefix)]

        total_revenue = _revenue(completed)
        total_bookings = len(bookings)

        return OwnerDashboardStats(
            total_venues=len(listing_ids),
            total_bookings=total_bookings,
            pending_bookings=sum(1 for b in bookings if b.get("status") == BookingStatus.PENDING.value),
            confirmed_bookings=sum(1 for b in bookings if b.get("status") == BookingStatus.CONFIRMED.value),
            total_revenue=total_revenue,
            this_month_revenue=_revenue(this_month),
            avg_booking_value=round(total_revenue / total_bookings) if total_bookings else 0,
        )

    @staticmethod
    def get_recent_venues(owner_id: UUID | str, limit: int = 5) -> list[RecentVenue]:
        """The owner's newest listings with their booking counts."""
        listings = ListingService.get_listings(owner_id=owner_id, limit=limit)
        bookings = BookingService.get_venue_owner_bookings(owner_id)

        venues = []
        for listing in listings:
            own = [b for b in bookings if str(b["listing_id"]) == str(listing["id"])]
            last = max((str(b["booking_date"]) for b in own), default=None)
            venues.append(RecentVenue(
                id=listing["id"],
                title=listing["title"],
                city=listing.get("city") or "",
                bookings_count=len(own),
                last_booking=last,
                status=listing["status"],
            ))
        return venues

    @staticmethod
    def get_vendor_stats(vendor_id: UUID | str, today: date | None = None) -> VendorDashboardStats:
        """Stats for a vendor; total_spent counts paid bookings."""
        today_iso = (today or date.today()).isoformat()
        bookings = BookingService.get_vendor_bookings(vendor_id)

        upcoming = [
            b for b in bookings
            if b.get("status") in (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)
            and str(b["booking_date"]) >= today_iso
        ]
        paid = [b for b in bookings if b.get("payment_status") == BookingPaymentStatus.PAID.value]

        profile = SupabaseClient.fetch_profile("vendor_profiles", normalize_uuid(vendor_id))

        return VendorDashboardStats(
            total_bookings=len(bookings),
            upcoming_bookings=len(upcoming),
            total_spent=_revenue(paid),
            completed_bookings=sum(1 for b in bookings if b.get("status") == BookingStatus.COMPLETED.value),
            verification_status=profile.get("verification_status") if profile else None,
        )

    @staticmethod
    def get_dashboard(user_id: UUID | str, role: UserRole) -> dict[str, Any]:
        """Role-appropriate dashboard payload."""
        if role == UserRole.VENUE_OWNER:
            return {
                "role": role.value,
                "stats": DashboardService.get_owner_stats(user_id),
                "recent_venues": DashboardService.get_recent_venues(user_id),
            }
        return {
            "role": role.value,
            "stats": DashboardService.get_vendor_stats(user_id),
            "upcoming_bookings": [
                b for b in BookingService.get_vendor_bookings(user_id)
                if b.get("status") in (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)
            ][:5],
        }
