# =============================================================================
# core/services/booking_service.py - Booking Business Logic
# =============================================================================
# Handles availability, booking creation and the booking status flow.
#
# A time slot is held by any pending or confirmed booking. Two windows on
# the same day overlap when existing.start < end and existing.end > start.
# Times are "HH:MM" strings, which compare correctly as text.
#
# Every state change:
#   1. Writes the bookings row
#   2. Queues an e-mail through the notification worker
#   3. Publishes a realtime event to the vendor and the listing owner
# =============================================================================

import logging
from datetime import date
from typing import Any
from uuid import UUID

from app.config import settings
from app.exceptions import (
    BookingNotFoundError,
    InvalidBookingError,
    InvalidBookingTransitionError,
    ListingNotFoundError,
    ListingUnavailableError,
    OwnershipError,
    SlotUnavailableError,
)
from app.websocket.broadcast import publish_booking_event
from core.models.booking import (
    ACTIVE_BOOKING_STATUSES,
    BookingCreate,
    BookingPaymentStatus,
    BookingStats,
    BookingStatus,
    TimeSlot,
)
from core.models.listing import ListingStatus
from core.services.notification_service import (
    notify_booking_cancelled,
    notify_booking_confirmed,
    notify_booking_created,
    notify_venue_owner,
)
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import format_hhmm, hours_between, normalize_uuid, times_overlap, utc_now_iso

logger = logging.getLogger(__name__)


def calculate_booking_cost(
    hourly_rate: float | None,
    daily_rate: float | None,
    total_hours: float,
) -> float:
    """
    Price a booking.

    Bookings of DAILY_RATE_THRESHOLD_HOURS or more are charged the daily
    rate (when the listing has one); shorter ones are hourly_rate × hours.
    """
    if daily_rate is not None and total_hours >= settings.DAILY_RATE_THRESHOLD_HOURS:
        return float(daily_rate)
    return round(float(hourly_rate or 0) * total_hours, 2)


def _person_name(user: dict[str, Any] | None) -> str:
    if not user:
        return "there"
    name = " ".join(p for p in (user.get("first_name"), user.get("last_name")) if p)
    return name or (user.get("email") or "there").split("@")[0]


def _sort_newest_first(bookings: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """booking_date descending, then start_time ascending."""
    by_start = sorted(bookings, key=lambda b: format_hhmm(b["start_time"]))
    return sorted(by_start, key=lambda b: str(b["booking_date"]), reverse=True)


class BookingService:
    """Service for booking operations."""

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _get_booking(booking_id: UUID | str) -> dict[str, Any]:
        booking_id_str = normalize_uuid(booking_id)
        booking = SupabaseClient.fetch_booking(booking_id_str)
        if not booking:
            raise BookingNotFoundError(booking_id_str)
        return booking

    @staticmethod
    def _get_listing(listing_id: UUID | str) -> dict[str, Any]:
        listing_id_str = normalize_uuid(listing_id)
        listing = SupabaseClient.fetch_listing(listing_id_str)
        if not listing:
            raise ListingNotFoundError(listing_id_str)
        return listing

    @staticmethod
    def _set_status(
        booking: dict[str, Any],
        target: BookingStatus,
        extra: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        data = {"status": target.value, "updated_at": utc_now_iso(), **(extra or {})}
        rows = SupabaseClient.update_rows("bookings", "id", booking["id"], data)
        if not rows:
            raise BookingNotFoundError(str(booking["id"]))
        return rows[0]

    @staticmethod
    def _publish(event_type: str, booking: dict[str, Any], listing: dict[str, Any]) -> None:
        publish_booking_event(
            event_type,
            booking,
            [booking.get("vendor_id"), listing.get("owner_id")],
        )

    @staticmethod
    def _select_bookings(
        column: str,
        value: Any,
        status: BookingStatus | None = None,
        code: str = "LIST_BOOKINGS_FAILED",
    ) -> list[dict[str, Any]]:
        """Bookings where `column` equals (or, for a list, is in) `value`."""
        client = SupabaseClient.get_client()

        try:
            query = client.table("bookings").select("*")
            if isinstance(value, list):
                query = query.in_(column, value)
            else:
                query = query.eq(column, value)
            if status:
                query = query.eq("status", status.value)
            response = query.execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to list bookings: {e}",
                code=code,
                details={column: str(value)},
            )

        return _sort_newest_first(response.data or [])

    # -------------------------------------------------------------------------
    # Availability
    # -------------------------------------------------------------------------

    @staticmethod
    def get_listing_bookings(
        listing_id: UUID | str,
        booking_date: date | None = None,
    ) -> list[dict[str, Any]]:
        """All bookings of a listing, by date then start time."""
        client = SupabaseClient.get_client()
        listing_id_str = normalize_uuid(listing_id)

        try:
            query = client.table("bookings").select("*").eq("listing_id", listing_id_str)
            if booking_date:
                query = query.eq("booking_date", booking_date.isoformat())
            response = (
                query.order("booking_date")
                .order("start_time")
                .execute()
            )
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch listing bookings: {e}",
                code="LISTING_BOOKINGS_FAILED",
                details={"listing_id": listing_id_str},
            )

        return response.data or []

    @staticmethod
    def get_listing_bookings_in_range(
        listing_id: UUID | str,
        start_date: date,
        end_date: date,
    ) -> list[dict[str, Any]]:
        """Pending and confirmed bookings between two dates (inclusive)."""
        client = SupabaseClient.get_client()
        listing_id_str = normalize_uuid(listing_id)

        try:
            response = (
                client.table("bookings")
                .select("*")
                .eq("listing_id", listing_id_str)
                .gte("booking_date", start_date.isoformat())
                .lte("booking_date", end_date.isoformat())
                .in_("status", ACTIVE_BOOKING_STATUSES)
                .order("booking_date")
                .order("start_time")
                .execute()
            )
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch bookings in range: {e}",
                code="LISTING_BOOKINGS_FAILED",
                details={"listing_id": listing_id_str},
            )

        return response.data or []

    @staticmethod
    def check_availability(
        listing_id: UUID | str,
        booking_date: date,
        start_time: str,
        end_time: str,
        exclude_booking_id: UUID | str | None = None,
    ) -> bool:
        """
        True when no pending or confirmed booking overlaps the window.

        Args:
            exclude_booking_id: Ignore this booking (when moving an existing one)
        """
        client = SupabaseClient.get_client()
        listing_id_str = normalize_uuid(listing_id)

        try:
            query = (
                client.table("bookings")
                .select("id")
                .eq("listing_id", listing_id_str)
                .eq("booking_date", booking_date.isoformat())
                .in_("status", ACTIVE_BOOKING_STATUSES)
                .lt("start_time", format_hhmm(end_time))
                .gt("end_time", format_hhmm(start_time))
            )
            if exclude_booking_id:
                query = query.neq("id", normalize_uuid(exclude_booking_id))
            response = query.execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to check availability: {e}",
                code="AVAILABILITY_CHECK_FAILED",
                details={"listing_id": listing_id_str},
            )

        return not response.data

    @staticmethod
    def get_available_time_slots(
        listing_id: UUID | str,
        booking_date: date,
        duration_hours: int = 1,
    ) -> list[TimeSlot]:
        """
        Hourly slot grid for one day.

        Slots start every hour from BOOKING_OPEN_HOUR and must end by
        BOOKING_CLOSE_HOUR.
        """
        held = [
            b for b in BookingService.get_listing_bookings(listing_id, booking_date)
            if b.get("status") in ACTIVE_BOOKING_STATUSES
        ]

        slots = []
        last_start = settings.BOOKING_CLOSE_HOUR - duration_hours
        for hour in range(settings.BOOKING_OPEN_HOUR, last_start + 1):
            start = f"{hour:02d}:00"
            end = f"{hour + duration_hours:02d}:00"
            taken = any(times_overlap(start, end, b["start_time"], b["end_time"]) for b in held)
            slots.append(TimeSlot(start=start, end=end, available=not taken))
        return slots

    # -------------------------------------------------------------------------
    # Create / Update
    # -------------------------------------------------------------------------

    @staticmethod
    def create_booking(vendor_id: UUID | str, request: BookingCreate) -> dict[str, Any]:
        """
        Book a listing for a vendor.

        Hours and cost are computed from the listing's rates. The booking
        starts as pending with payment pending.

        Raises:
            InvalidBookingError: If the window is empty or outside the listing's limits
            ListingNotFoundError / ListingUnavailableError
            SlotUnavailableError: If the window overlaps a held booking
        """
        total_hours = hours_between(request.start_time, request.end_time)
        if total_hours <= 0:
            raise InvalidBookingError(
                "End time must be after start time",
                {"start_time": request.start_time, "end_time": request.end_time},
            )

        listing = BookingService._get_listing(request.listing_id)
        if listing.get("status") != ListingStatus.ACTIVE.value:
            raise ListingUnavailableError(str(listing["id"]), listing.get("status"))

        min_hours = listing.get("min_booking_hours") or 1
        max_hours = listing.get("max_booking_hours")
        if total_hours < min_hours:
            raise InvalidBookingError(
                f"Minimum booking is {min_hours} hour(s)",
                {"total_hours": total_hours, "min_booking_hours": min_hours},
            )
        if max_hours is not None and total_hours > max_hours:
            raise InvalidBookingError(
                f"Maximum booking is {max_hours} hour(s)",
                {"total_hours": total_hours, "max_booking_hours": max_hours},
            )

        if not BookingService.check_availability(
            request.listing_id, request.booking_date, request.start_time, request.end_time
        ):
            raise SlotUnavailableError(
                str(request.listing_id),
                request.booking_date.isoformat(),
                request.start_time,
                request.end_time,
            )

        booking = SupabaseClient.insert_row("bookings", {
            "listing_id": normalize_uuid(request.listing_id),
            "vendor_id": normalize_uuid(vendor_id),
            "booking_date": request.booking_date.isoformat(),
            "start_time": request.start_time,
            "end_time": request.end_time,
            "total_hours": total_hours,
            "total_cost": calculate_booking_cost(
                listing.get("hourly_rate"), listing.get("daily_rate"), total_hours
            ),
            "status": BookingStatus.PENDING.value,
            "payment_status": BookingPaymentStatus.PENDING.value,
            "special_requests": request.special_requests,
        })
        logger.info(f"Created booking {booking['id']} on listing {listing['id']}")

        vendor = SupabaseClient.fetch_user(vendor_id)
        owner = SupabaseClient.fetch_user(listing["owner_id"])
        if vendor:
            notify_booking_created(vendor["email"], _person_name(vendor), listing["title"], booking)
        if owner:
            notify_venue_owner(
                owner["email"], _person_name(owner), _person_name(vendor), listing["title"], booking
            )

        BookingService._publish("booking_created", booking, listing)
        return booking

    @staticmethod
    def update_booking(
        booking_id: UUID | str,
        user_id: UUID | str,
        fields: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Update free-text fields on a booking.

        Vendors may change special_requests; the listing owner may change
        venue_owner_notes.
        """
        booking = BookingService._get_booking(booking_id)
        listing = BookingService._get_listing(booking["listing_id"])
        user_id_str = normalize_uuid(user_id)

        if user_id_str == str(booking["vendor_id"]):
            allowed = {"special_requests"}
        elif user_id_str == str(listing["owner_id"]):
            allowed = {"venue_owner_notes"}
        else:
            raise OwnershipError("booking", str(booking["id"]))

        data = {k: v for k, v in fields.items() if k in allowed}
        if not data:
            return booking

        data["updated_at"] = utc_now_iso()
        rows = SupabaseClient.update_rows("bookings", "id", booking["id"], data)
        updated = rows[0] if rows else booking
        BookingService._publish("booking_updated", updated, listing)
        return updated

    # -------------------------------------------------------------------------
    # Status Flow
    # -------------------------------------------------------------------------

    @staticmethod
    def cancel_booking(
        booking_id: UUID | str,
        user_id: UUID | str,
        reason: str,
    ) -> dict[str, Any]:
        """
        Cancel a pending or confirmed booking (vendor or listing owner).

        Raises:
            OwnershipError: If the caller is neither party
            InvalidBookingTransitionError: If already cancelled or completed
        """
        booking = BookingService._get_booking(booking_id)
        listing = BookingService._get_listing(booking["listing_id"])
        user_id_str = normalize_uuid(user_id)

        if user_id_str not in (str(booking["vendor_id"]), str(listing["owner_id"])):
            raise OwnershipError("booking", str(booking["id"]))
        if booking["status"] in (BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value):
            raise InvalidBookingTransitionError(
                str(booking["id"]), booking["status"], BookingStatus.CANCELLED.value
            )

        updated = BookingService._set_status(
            booking, BookingStatus.CANCELLED, {"cancellation_reason": reason}
        )
        logger.info(f"Cancelled booking {booking['id']} by {user_id_str}")

        vendor = SupabaseClient.fetch_user(booking["vendor_id"])
        if vendor:
            notify_booking_cancelled(vendor["email"], _person_name(vendor), listing["title"], updated)

        BookingService._publish("booking_cancelled", updated, listing)
        return updated

    @staticmethod
    def confirm_booking(
        booking_id: UUID | str,
        owner_id: UUID | str,
        notes: str | None = None,
    ) -> dict[str, Any]:
        """
        Owner accepts a pending booking.

        Raises:
            OwnershipError / InvalidBookingTransitionError
        """
        booking = BookingService._get_booking(booking_id)
        listing = BookingService._get_listing(booking["listing_id"])

        if normalize_uuid(owner_id) != str(listing["owner_id"]):
            raise OwnershipError("booking", str(booking["id"]))
        if booking["status"] != BookingStatus.PENDING.value:
            raise InvalidBookingTransitionError(
                str(booking["id"]), booking["status"], BookingStatus.CONFIRMED.value
            )

        extra = {"venue_owner_notes": notes} if notes else None
        updated = BookingService._set_status(booking, BookingStatus.CONFIRMED, extra)
        logger.info(f"Confirmed booking {booking['id']}")

        vendor = SupabaseClient.fetch_user(booking["vendor_id"])
        if vendor:
            notify_booking_confirmed(vendor["email"], _person_name(vendor), listing["title"], updated)

        BookingService._publish("booking_confirmed", updated, listing)
        return updated

    @staticmethod
    def complete_booking(booking_id: UUID | str, owner_id: UUID | str) -> dict[str, Any]:
        """Owner marks a confirmed booking as completed."""
        booking = BookingService._get_booking(booking_id)
        listing = BookingService._get_listing(booking["listing_id"])

        if normalize_uuid(owner_id) != str(listing["owner_id"]):
            raise OwnershipError("booking", str(booking["id"]))
        if booking["status"] != BookingStatus.CONFIRMED.value:
            raise InvalidBookingTransitionError(
                str(booking["id"]), booking["status"], BookingStatus.COMPLETED.value
            )

        updated = BookingService._set_status(booking, BookingStatus.COMPLETED)
        logger.info(f"Completed booking {booking['id']}")

        BookingService._publish("booking_completed", updated, listing)
        return updated

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @staticmethod
    def get_booking(booking_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        """A booking, visible to its vendor and the listing owner only."""
        booking = BookingService._get_booking(booking_id)
        listing = BookingService._get_listing(booking["listing_id"])
        if normalize_uuid(user_id) not in (str(booking["vendor_id"]), str(listing["owner_id"])):
            raise OwnershipError("booking", str(booking["id"]))
        return booking

    @staticmethod
    def get_vendor_bookings(
        vendor_id: UUID | str,
        status: BookingStatus | None = None,
    ) -> list[dict[str, Any]]:
        """A vendor's bookings, newest date first."""
        return BookingService._select_bookings("vendor_id", normalize_uuid(vendor_id), status)

    @staticmethod
    def get_owner_listing_ids(owner_id: UUID | str) -> list[str]:
        client = SupabaseClient.get_client()

        try:
            response = (
                client.table("listings")
                .select("id")
                .eq("owner_id", normalize_uuid(owner_id))
                .execute()
            )
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to list owner listings: {e}",
                code="LIST_LISTINGS_FAILED",
            )

        return [str(row["id"]) for row in response.data or []]

    @staticmethod
    def get_venue_owner_bookings(
        owner_id: UUID | str,
        status: BookingStatus | None = None,
    ) -> list[dict[str, Any]]:
        """Bookings across all of an owner's listings, newest date first."""
        listing_ids = BookingService.get_owner_listing_ids(owner_id)
        if not listing_ids:
            return []
        return BookingService._select_bookings("listing_id", listing_ids, status)

    @staticmethod
    def get_booking_stats(
        owner_id: UUID | str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> BookingStats:
        """Per-status counts for an owner; revenue counts completed bookings only."""
        bookings = BookingService.get_venue_owner_bookings(owner_id)
        if start_date:
            bookings = [b for b in bookings if str(b["booking_date"]) >= start_date.isoformat()]
        if end_date:
            bookings = [b for b in bookings if str(b["booking_date"]) <= end_date.isoformat()]

        stats = BookingStats(total=len(bookings))
        for booking in bookings:
            status = booking.get("status")
            if status in {s.value for s in BookingStatus}:
                setattr(stats, status, getattr(stats, status) + 1)
            if status == BookingStatus.COMPLETED.value:
                stats.total_revenue += float(booking.get("total_cost") or 0)
        return stats
