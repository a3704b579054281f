# =============================================================================
# tests/test_booking_service.py - Booking Business Rules
# =============================================================================
# Availability, pricing, creation rules and the status flow, run against
# the in-memory Supabase fake.
#
# Run with: pytest tests/test_booking_service.py -v
# =============================================================================

from datetime import date
from unittest.mock import patch

import pytest

from app.config import settings
from app.exceptions import (
    InvalidBookingError,
    InvalidBookingTransitionError,
    ListingUnavailableError,
    OwnershipError,
    SlotUnavailableError,
)
from core.models.booking import BookingCreate, BookingStatus
from core.services.booking_service import BookingService, calculate_booking_cost
from tests.conftest import published_events, seed_booking, seed_listing, seed_user

BOOKING_DAY = date(2030, 7, 6)


@pytest.fixture
def parties(fake_db):
    owner = seed_user(fake_db, "venue_owner", first_name="Olive", last_name="Owner")
    vendor = seed_user(fake_db, "vendor", first_name="Vic", last_name="Vendor")
    listing = seed_listing(fake_db, owner["id"], title="Canal Basin")
    return owner, vendor, listing


def _request(listing, start="11:00", end="15:00", day=BOOKING_DAY):
    return BookingCreate(listing_id=listing["id"], booking_date=day, start_time=start, end_time=end)


# =============================================================================
# Pricing
# =============================================================================

class TestCalculateBookingCost:

    def test_hourly_below_threshold(self):
        assert calculate_booking_cost(25, 150, 4) == 100

    def test_daily_rate_at_threshold(self):
        assert calculate_booking_cost(25, 150, 8) == 150

    def test_hourly_when_no_daily_rate(self):
        assert calculate_booking_cost(25, None, 10) == 250


# =============================================================================
# Availability
# =============================================================================

class TestAvailability:

    def test_free_when_no_bookings(self, fake_db, parties):
        _, _, listing = parties
        assert BookingService.check_availability(listing["id"], BOOKING_DAY, "11:00", "15:00")

    @pytest.mark.parametrize("start,end,expected", [
        ("09:00", "11:00", True),   # ends as the existing one starts
        ("15:00", "17:00", True),   # starts as the existing one ends
        ("10:00", "12:00", False),
        ("12:00", "13:00", False),
        ("14:30", "18:00", False),
    ])
    def test_overlap_rule(self, fake_db, parties, start, end, expected):
        _, vendor, listing = parties
        seed_booking(fake_db, listing["id"], vendor["id"], start_time="11:00", end_time="15:00")

        assert BookingService.check_availability(listing["id"], BOOKING_DAY, start, end) is expected

    def test_cancelled_and_completed_do_not_block(self, fake_db, parties):
        _, vendor, listing = parties
        seed_booking(fake_db, listing["id"], vendor["id"], status="cancelled")
        seed_booking(fake_db, listing["id"], vendor["id"], status="completed")

        assert BookingService.check_availability(listing["id"], BOOKING_DAY, "11:00", "15:00")

    def test_exclude_booking_id(self, fake_db, parties):
        _, vendor, listing = parties
        existing = seed_booking(fake_db, listing["id"], vendor["id"])

        assert BookingService.check_availability(
            listing["id"], BOOKING_DAY, "12:00", "13:00", exclude_booking_id=existing["id"]
        )

    def test_other_day_does_not_block(self, fake_db, parties):
        _, vendor, listing = parties
        seed_booking(fake_db, listing["id"], vendor["id"], booking_date="2030-07-07")

        assert BookingService.check_availability(listing["id"], BOOKING_DAY, "11:00", "15:00")

    def test_time_slots_grid(self, fake_db, parties):
        _, vendor, listing = parties
        seed_booking(fake_db, listing["id"], vendor["id"], start_time="11:00", end_time="13:00")
        seed_booking(fake_db, listing["id"], vendor["id"], start_time="16:00", end_time="17:00",
                     status="cancelled")

        slots = BookingService.get_available_time_slots(listing["id"], BOOKING_DAY)

        assert slots[0].start == "06:00"
        assert slots[-1].end == "22:00"
        assert len(slots) == 16
        taken = {s.start for s in slots if not s.available}
        assert taken == {"11:00", "12:00"}

    def test_time_slots_respect_duration(self, fake_db, parties):
        _, _, listing = parties
        slots = BookingService.get_available_time_slots(listing["id"], BOOKING_DAY, duration_hours=4)

        assert slots[-1].start == "18:00"
        assert all(s.available for s in slots)

    def test_time_slots_end_by_close_hour(self, fake_db, parties):
        _, _, listing = parties
        with patch.object(settings, "BOOKING_CLOSE_HOUR", 24):
            slots = BookingService.get_available_time_slots(listing["id"], BOOKING_DAY, duration_hours=2)

        assert slots[-1].start == "22:00"
        assert slots[-1].end == "24:00"

    def test_bookings_in_range_only_active(self, fake_db, parties):
        _, vendor, listing = parties
        seed_booking(fake_db, listing["id"], vendor["id"], booking_date="2030-07-06")
        seed_booking(fake_db, listing["id"], vendor["id"], booking_date="2030-07-08", status="cancelled")
        seed_booking(fake_db, listing["id"], vendor["id"], booking_date="2030-08-01")

        rows = BookingService.get_listing_bookings_in_range(
            listing["id"], date(2030, 7, 1), date(2030, 7, 31)
        )

        assert [r["booking_date"] for r in rows] == ["2030-07-06"]


# =============================================================================
# Create
# =============================================================================

class TestCreateBooking:

    def test_creates_pending_booking_with_server_side_cost(self, fake_db, parties, outbox):
        owner, vendor, listing = parties

        booking = BookingService.create_booking(vendor["id"], _request(listing))

        assert booking["status"] == "pending"
        assert booking["payment_status"] == "pending"
        assert booking["total_hours"] == 4
        assert booking["total_cost"] == 100
        assert fake_db.get("bookings", id=booking["id"]) is not None

    def test_notifies_vendor_and_owner(self, fake_db, parties, outbox, redis_publish):
        owner, vendor, listing = parties

        booking = BookingService.create_booking(vendor["id"], _request(listing))

        recipients = sorted(e.to for e in outbox.get_sent_emails())
        assert recipients == sorted([owner["email"], vendor["email"]])

        events = published_events(redis_publish)
        assert {e["user_id"] for e in events} == {owner["id"], vendor["id"]}
        assert all(e["type"] == "booking_created" and e["booking_id"] == booking["id"] for e in events)

    def test_end_before_start_rejected(self, fake_db, parties):
        _, vendor, listing = parties

        with pytest.raises(InvalidBookingError):
            BookingService.create_booking(vendor["id"], _request(listing, "15:00", "11:00"))

    def test_inactive_listing_rejected(self, fake_db, parties):
        owner, vendor, _ = parties
        inactive = seed_listing(fake_db, owner["id"], status="inactive")

        with pytest.raises(ListingUnavailableError):
            BookingService.create_booking(vendor["id"], _request(inactive))

    def test_min_and_max_hours(self, fake_db, parties):
        owner, vendor, _ = parties
        listing = seed_listing(fake_db, owner["id"], min_booking_hours=3, max_booking_hours=6)

        with pytest.raises(InvalidBookingError, match="Minimum"):
            BookingService.create_booking(vendor["id"], _request(listing, "11:00", "12:00"))
        with pytest.raises(InvalidBookingError, match="Maximum"):
            BookingService.create_booking(vendor["id"], _request(listing, "08:00", "16:00"))

    def test_conflict_raises_slot_unavailable(self, fake_db, parties):
        _, vendor, listing = parties
        seed_booking(fake_db, listing["id"], vendor["id"], status="confirmed")

        with pytest.raises(SlotUnavailableError) as exc_info:
            BookingService.create_booking(vendor["id"], _request(listing, "12:00", "14:00"))
        assert exc_info.value.status_code == 409

    def test_daily_rate_applied_for_long_booking(self, fake_db, parties, outbox):
        _, vendor, listing = parties

        booking = BookingService.create_booking(vendor["id"], _request(listing, "08:00", "17:00"))

        assert booking["total_cost"] == 150


# =============================================================================
# Status Flow
# =============================================================================

class TestStatusFlow:

    def test_owner_confirms_pending(self, fake_db, parties, outbox):
        owner, vendor, listing = parties
        booking = seed_booking(fake_db, listing["id"], vendor["id"])

        confirmed = BookingService.confirm_booking(booking["id"], owner["id"], notes="Gate code 1234")

        assert confirmed["status"] == "confirmed"
        assert confirmed["venue_owner_notes"] == "Gate code 1234"
        assert [e.to for e in outbox.get_sent_emails()] == [vendor["email"]]

    def test_vendor_cannot_confirm(self, fake_db, parties):
        _, vendor, listing = parties
        booking = seed_booking(fake_db, listing["id"], vendor["id"])

        with pytest.raises(OwnershipError):
            BookingService.confirm_booking(booking["id"], vendor["id"])

    def test_confirm_requires_pending(self, fake_db, parties):
        owner, vendor, listing = parties
        booking = seed_booking(fake_db, listing["id"], vendor["id"], status="cancelled")

        with pytest.raises(InvalidBookingTransitionError):
            BookingService.confirm_booking(booking["id"], owner["id"])

    def test_complete_requires_confirmed(self, fake_db, parties):
        owner, vendor, listing = parties
        pending = seed_booking(fake_db, listing["id"], vendor["id"])
        confirmed = seed_booking(fake_db, listing["id"], vendor["id"], status="confirmed",
                                 start_time="16:00", end_time="18:00")

        with pytest.raises(InvalidBookingTransitionError):
            BookingService.complete_booking(pending["id"], owner["id"])
        assert BookingService.complete_booking(confirmed["id"], owner["id"])["status"] == "completed"

    @pytest.mark.parametrize("who", ["vendor", "owner"])
    def test_either_party_can_cancel(self, fake_db, parties, outbox, who):
        owner, vendor, listing = parties
        booking = seed_booking(fake_db, listing["id"], vendor["id"], status="confirmed")
        actor = vendor if who == "vendor" else owner

        cancelled = BookingService.cancel_booking(booking["id"], actor["id"], "Rain forecast")

        assert cancelled["status"] == "cancelled"
        assert cancelled["cancellation_reason"] == "Rain forecast"
        sent = outbox.get_sent_emails()
        assert len(sent) == 1 and sent[0].to == vendor["email"]

    def test_stranger_cannot_cancel(self, fake_db, parties):
        _, vendor, listing = parties
        stranger = seed_user(fake_db, "vendor")
        booking = seed_booking(fake_db, listing["id"], vendor["id"])

        with pytest.raises(OwnershipError):
            BookingService.cancel_booking(booking["id"], stranger["id"], "nope")

    @pytest.mark.parametrize("status", ["cancelled", "completed"])
    def test_cannot_cancel_finished_booking(self, fake_db, parties, status):
        _, vendor, listing = parties
        booking = seed_booking(fake_db, listing["id"], vendor["id"], status=status)

        with pytest.raises(InvalidBookingTransitionError):
            BookingService.cancel_booking(booking["id"], vendor["id"], "too late")

    def test_update_booking_field_per_party(self, fake_db, parties, redis_publish):
        owner, vendor, listing = parties
        booking = seed_booking(fake_db, listing["id"], vendor["id"])

        updated = BookingService.update_booking(
            booking["id"], vendor["id"],
            {"special_requests": "Need water", "venue_owner_notes": "ignored"},
        )
        assert updated["special_requests"] == "Need water"
        assert updated["venue_owner_notes"] is None

        updated = BookingService.update_booking(booking["id"], owner["id"], {"venue_owner_notes": "Bay 2"})
        assert updated["venue_owner_notes"] == "Bay 2"


# =============================================================================
# Queries
# =============================================================================

class TestQueries:

    def test_vendor_bookings_newest_date_first(self, fake_db, parties):
        _, vendor, listing = parties
        seed_booking(fake_db, listing["id"], vendor["id"], booking_date="2030-07-01", start_time="09:00")
        seed_booking(fake_db, listing["id"], vendor["id"], booking_date="2030-07-03", start_time="14:00")
        seed_booking(fake_db, listing["id"], vendor["id"], booking_date="2030-07-03", start_time="08:00")

        rows = BookingService.get_vendor_bookings(vendor["id"])

        assert [(r["booking_date"], r["start_time"]) for r in rows] == [
            ("2030-07-03", "08:00"),
            ("2030-07-03", "14:00"),
            ("2030-07-01", "09:00"),
        ]

    def test_owner_bookings_span_all_listings(self, fake_db, parties):
        owner, vendor, listing = parties
        second = seed_listing(fake_db, owner["id"], title="Market Square")
        other_owner = seed_user(fake_db, "venue_owner")
        foreign = seed_listing(fake_db, other_owner["id"])
        seed_booking(fake_db, listing["id"], vendor["id"])
        seed_booking(fake_db, second["id"], vendor["id"])
        seed_booking(fake_db, foreign["id"], vendor["id"])

        rows = BookingService.get_venue_owner_bookings(owner["id"])

        assert {r["listing_id"] for r in rows} == {listing["id"], second["id"]}

    def test_owner_without_listings(self, fake_db):
        owner = seed_user(fake_db, "venue_owner")
        assert BookingService.get_venue_owner_bookings(owner["id"]) == []

    def test_status_filter(self, fake_db, parties):
        _, vendor, listing = parties
        seed_booking(fake_db, listing["id"], vendor["id"], status="pending")
        seed_booking(fake_db, listing["id"], vendor["id"], status="confirmed")

        rows = BookingService.get_vendor_bookings(vendor["id"], BookingStatus.CONFIRMED)

        assert [r["status"] for r in rows] == ["confirmed"]

    def test_booking_stats(self, fake_db, parties):
        owner, vendor, listing = parties
        seed_booking(fake_db, listing["id"], vendor["id"], status="pending", total_cost=50)
        seed_booking(fake_db, listing["id"], vendor["id"], status="completed", total_cost=120)
        seed_booking(fake_db, listing["id"], vendor["id"], status="completed", total_cost=80,
                     booking_date="2030-09-01")
        seed_booking(fake_db, listing["id"], vendor["id"], status="cancelled", total_cost=500)

        stats = BookingService.get_booking_stats(owner["id"])
        assert stats.total == 4
        assert stats.pending == 1
        assert stats.completed == 2
        assert stats.cancelled == 1
        assert stats.total_revenue == 200

        july = BookingService.get_booking_stats(owner["id"], date(2030, 7, 1), date(2030, 7, 31))
        assert july.total == 3
        assert july.total_revenue == 120
