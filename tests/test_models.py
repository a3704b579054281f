# =============================================================================
# tests/test_models.py - Pydantic Model Tests
# =============================================================================
# Unit tests for the request and row models:
# - Valid data is accepted and normalized
# - Invalid data raises ValidationError
# - Default values work as expected
#
# Run with: pytest tests/test_models.py -v
# =============================================================================

from datetime import date
from uuid import uuid4

import pytest
from pydantic import ValidationError

from core.models import (
    AmenitiesBase,
    Booking,
    BookingCreate,
    CreatePaymentIntentRequest,
    ElectricityType,
    ListingCreate,
    ListingSearchFilters,
    Notification,
    User,
    UserRole,
    VerificationRequest,
    VerificationReview,
    VerificationStatus,
)
from lib.utils import hours_between, times_overlap


# =============================================================================
# Users & Verification
# =============================================================================

class TestUser:
    """Tests for the User model."""

    def test_display_name_prefers_full_name(self):
        user = User(id=uuid4(), email="sam@example.com", role="vendor", first_name="Sam", last_name="Taylor")
        assert user.display_name == "Sam Taylor"

    def test_display_name_falls_back_to_email(self):
        user = User(id=uuid4(), email="sam.t@example.com", role=UserRole.VENUE_OWNER)
        assert user.display_name == "sam.t"
        assert user.is_placeholder is False

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError):
            User(id=uuid4(), email="sam@example.com", role="admin")


class TestVerificationModels:

    def test_documents_required(self):
        with pytest.raises(ValidationError):
            VerificationRequest(business_license_url="https://docs.test/l.pdf")

    def test_defaults(self):
        request = VerificationRequest(
            business_license_url="a", insurance_certificate_url="b", identity_document_url="c",
        )
        assert request.business_years_operating == 1
        assert request.business_address_proof_url is None

    def test_review_must_decide(self):
        with pytest.raises(ValidationError):
            VerificationReview(role="vendor", status="pending")

        review = VerificationReview(role="vendor", status="rejected", notes="Blurry scan")
        assert review.status == VerificationStatus.REJECTED


# =============================================================================
# Listings
# =============================================================================

class TestListingModels:

    BASE = {
        "title": "Canal Basin",
        "description": "Cobbled yard",
        "address": "2 Lock Lane",
        "city": "Manchester",
        "latitude": 53.48,
        "longitude": -2.24,
        "hourly_rate": 20,
        "daily_rate": 120,
    }

    def test_defaults(self):
        listing = ListingCreate(**self.BASE)

        assert listing.status.value == "active"
        assert listing.min_booking_hours == 1
        assert listing.amenities == AmenitiesBase()
        assert listing.amenities.electricity_type == ElectricityType.NONE

    def test_max_hours_below_min(self):
        with pytest.raises(ValidationError, match="max_booking_hours"):
            ListingCreate(**self.BASE, min_booking_hours=4, max_booking_hours=2)

    @pytest.mark.parametrize("field,value", [
        ("latitude", 91),
        ("longitude", -181),
        ("hourly_rate", -1),
        ("title", ""),
    ])
    def test_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            ListingCreate(**{**self.BASE, field: value})

    def test_search_location_needs_all_three(self):
        assert not ListingSearchFilters(latitude=1, longitude=2).has_location
        assert ListingSearchFilters(latitude=1, longitude=2, radius_km=5).has_location

    def test_search_limit_bounds(self):
        with pytest.raises(ValidationError):
            ListingSearchFilters(limit=0)
        with pytest.raises(ValidationError):
            ListingSearchFilters(limit=101)


# =============================================================================
# Bookings & Payments
# =============================================================================

class TestBookingModels:

    def test_times_trimmed_to_hhmm(self):
        booking = BookingCreate(
            listing_id=uuid4(), booking_date="2030-07-06", start_time="09:00:00", end_time="17:30",
        )

        assert booking.start_time == "09:00"
        assert booking.end_time == "17:30"
        assert booking.booking_date == date(2030, 7, 6)

    @pytest.mark.parametrize("value", ["9:00", "25:00", "12:60", "noon", "24:01", "24:59", "24:00:30"])
    def test_bad_times(self, value):
        with pytest.raises(ValidationError):
            BookingCreate(listing_id=uuid4(), booking_date="2030-07-06", start_time=value, end_time="18:00")

    def test_midnight_end_accepted(self):
        booking = BookingCreate(
            listing_id=uuid4(), booking_date="2030-07-06", start_time="23:00", end_time="24:00",
        )
        assert booking.end_time == "24:00"

    def test_row_defaults(self):
        booking = Booking(
            id=uuid4(), listing_id=uuid4(), vendor_id=uuid4(), booking_date="2030-07-06",
            start_time="11:00:00", end_time="15:00:00", total_hours=4, total_cost=100,
        )

        assert booking.status.value == "pending"
        assert booking.payment_status.value == "pending"
        assert booking.start_time == "11:00"

    def test_payment_amount_positive(self):
        with pytest.raises(ValidationError):
            CreatePaymentIntentRequest(booking_id=uuid4(), amount=0)

    def test_notification_round_trips_through_json(self):
        notification = Notification(to="sam@example.com", type="booking_created", data={"venue_name": "X"})
        assert Notification(**notification.model_dump(mode="json")) == notification


# =============================================================================
# Time Helpers
# =============================================================================

class TestTimeHelpers:

    def test_hours_between(self):
        assert hours_between("09:00", "17:30") == 8.5
        assert hours_between("15:00", "11:00") < 0

    def test_touching_windows_do_not_overlap(self):
        assert not times_overlap("09:00", "11:00", "11:00", "13:00")
        assert times_overlap("09:00", "11:30", "11:00", "13:00")
