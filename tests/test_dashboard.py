# =============================================================================
# tests/test_dashboard.py - Dashboard Aggregates
# =============================================================================
# Run with: pytest tests/test_dashboard.py -v
# =============================================================================

from datetime import date

import pytest

from core.models.user import UserRole
from core.services.dashboard_service import DashboardService
from tests.conftest import seed_booking, seed_listing, seed_user

TODAY = date(2030, 7, 15)


@pytest.fixture
def owner_world(fake_db):
    owner = seed_user(fake_db, "venue_owner")
    vendor = seed_user(fake_db, "vendor")
    canal = seed_listing(fake_db, owner["id"], title="Canal Basin", city="Manchester")
    market = seed_listing(fake_db, owner["id"], title="Market Square", city="Leeds")

    seed_booking(fake_db, canal["id"], vendor["id"], status="completed", total_cost=120,
                 booking_date="2030-07-02")
    seed_booking(fake_db, canal["id"], vendor["id"], status="completed", total_cost=80,
                 booking_date="2030-06-20")
    seed_booking(fake_db, market["id"], vendor["id"], status="pending", total_cost=60,
                 booking_date="2030-07-20")
    seed_booking(fake_db, market["id"], vendor["id"], status="confirmed", total_cost=40,
                 booking_date="2030-07-21")
    return owner, vendor, canal, market


class TestOwnerDashboard:

    def test_stats(self, owner_world):
        owner, _, _, _ = owner_world

        stats = DashboardService.get_owner_stats(owner["id"], today=TODAY)

        assert stats.total_venues == 2
        assert stats.total_bookings == 4
        assert stats.pending_bookings == 1
        assert stats.confirmed_bookings == 1
        assert stats.total_revenue == 200
        assert stats.this_month_revenue == 120
        assert stats.avg_booking_value == 50

    def test_owner_without_listings(self, fake_db):
        owner = seed_user(fake_db, "venue_owner")

        stats = DashboardService.get_owner_stats(owner["id"], today=TODAY)

        assert stats.total_venues == 0
        assert stats.avg_booking_value == 0

    def test_recent_venues(self, owner_world):
        owner, _, canal, market = owner_world

        venues = DashboardService.get_recent_venues(owner["id"])

        assert [str(v.id) for v in venues] == [market["id"], canal["id"]]
        assert venues[0].bookings_count == 2
        assert venues[0].last_booking == date(2030, 7, 21)
        assert venues[1].city == "Manchester"


class TestVendorDashboard:

    def test_stats(self, fake_db, owner_world):
        _, vendor, canal, _ = owner_world
        seed_booking(fake_db, canal["id"], vendor["id"], status="confirmed", payment_status="paid",
                     total_cost=150, booking_date="2030-07-01")
        fake_db.add_row("vendor_profiles", {
            "user_id": vendor["id"], "food_truck_name": "Taco Loco", "verification_status": "verified",
        })

        stats = DashboardService.get_vendor_stats(vendor["id"], today=TODAY)

        assert stats.total_bookings == 5
        assert stats.upcoming_bookings == 2
        assert stats.total_spent == 150
        assert stats.completed_bookings == 2
        assert stats.verification_status.value == "verified"

    def test_vendor_without_profile(self, fake_db):
        vendor = seed_user(fake_db, "vendor")
        assert DashboardService.get_vendor_stats(vendor["id"]).verification_status is None

    def test_dashboard_by_role(self, owner_world):
        owner, vendor, _, _ = owner_world

        owner_view = DashboardService.get_dashboard(owner["id"], UserRole.VENUE_OWNER)
        vendor_view = DashboardService.get_dashboard(vendor["id"], UserRole.VENDOR)

        assert owner_view["role"] == "venue_owner" and len(owner_view["recent_venues"]) == 2
        assert vendor_view["role"] == "vendor"
        assert {b["status"] for b in vendor_view["upcoming_bookings"]} == {"pending", "confirmed"}
