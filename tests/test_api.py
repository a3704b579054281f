# =============================================================================
# tests/test_api.py - HTTP Surface
# =============================================================================
# Exercises routing, route gating, error mapping and the main
# book -> confirm -> pay flow through FastAPI's TestClient.
#
# Run with: pytest tests/test_api.py -v
# =============================================================================

import inspect
from types import SimpleNamespace
from uuid import UUID

import pytest

from app.auth.dependencies import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, require_role
from app.routers import bookings, payments
from app.middleware import is_protected
from core.models.user import UserRole
from tests.conftest import auth_headers, make_token, seed_booking, seed_listing, seed_user


@pytest.fixture
def owner(fake_db):
    return seed_user(fake_db, "venue_owner", email="olive@example.com")


@pytest.fixture
def vendor(fake_db):
    return seed_user(fake_db, "vendor", email="vic@example.com")


@pytest.fixture
def listing(fake_db, owner):
    return seed_listing(fake_db, owner["id"], title="Canal Basin", amenities={"running_water": True})


# =============================================================================
# Basics
# =============================================================================

class TestBasics:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["name"] == "FoodTruck Hub API"

    def test_health(self, client):
        assert client.get("/api/v1/health").json()["status"] == "healthy"
        assert client.get("/api/v1/health/live").json()["status"] == "alive"

    def test_readiness(self, client, fake_db):
        body = client.get("/api/v1/health/ready").json()
        assert body["status"] == "ready"

        fake_db.fail_tables.add("users")
        body = client.get("/api/v1/health/ready").json()
        assert body["status"] == "degraded"
        assert body["checks"]["database"].startswith("unhealthy")


# =============================================================================
# Route Gating
# =============================================================================

class TestRouteGating:

    @pytest.mark.parametrize("method,path,expected", [
        ("GET", "/api/v1/dashboard", True),
        ("GET", "/api/v1/profile/", True),
        ("POST", "/api/v1/admin/verifications/x", True),
        ("POST", "/api/v1/listings", True),
        ("GET", "/api/v1/listings", False),
        ("GET", "/api/v1/profiles", False),
        ("GET", "/api/v1/health", False),
    ])
    def test_is_protected(self, method, path, expected):
        assert is_protected(method, path) is expected

    def test_protected_without_credential(self, client):
        response = client.get("/api/v1/dashboard")

        assert response.status_code == 401
        assert response.json()["code"] == "AUTH_REQUIRED"

    def test_public_search_needs_no_credential(self, client, listing):
        assert client.get("/api/v1/listings").status_code == 200

    def test_create_listing_needs_credential(self, client):
        assert client.post("/api/v1/listings", json={}).status_code == 401

    def test_invalid_token_passes_gate_but_fails_dependency(self, client):
        response = client.get("/api/v1/dashboard", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.json()["detail"].startswith("Invalid token")

    def test_cookie_counts_as_credential(self, client, vendor):
        client.cookies.set(ACCESS_TOKEN_COOKIE, make_token(vendor["id"], vendor["email"], "vendor"))
        assert client.get("/api/v1/dashboard/vendor/stats").status_code == 200

    def test_signed_in_user_is_sent_away_from_signin(self, client, vendor):
        response = client.post(
            "/api/v1/auth/signin",
            json={"email": vendor["email"], "password": "whatever"},
            headers=auth_headers(vendor),
        )

        assert response.status_code == 303
        assert response.json() == {"redirect_to": "/"}

    def test_wrong_role(self, client, owner, listing):
        response = client.post(
            "/api/v1/bookings",
            json={"listing_id": listing["id"], "booking_date": "2030-07-06",
                  "start_time": "11:00", "end_time": "12:00"},
            headers=auth_headers(owner),
        )
        assert response.status_code == 403
        assert response.json()["code"] == "ROLE_REQUIRED"

    def test_token_metadata_cannot_grant_role(self, client, fake_db, vendor):
        token = make_token(vendor["id"], vendor["email"], "venue_owner")

        response = client.post(
            "/api/v1/listings",
            json={"title": "Yard", "description": "x", "address": "1 St", "city": "Leeds",
                  "latitude": 53.8, "longitude": -1.55, "hourly_rate": 10, "daily_rate": 50},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 403
        assert fake_db.rows("listings") == []

    def test_admin_only(self, client, vendor):
        response = client.get("/api/v1/admin/verifications", headers=auth_headers(vendor))
        assert response.status_code == 403


# =============================================================================
# Auth Routes
# =============================================================================

class TestAuthRoutes:

    def test_signin_sets_cookies_and_redirect(self, client, fake_db, owner):
        fake_db.auth.sign_in_with_password.return_value = SimpleNamespace(
            session=SimpleNamespace(access_token="access-1", refresh_token="refresh-1", expires_in=3600),
            user=SimpleNamespace(id=UUID(owner["id"]), email=owner["email"],
                                 user_metadata={"role": "venue_owner"}),
        )

        response = client.post("/api/v1/auth/signin", json={"email": owner["email"], "password": "secret1"})

        assert response.status_code == 200
        body = response.json()
        assert body["redirect_to"] == "/dashboard"
        assert body["user"]["id"] == owner["id"]
        assert body["session"]["access_token"] == "access-1"
        assert response.cookies[ACCESS_TOKEN_COOKIE] == "access-1"
        assert response.cookies[REFRESH_TOKEN_COOKIE] == "refresh-1"

    def test_refresh_without_token(self, client):
        response = client.post("/api/v1/auth/refresh")
        assert response.status_code == 401
        assert response.json()["code"] == "AUTH_REQUIRED"

    def test_me(self, client, vendor):
        response = client.get("/api/v1/auth/me", headers=auth_headers(vendor))
        assert response.status_code == 200
        assert response.json()["email"] == vendor["email"]
        assert response.json()["is_placeholder"] is False


# =============================================================================
# Listings
# =============================================================================

class TestListingRoutes:

    def test_search_by_location(self, client, listing):
        response = client.get("/api/v1/listings", params={"location": "Manchester", "amenities": ["running_water"]})

        body = response.json()
        assert response.status_code == 200
        assert body["count"] == 1
        assert body["listings"][0]["id"] == listing["id"]
        assert body["listings"][0]["distance"] == 0

    def test_unknown_listing(self, client, fake_db):
        response = client.get("/api/v1/listings/0b9a4c7e-0000-4000-8000-000000000000")
        assert response.status_code == 404

    def test_owner_creates_listing(self, client, owner):
        response = client.post(
            "/api/v1/listings",
            json={
                "title": "Market Square",
                "description": "Paved square",
                "address": "1 Market St",
                "city": "Leeds",
                "latitude": 53.8,
                "longitude": -1.55,
                "hourly_rate": 30,
                "daily_rate": 200,
                "amenities": {"wifi": True},
            },
            headers=auth_headers(owner),
        )

        assert response.status_code == 201
        assert response.json()["amenities"]["wifi"] is True

    def test_invalid_listing_payload(self, client, owner):
        response = client.post(
            "/api/v1/listings",
            json={"title": "", "min_booking_hours": 4, "max_booking_hours": 2},
            headers=auth_headers(owner),
        )
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_availability(self, client, fake_db, vendor, listing):
        seed_booking(fake_db, listing["id"], vendor["id"], start_time="11:00", end_time="13:00")

        response = client.get(
            f"/api/v1/listings/{listing['id']}/availability",
            params={"date": "2030-07-06", "duration_hours": 2},
        )

        slots = {s["start"]: s["available"] for s in response.json()["slots"]}
        assert slots["09:00"] is True
        assert slots["10:00"] is False
        assert slots["12:00"] is False
        assert slots["13:00"] is True

    def test_backend_failure_is_503(self, client, fake_db):
        fake_db.fail_tables.add("listings")
        response = client.get("/api/v1/listings")
        assert response.status_code == 503
        assert response.json()["code"] == "SEARCH_LISTINGS_FAILED"


# =============================================================================
# Booking Flow
# =============================================================================

class TestBookingFlow:

    def test_book_confirm_pay(self, client, fake_db, owner, vendor, listing, outbox):
        response = client.post(
            "/api/v1/bookings",
            json={"listing_id": listing["id"], "booking_date": "2030-07-06",
                  "start_time": "11:00", "end_time": "15:00", "special_requests": "Need water"},
            headers=auth_headers(vendor),
        )
        assert response.status_code == 201
        booking = response.json()
        assert booking["total_cost"] == 100
        assert booking["status"] == "pending"

        clash = client.post(
            "/api/v1/bookings",
            json={"listing_id": listing["id"], "booking_date": "2030-07-06",
                  "start_time": "14:00", "end_time": "16:00"},
            headers=auth_headers(vendor),
        )
        assert clash.status_code == 409
        assert clash.json()["code"] == "SLOT_UNAVAILABLE"

        confirmed = client.post(
            f"/api/v1/bookings/{booking['id']}/confirm",
            json={"notes": "Use the side gate"},
            headers=auth_headers(owner),
        )
        assert confirmed.json()["status"] == "confirmed"

        intent = client.post(
            "/api/v1/payments/intents",
            json={"booking_id": booking["id"], "amount": 10000},
            headers=auth_headers(vendor),
        ).json()
        paid = client.post(
            f"/api/v1/payments/intents/{intent['id']}/confirm",
            json={"card_number": "4242 4242 4242 4242"},
            headers=auth_headers(vendor),
        )
        assert paid.json()["status"] == "succeeded"

        stored = client.get(f"/api/v1/bookings/{booking['id']}", headers=auth_headers(owner)).json()
        assert stored["payment_status"] == "paid"

        payment = client.get(f"/api/v1/payments/bookings/{booking['id']}", headers=auth_headers(vendor)).json()
        assert payment["platform_fee"] == 10.0

        subjects = [e.subject for e in outbox.get_sent_emails()]
        assert "Booking Confirmed: Canal Basin" in subjects
        assert "Payment Received: Canal Basin" in subjects

    def test_vendor_lists_own_bookings(self, client, fake_db, vendor, listing):
        seed_booking(fake_db, listing["id"], vendor["id"], status="confirmed")
        seed_booking(fake_db, listing["id"], vendor["id"], status="cancelled", start_time="16:00", end_time="18:00")

        response = client.get("/api/v1/bookings/mine", params={"status": "confirmed"}, headers=auth_headers(vendor))

        assert [b["status"] for b in response.json()] == ["confirmed"]

    def test_stranger_cannot_read_booking(self, client, fake_db, vendor, listing):
        booking = seed_booking(fake_db, listing["id"], vendor["id"])
        stranger = seed_user(fake_db, "vendor")

        response = client.get(f"/api/v1/bookings/{booking['id']}", headers=auth_headers(stranger))
        assert response.status_code == 403

    def test_owner_dashboard(self, client, fake_db, owner, vendor, listing):
        seed_booking(fake_db, listing["id"], vendor["id"], status="completed", total_cost=120)

        body = client.get("/api/v1/dashboard", headers=auth_headers(owner)).json()

        assert body["role"] == "venue_owner"
        assert body["stats"]["total_revenue"] == 120
        assert body["recent_venues"][0]["title"] == "Canal Basin"

    def _booking_with_intent(self, client, fake_db, vendor, listing):
        booking = seed_booking(fake_db, listing["id"], vendor["id"], total_cost=500.0)
        intent = client.post(
            "/api/v1/payments/intents", json={"booking_id": booking["id"]}, headers=auth_headers(vendor),
        ).json()
        return booking, intent

    def test_underpayment_is_rejected(self, client, fake_db, vendor, listing):
        booking = seed_booking(fake_db, listing["id"], vendor["id"], total_cost=500.0)

        response = client.post(
            "/api/v1/payments/intents",
            json={"booking_id": booking["id"], "amount": 1},
            headers=auth_headers(vendor),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PAYMENT"

    def test_other_vendor_cannot_confirm(self, client, fake_db, vendor, listing):
        booking, intent = self._booking_with_intent(client, fake_db, vendor, listing)
        assert intent["amount"] == 50000
        stranger = seed_user(fake_db, "vendor")

        response = client.post(
            f"/api/v1/payments/intents/{intent['id']}/confirm",
            json={"card_number": "4000000000000002"},
            headers=auth_headers(stranger),
        )

        assert response.status_code == 403
        assert fake_db.get("bookings", id=booking["id"])["payment_status"] == "pending"

    def test_other_owner_cannot_refund(self, client, fake_db, vendor, listing):
        booking, intent = self._booking_with_intent(client, fake_db, vendor, listing)
        client.post(
            f"/api/v1/payments/intents/{intent['id']}/confirm",
            json={"card_number": "4242424242424242"},
            headers=auth_headers(vendor),
        )
        other_owner = seed_user(fake_db, "venue_owner")

        response = client.post(
            f"/api/v1/payments/intents/{intent['id']}/refund", json={}, headers=auth_headers(other_owner),
        )

        assert response.status_code == 403
        assert fake_db.get("bookings", id=booking["id"])["payment_status"] == "paid"


# =============================================================================
# Handler Execution
# =============================================================================

class TestBlockingHandlers:
    """Handlers that wait on the gateway, Supabase or the mail sender stay sync."""

    @pytest.mark.parametrize("handler", [
        payments.create_payment_intent,
        payments.confirm_payment,
        payments.create_refund,
        bookings.create_booking,
        bookings.confirm_booking,
        bookings.cancel_booking,
        require_role(UserRole.VENDOR),
    ])
    def test_runs_in_threadpool(self, handler):
        assert not inspect.iscoroutinefunction(handler)
