# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - profiles.py: Current user's account, role profile and verification
# - listings.py: Listing search, CRUD, images and availability
# - bookings.py: Booking creation and status flow
# - payments.py: Mock payment intents and payout accounts
# - dashboard.py: Role dashboards
# - admin.py: Verification review
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import profiles
from . import listings
from . import bookings
from . import payments
from . import dashboard
from . import admin

__all__ = [
    "health",
    "profiles",
    "listings",
    "bookings",
    "payments",
    "dashboard",
    "admin",
]
