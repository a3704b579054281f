# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the marketplace business logic:
# - models/: Pydantic schemas for data validation
# - services/: Listings, bookings, payments, notifications, auth sync
#
# Code in this package should NOT import from FastAPI.
# Services raise app.exceptions errors; routers turn them into responses.
# =============================================================================
