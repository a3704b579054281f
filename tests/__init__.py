# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the FoodTruck Hub API:
# - test_models.py: Unit tests for Pydantic model validation
# - test_*_service.py: Service-layer tests against an in-memory Supabase fake
# - test_auth.py / test_profiles.py / test_dashboard.py: Accounts & roles
# - test_api.py / test_websocket.py: HTTP and realtime surface
#
# Run tests with: pytest
# =============================================================================
