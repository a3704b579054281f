# =============================================================================
# app/ - FastAPI Application Package
# =============================================================================
# This package contains the FastAPI web application:
# - main.py: App entry point, middleware setup, error handlers
# - config.py: Environment variable loading and settings
# - middleware.py: Route gating on session credentials
# - auth/: JWT verification, role dependencies and auth endpoints
# - routers/: API endpoint definitions organized by feature
# - websocket/: Per-user realtime channel
#
# The app layer is thin - it handles HTTP concerns and delegates
# business logic to the core/ package.
# =============================================================================
