# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Typed Supabase wrapper for database operations
# - geocoding.py: Place-name lookup and distance helpers
# - utils.py: Shared utilities (UUID normalization, time-of-day helpers)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.geocoding import (
    Coordinates,
    GeocodingResult,
    calculate_distance,
    filter_by_distance,
    geocode_location,
    get_popular_city_coordinates,
    resolve_location,
)
from lib.utils import format_hhmm, hours_between, normalize_uuid, times_overlap, utc_now_iso

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Geocoding
    "Coordinates",
    "GeocodingResult",
    "calculate_distance",
    "filter_by_distance",
    "geocode_location",
    "get_popular_city_coordinates",
    "resolve_location",
    # Utils
    "format_hhmm",
    "hours_between",
    "normalize_uuid",
    "times_overlap",
    "utc_now_iso",
]
