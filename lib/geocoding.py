# =============================================================================
# lib/geocoding.py - Location Search Helpers
# =============================================================================
# Turns a free-text place name into coordinates and measures distances.
#
# Lookups go to the Nominatim (OpenStreetMap) search API, which needs no key
# but does require an identifying User-Agent. Common UK cities are resolved
# from a local table first so the usual searches never leave the process.
#
# Usage:
#   from lib.geocoding import geocode_location, filter_by_distance
#   result = geocode_location("Camden Market")
#   nearby = filter_by_distance(listings, result.coordinates, radius_km=5)
# =============================================================================

import logging
import math
from typing import Any

import httpx
from pydantic import BaseModel

from app.config import settings
from app.exceptions import GeocodingError

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371


class Coordinates(BaseModel):
    lat: float
    lng: float


class GeocodingResult(BaseModel):
    """Best match for a geocoded place name."""

    coordinates: Coordinates
    formatted_address: str
    place_name: str
    country: str = "UK"


POPULAR_UK_CITIES: dict[str, Coordinates] = {
    "London": Coordinates(lat=51.5074, lng=-0.1278),
    "Manchester": Coordinates(lat=53.4808, lng=-2.2426),
    "Birmingham": Coordinates(lat=52.4862, lng=-1.8904),
    "Leeds": Coordinates(lat=53.8008, lng=-1.5491),
    "Glasgow": Coordinates(lat=55.8642, lng=-4.2518),
    "Sheffield": Coordinates(lat=53.3811, lng=-1.4701),
    "Bradford": Coordinates(lat=53.7960, lng=-1.7594),
    "Liverpool": Coordinates(lat=53.4084, lng=-2.9916),
    "Edinburgh": Coordinates(lat=55.9533, lng=-3.1883),
    "Bristol": Coordinates(lat=51.4545, lng=-2.5879),
    "Cardiff": Coordinates(lat=51.4816, lng=-3.1791),
    "Leicester": Coordinates(lat=52.6369, lng=-1.1398),
    "Wakefield": Coordinates(lat=53.6833, lng=-1.5000),
    "Coventry": Coordinates(lat=52.4068, lng=-1.5197),
    "Nottingham": Coordinates(lat=52.9548, lng=-1.1581),
    "Preston": Coordinates(lat=53.7632, lng=-2.7031),
    "Newcastle": Coordinates(lat=54.9783, lng=-1.6178),
    "Brighton": Coordinates(lat=50.8225, lng=-0.1372),
    "Aberdeen": Coordinates(lat=57.1497, lng=-2.0943),
    "Plymouth": Coordinates(lat=50.3755, lng=-4.1427),
}


def get_popular_city_coordinates(city_name: str) -> Coordinates | None:
    """Case-insensitive lookup in the popular cities table."""
    wanted = city_name.strip().lower()
    for name, coordinates in POPULAR_UK_CITIES.items():
        if name.lower() == wanted:
            return coordinates
    return None


def geocode_location(location: str, client: httpx.Client | None = None) -> GeocodingResult | None:
    """
    Geocode a place name using Nominatim.

    Args:
        location: Free text such as "Leeds" or "SW1A 1AA"
        client: Optional httpx client (tests pass one with a mock transport)

    Returns:
        GeocodingResult for the best match, or None if nothing matched

    Raises:
        GeocodingError: If the service can't be reached or errors
    """
    query = location.strip()
    if not query:
        return None

    params = {
        "format": "json",
        "q": query,
        "limit": 1,
        "countrycodes": settings.GEOCODING_COUNTRY_CODES,
        "addressdetails": 1,
    }
    headers = {"User-Agent": settings.GEOCODING_USER_AGENT}

    try:
        if client is None:
            response = httpx.get(settings.GEOCODING_URL, params=params, headers=headers, timeout=10)
        else:
            response = client.get(settings.GEOCODING_URL, params=params, headers=headers)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPError as e:
        logger.error(f"Geocoding request failed for '{query}': {e}")
        raise GeocodingError(query, str(e))

    if not data:
        logger.info(f"No geocoding match for '{query}'")
        return None

    best = data[0]
    return GeocodingResult(
        coordinates=Coordinates(lat=float(best["lat"]), lng=float(best["lon"])),
        formatted_address=best.get("display_name", query),
        place_name=best.get("name") or query,
        country=(best.get("address") or {}).get("country", "UK"),
    )


def resolve_location(location: str) -> Coordinates | None:
    """Popular-city table first, then the geocoder."""
    coordinates = get_popular_city_coordinates(location)
    if coordinates:
        return coordinates

    result = geocode_location(location)
    return result.coordinates if result else None


def calculate_distance(a: Coordinates, b: Coordinates) -> float:
    """Great-circle (haversine) distance in km, rounded to 0.1."""
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    distance = EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return round(distance, 1)


def filter_by_distance(
    venues: list[dict[str, Any]],
    origin: Coordinates,
    radius_km: float,
) -> list[dict[str, Any]]:
    """
    Keep venues within radius_km of origin, annotated with `distance`.

    Venues without coordinates are dropped. Input dicts are not modified.
    """
    nearby = []
    for venue in venues:
        if venue.get("latitude") is None or venue.get("longitude") is None:
            continue

        distance = calculate_distance(
            origin,
            Coordinates(lat=venue["latitude"], lng=venue["longitude"]),
        )
        if distance <= radius_km:
            nearby.append({**venue, "distance": distance})
    return nearby
