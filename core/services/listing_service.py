# =============================================================================
# core/services/listing_service.py - Listing Business Logic
# =============================================================================
# Handles listing CRUD, search and image management.
#
# A listing's amenities live in their own table (one row per listing) and
# are attached to every listing this service returns. Owner rows are
# attached on single-listing reads.
#
# Search:
#   1. Database filters: status=active, daily_rate range, lat/lng bounding
#      box of radius_km / 111 degrees
#   2. In-process filters: amenity keys, then exact haversine distance
#   3. Pagination is applied after the in-process filters
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.exceptions import ListingNotFoundError, LocationNotFoundError, OwnershipError
from core.models.listing import (
    AMENITY_FILTERS,
    ListingCreate,
    ListingSearchFilters,
    ListingStatus,
    ListingUpdate,
)
from core.services.storage_service import LISTING_IMAGES_BUCKET, StorageService
from lib.geocoding import Coordinates, filter_by_distance, resolve_location
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import normalize_uuid, utc_now_iso

logger = logging.getLogger(__name__)

KM_PER_DEGREE = 111


def matches_amenities(amenities: dict[str, Any] | None, keys: list[str]) -> bool:
    """
    True if the amenities row satisfies every requested filter key.

    A listing without amenities, or an unknown key, never matches.
    """
    if not keys:
        return True
    if not amenities:
        return False
    return all(key in AMENITY_FILTERS and AMENITY_FILTERS[key](amenities) for key in keys)


class ListingService:
    """Service for listing operations."""

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _attach_amenities(listings: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Add an `amenities` key to each listing (None if it has no row)."""
        if not listings:
            return listings

        client = SupabaseClient.get_client()
        ids = [listing["id"] for listing in listings]

        try:
            response = (
                client.table("amenities")
                .select("*")
                .in_("listing_id", ids)
                .execute()
            )
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch amenities: {e}",
                code="FETCH_AMENITIES_FAILED",
            )

        by_listing = {str(row["listing_id"]): row for row in response.data or []}
        return [{**listing, "amenities": by_listing.get(str(listing["id"]))} for listing in listings]

    @staticmethod
    def get_owned_listing(listing_id: UUID | str, owner_id: UUID | str) -> dict[str, Any]:
        """
        Fetch a listing and check the caller owns it.

        Raises:
            ListingNotFoundError: If the listing doesn't exist
            OwnershipError: If it belongs to someone else
        """
        listing_id_str = normalize_uuid(listing_id)
        listing = SupabaseClient.fetch_listing(listing_id_str)
        if not listing:
            raise ListingNotFoundError(listing_id_str)
        if str(listing.get("owner_id")) != normalize_uuid(owner_id):
            raise OwnershipError("listing", listing_id_str)
        return listing

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    @staticmethod
    def create_listing(owner_id: UUID | str, listing: ListingCreate) -> dict[str, Any]:
        """
        Insert a listing, then its amenities row.

        Returns:
            The stored listing with `amenities`
        """
        data = listing.model_dump(mode="json", exclude={"amenities"})
        data["owner_id"] = normalize_uuid(owner_id)
        data["images"] = []

        row = SupabaseClient.insert_row("listings", data)
        amenities = SupabaseClient.insert_row(
            "amenities",
            {"listing_id": row["id"], **listing.amenities.model_dump(mode="json")},
        )

        logger.info(f"Created listing {row['id']} for owner {data['owner_id']}")
        return {**row, "amenities": amenities}

    @staticmethod
    def get_listing_by_id(listing_id: UUID | str) -> dict[str, Any]:
        """
        Listing with amenities and owner.

        Raises:
            ListingNotFoundError: If the listing doesn't exist
        """
        listing_id_str = normalize_uuid(listing_id)
        listing = SupabaseClient.fetch_listing(listing_id_str)
        if not listing:
            raise ListingNotFoundError(listing_id_str)

        listing["amenities"] = SupabaseClient.fetch_amenities(listing_id_str)
        listing["owner"] = SupabaseClient.fetch_user(listing["owner_id"])
        return listing

    @staticmethod
    def get_listings(
        owner_id: UUID | str | None = None,
        status: ListingStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Listings, newest first, optionally for one owner and/or status."""
        client = SupabaseClient.get_client()

        try:
            query = client.table("listings").select("*")
            if owner_id:
                query = query.eq("owner_id", normalize_uuid(owner_id))
            if status:
                query = query.eq("status", status.value)
            response = (
                query.order("created_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to list listings: {e}",
                code="LIST_LISTINGS_FAILED",
            )

        return ListingService._attach_amenities(response.data or [])

    @staticmethod
    def search_listings(filters: ListingSearchFilters) -> list[dict[str, Any]]:
        """
        Search active listings.

        When latitude, longitude and radius_km are all given, results are
        limited to that circle and each carries a `distance` in km.
        """
        client = SupabaseClient.get_client()

        try:
            query = (
                client.table("listings")
                .select("*")
                .eq("status", ListingStatus.ACTIVE.value)
            )
            if filters.min_price is not None:
                query = query.gte("daily_rate", filters.min_price)
            if filters.max_price is not None:
                query = query.lte("daily_rate", filters.max_price)
            if filters.has_location:
                delta = filters.radius_km / KM_PER_DEGREE
                query = (
                    query.gte("latitude", filters.latitude - delta)
                    .lte("latitude", filters.latitude + delta)
                    .gte("longitude", filters.longitude - delta)
                    .lte("longitude", filters.longitude + delta)
                )
            response = query.order("created_at", desc=True).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to search listings: {e}",
                code="SEARCH_LISTINGS_FAILED",
            )

        listings = ListingService._attach_amenities(response.data or [])

        if filters.amenities:
            listings = [l for l in listings if matches_amenities(l.get("amenities"), filters.amenities)]

        if filters.has_location:
            listings = filter_by_distance(
                listings,
                Coordinates(lat=filters.latitude, lng=filters.longitude),
                filters.radius_km,
            )

        logger.debug(f"Listing search matched {len(listings)} listings")
        return listings[filters.offset:filters.offset + filters.limit]

    @staticmethod
    def search_by_location(
        location: str,
        filters: ListingSearchFilters,
    ) -> list[dict[str, Any]]:
        """
        Search around a place name (popular city table, then the geocoder).

        Uses filters.radius_km, defaulting to 25 km.

        Raises:
            LocationNotFoundError: If the place can't be resolved
        """
        coordinates = resolve_location(location)
        if coordinates is None:
            raise LocationNotFoundError(location)

        located = filters.model_copy(update={
            "latitude": coordinates.lat,
            "longitude": coordinates.lng,
            "radius_km": filters.radius_km or 25,
        })
        return ListingService.search_listings(located)

    @staticmethod
    def update_listing(
        listing_id: UUID | str,
        owner_id: UUID | str,
        update: ListingUpdate,
    ) -> dict[str, Any]:
        """
        Update listing fields and, optionally, its amenities.

        Raises:
            ListingNotFoundError / OwnershipError
        """
        listing_id_str = normalize_uuid(listing_id)
        ListingService.get_owned_listing(listing_id_str, owner_id)

        data = update.model_dump(mode="json", exclude_unset=True, exclude={"amenities"})
        if data:
            data["updated_at"] = utc_now_iso()
            SupabaseClient.update_rows("listings", "id", listing_id_str, data)

        if update.amenities is not None:
            amenities = update.amenities.model_dump(mode="json", exclude_unset=True)
            if amenities:
                amenities["updated_at"] = utc_now_iso()
                SupabaseClient.update_rows("amenities", "listing_id", listing_id_str, amenities)

        logger.info(f"Updated listing {listing_id_str}")
        return ListingService.get_listing_by_id(listing_id_str)

    @staticmethod
    def delete_listing(listing_id: UUID | str, owner_id: UUID | str) -> None:
        """
        Delete a listing, its amenities and its stored images.

        Raises:
            ListingNotFoundError / OwnershipError
        """
        listing_id_str = normalize_uuid(listing_id)
        listing = ListingService.get_owned_listing(listing_id_str, owner_id)

        StorageService.delete_files(
            LISTING_IMAGES_BUCKET,
            [StorageService.path_from_public_url(url) for url in listing.get("images") or []],
        )

        client = SupabaseClient.get_client()

        try:
            client.table("amenities").delete().eq("listing_id", listing_id_str).execute()
            client.table("listings").delete().eq("id", listing_id_str).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to delete listing: {e}",
                code="DELETE_LISTING_FAILED",
                details={"listing_id": listing_id_str},
            )

        logger.info(f"Deleted listing {listing_id_str}")

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    @staticmethod
    def upload_listing_images(
        listing_id: UUID | str,
        owner_id: UUID | str,
        files: list[tuple[str, bytes]],
    ) -> list[str]:
        """
        Upload images and append their URLs to the listing.

        Returns:
            The listing's full image list after the upload
        """
        listing_id_str = normalize_uuid(listing_id)
        listing = ListingService.get_owned_listing(listing_id_str, owner_id)

        urls = StorageService.upload_listing_images(listing_id_str, files)
        images = list(listing.get("images") or []) + urls

        SupabaseClient.update_rows(
            "listings", "id", listing_id_str,
            {"images": images, "updated_at": utc_now_iso()},
        )
        logger.info(f"Added {len(urls)} image(s) to listing {listing_id_str}")
        return images

    @staticmethod
    def delete_listing_images(
        listing_id: UUID | str,
        owner_id: UUID | str,
        urls: list[str],
    ) -> list[str]:
        """
        Remove images from storage and from the listing.

        URLs not attached to the listing are ignored.

        Returns:
            The listing's remaining image list
        """
        listing_id_str = normalize_uuid(listing_id)
        listing = ListingService.get_owned_listing(listing_id_str, owner_id)

        current = list(listing.get("images") or [])
        to_remove = [url for url in urls if url in current]
        if not to_remove:
            return current

        StorageService.delete_files(
            LISTING_IMAGES_BUCKET,
            [StorageService.path_from_public_url(url) for url in to_remove],
        )

        remaining = [url for url in current if url not in to_remove]
        SupabaseClient.update_rows(
            "listings", "id", listing_id_str,
            {"images": remaining, "updated_at": utc_now_iso()},
        )
        logger.info(f"Removed {len(to_remove)} image(s) from listing {listing_id_str}")
        return remaining
