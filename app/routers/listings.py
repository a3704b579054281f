# =============================================================================
# app/routers/listings.py - Listing Endpoints
# =============================================================================
# Public search and detail; writes are limited to venue owners, who may
# only change their own listings.
# =============================================================================

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Path, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from app.auth import AuthUser, require_venue_owner
from core.models.booking import AvailabilityResponse
from core.models.listing import (
    ListingCreate,
    ListingSearchFilters,
    ListingStatus,
    ListingUpdate,
    ListingWithAmenities,
)
from core.services.booking_service import BookingService
from core.services.listing_service import ListingService

router = APIRouter()

ListingId = Annotated[UUID, Path(description="Listing UUID")]


# =============================================================================
# Request/Response Models
# =============================================================================

class ListingSearchResponse(BaseModel):
    listings: list[ListingWithAmenities]
    count: int
    limit: int
    offset: int


class ImageDeleteRequest(BaseModel):
    urls: list[str] = Field(..., min_length=1)


class ImagesResponse(BaseModel):
    listing_id: UUID
    images: list[str]


# =============================================================================
# Endpoints
# =============================================================================

@router.get("", response_model=ListingSearchResponse)
def search_listings(
    location: Annotated[str | None, Query(description="Place name, e.g. 'Manchester'")] = None,
    lat: Annotated[float | None, Query(ge=-90, le=90)] = None,
    lng: Annotated[float | None, Query(ge=-180, le=180)] = None,
    radius_km: Annotated[float | None, Query(gt=0)] = None,
    min_price: Annotated[float | None, Query(ge=0, description="Minimum daily rate")] = None,
    max_price: Annotated[float | None, Query(ge=0, description="Maximum daily rate")] = None,
    amenities: Annotated[list[str], Query(description="Amenity keys that must all match")] = [],
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
):
    """
    Search active listings.

    Either pass `location` (resolved from the popular-city table, then the
    geocoder) or `lat`/`lng`/`radius_km`. Location searches add a
    `distance` in km to each result.
    """
    filters = ListingSearchFilters(
        latitude=lat,
        longitude=lng,
        radius_km=radius_km,
        min_price=min_price,
        max_price=max_price,
        amenities=amenities,
        limit=limit,
        offset=offset,
    )

    if location:
        listings = ListingService.search_by_location(location, filters)
    else:
        listings = ListingService.search_listings(filters)

    return ListingSearchResponse(
        listings=listings,
        count=len(listings),
        limit=limit,
        offset=offset,
    )


@router.get("/mine", response_model=list[ListingWithAmenities])
def list_my_listings(
    user: AuthUser = Depends(require_venue_owner),
    status_filter: Annotated[ListingStatus | None, Query(alias="status")] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
):
    """The current owner's listings, newest first."""
    return ListingService.get_listings(
        owner_id=user.id, status=status_filter, limit=limit, offset=offset
    )


@router.post("", response_model=ListingWithAmenities, status_code=status.HTTP_201_CREATED)
def create_listing(
    listing: ListingCreate,
    user: AuthUser = Depends(require_venue_owner),
):
    """Create a listing with its amenities."""
    return ListingService.create_listing(user.id, listing)


@router.get("/{listing_id}", response_model=ListingWithAmenities)
def get_listing(listing_id: ListingId):
    """A listing with amenities and owner."""
    return ListingService.get_listing_by_id(listing_id)


@router.patch("/{listing_id}", response_model=ListingWithAmenities)
def update_listing(
    listing_id: ListingId,
    update: ListingUpdate,
    user: AuthUser = Depends(require_venue_owner),
):
    return ListingService.update_listing(listing_id, user.id, update)


@router.delete("/{listing_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_listing(
    listing_id: ListingId,
    user: AuthUser = Depends(require_venue_owner),
):
    """Delete a listing, its amenities and its images."""
    ListingService.delete_listing(listing_id, user.id)


@router.post("/{listing_id}/images", response_model=ImagesResponse)
async def upload_listing_images(
    listing_id: ListingId,
    files: Annotated[list[UploadFile], File(description="Images to add")],
    user: AuthUser = Depends(require_venue_owner),
):
    """
    Upload images to a listing.

    All files are validated before any is stored.
    """
    payload = [(f.filename or "image", await f.read()) for f in files]
    images = await run_in_threadpool(ListingService.upload_listing_images, listing_id, user.id, payload)
    return ImagesResponse(listing_id=listing_id, images=images)


@router.delete("/{listing_id}/images", response_model=ImagesResponse)
def delete_listing_images(
    listing_id: ListingId,
    request: ImageDeleteRequest,
    user: AuthUser = Depends(require_venue_owner),
):
    images = ListingService.delete_listing_images(listing_id, user.id, request.urls)
    return ImagesResponse(listing_id=listing_id, images=images)


@router.get("/{listing_id}/availability", response_model=AvailabilityResponse)
def get_availability(
    listing_id: ListingId,
    booking_date: Annotated[date, Query(alias="date")],
    duration_hours: Annotated[int, Query(ge=1, le=16)] = 1,
):
    """Hourly slot grid for one day."""
    ListingService.get_listing_by_id(listing_id)
    slots = BookingService.get_available_time_slots(listing_id, booking_date, duration_hours)
    return AvailabilityResponse(
        listing_id=listing_id,
        date=booking_date,
        duration_hours=duration_hours,
        slots=slots,
    )


@router.get("/{listing_id}/bookings")
def get_listing_bookings(
    listing_id: ListingId,
    user: AuthUser = Depends(require_venue_owner),
    booking_date: Annotated[date | None, Query(alias="date")] = None,
):
    """All bookings on one of the caller's listings."""
    ListingService.get_owned_listing(listing_id, user.id)
    return BookingService.get_listing_bookings(listing_id, booking_date)
