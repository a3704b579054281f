# =============================================================================
# app/routers/bookings.py - Booking Endpoints
# =============================================================================
# Vendors create and cancel bookings; venue owners confirm, complete or
# cancel bookings on their listings. Either party can read a booking.
# =============================================================================

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import BaseModel, Field

from app.auth import AuthUser, get_current_user, require_vendor, require_venue_owner
from core.models.booking import (
    Booking,
    BookingCancel,
    BookingConfirm,
    BookingCreate,
    BookingStats,
    BookingStatus,
)
from core.services.booking_service import BookingService

router = APIRouter()

BookingId = Annotated[UUID, Path(description="Booking UUID")]


class BookingUpdateRequest(BaseModel):
    """Free-text fields; which one a caller may set depends on their side of the booking."""
    special_requests: str | None = Field(default=None, max_length=2000)
    venue_owner_notes: str | None = Field(default=None, max_length=2000)


@router.post("", response_model=Booking, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: BookingCreate,
    user: AuthUser = Depends(require_vendor),
):
    """
    Book a listing.

    Hours and cost are computed server-side. Returns 409 when the window
    overlaps a pending or confirmed booking.
    """
    return BookingService.create_booking(user.id, request)


@router.get("/mine", response_model=list[Booking])
def list_my_bookings(
    user: AuthUser = Depends(require_vendor),
    status_filter: Annotated[BookingStatus | None, Query(alias="status")] = None,
):
    """The current vendor's bookings, newest date first."""
    return BookingService.get_vendor_bookings(user.id, status_filter)


@router.get("/venue", response_model=list[Booking])
def list_venue_bookings(
    user: AuthUser = Depends(require_venue_owner),
    status_filter: Annotated[BookingStatus | None, Query(alias="status")] = None,
):
    """Bookings across all of the current owner's listings."""
    return BookingService.get_venue_owner_bookings(user.id, status_filter)


@router.get("/stats", response_model=BookingStats)
def get_booking_stats(
    user: AuthUser = Depends(require_venue_owner),
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
):
    return BookingService.get_booking_stats(user.id, start_date, end_date)


@router.get("/{booking_id}", response_model=Booking)
def get_booking(
    booking_id: BookingId,
    user: AuthUser = Depends(get_current_user),
):
    return BookingService.get_booking(booking_id, user.id)


@router.patch("/{booking_id}", response_model=Booking)
def update_booking(
    booking_id: BookingId,
    update: BookingUpdateRequest,
    user: AuthUser = Depends(get_current_user),
):
    return BookingService.update_booking(
        booking_id, user.id, update.model_dump(exclude_unset=True)
    )


@router.post("/{booking_id}/cancel", response_model=Booking)
def cancel_booking(
    booking_id: BookingId,
    request: BookingCancel,
    user: AuthUser = Depends(get_current_user),
):
    """Cancel a pending or confirmed booking (vendor or listing owner)."""
    return BookingService.cancel_booking(booking_id, user.id, request.reason)


@router.post("/{booking_id}/confirm", response_model=Booking)
def confirm_booking(
    booking_id: BookingId,
    user: AuthUser = Depends(require_venue_owner),
    request: BookingConfirm | None = None,
):
    return BookingService.confirm_booking(
        booking_id, user.id, request.notes if request else None
    )


@router.post("/{booking_id}/complete", response_model=Booking)
def complete_booking(
    booking_id: BookingId,
    user: AuthUser = Depends(require_venue_owner),
):
    return BookingService.complete_booking(booking_id, user.id)
