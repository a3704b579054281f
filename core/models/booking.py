# =============================================================================
# core/models/booking.py - Booking Schemas
# =============================================================================
# A booking reserves a listing for a time window on a single day.
#
# Status flow:
#   pending -> confirmed -> completed
#   pending | confirmed -> cancelled
#
# Payment status runs alongside it:
#   pending -> paid | failed, paid -> refunded
# =============================================================================

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from lib.utils import format_hhmm


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class BookingPaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


# Statuses that hold a time slot
ACTIVE_BOOKING_STATUSES = [BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value]

_HHMM_PATTERN = r"^(([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?|24:00(:00)?)$"


class BookingCreate(BaseModel):
    """
    Booking request from a vendor.

    Hours and cost are always computed server-side from the listing's rates.

    Example:
        {
            "listing_id": "550e8400-e29b-41d4-a716-446655440000",
            "booking_date": "2024-07-06",
            "start_time": "11:00",
            "end_time": "15:00",
            "special_requests": "Need access to the water tap"
        }
    """

    listing_id: UUID
    booking_date: date
    start_time: str = Field(..., pattern=_HHMM_PATTERN, examples=["11:00"])
    end_time: str = Field(..., pattern=_HHMM_PATTERN, examples=["15:00"])
    special_requests: str | None = Field(default=None, max_length=2000)

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, value: str) -> str:
        return format_hhmm(value)


class Booking(BaseModel):
    """Row from the bookings table."""

    id: UUID
    listing_id: UUID
    vendor_id: UUID
    booking_date: date
    start_time: str
    end_time: str
    total_hours: float
    total_cost: float
    status: BookingStatus = BookingStatus.PENDING
    payment_status: BookingPaymentStatus = BookingPaymentStatus.PENDING
    stripe_payment_intent_id: str | None = None
    cancellation_reason: str | None = None
    special_requests: str | None = None
    venue_owner_notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, value: str) -> str:
        return format_hhmm(value)


class BookingCancel(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


class BookingConfirm(BaseModel):
    notes: str | None = Field(default=None, max_length=2000)


class TimeSlot(BaseModel):
    """One bookable slot in the availability grid."""

    start: str
    end: str
    available: bool


class AvailabilityResponse(BaseModel):
    listing_id: UUID
    date: date
    duration_hours: int
    slots: list[TimeSlot]


class BookingStats(BaseModel):
    """Per-status counts and revenue for a venue owner."""

    total: int = 0
    pending: int = 0
    confirmed: int = 0
    cancelled: int = 0
    completed: int = 0
    total_revenue: float = 0.0
