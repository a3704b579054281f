# =============================================================================
# core/models/listing.py - Listing & Amenity Schemas
# =============================================================================
# A listing is a rentable patch of outdoor space published by a venue owner.
# Each listing has exactly one amenities row describing the facilities a
# food truck can use there (power, water, shelter, ...).
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from .user import User


class ListingStatus(str, Enum):
    """
    Visibility of a listing.

    Only active listings appear in search and accept bookings.
    """
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class ElectricityType(str, Enum):
    NONE = "none"
    V240 = "240v"
    V110 = "110v"
    OTHER = "other"


# =============================================================================
# Amenities
# =============================================================================

class AmenitiesBase(BaseModel):
    """Facilities available at a venue. Everything defaults to "not provided"."""

    running_water: bool = False
    electricity_type: ElectricityType = ElectricityType.NONE
    gas_supply: bool = False
    shelter: bool = False
    toilet_facilities: bool = False
    wifi: bool = False
    customer_seating: bool = False
    waste_disposal: bool = False
    overnight_parking: bool = False
    security_cctv: bool = False
    loading_dock: bool = False
    refrigeration_access: bool = False


class Amenities(AmenitiesBase):
    """Row from the amenities table."""

    id: UUID | None = None
    listing_id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AmenitiesUpdate(BaseModel):
    """Partial amenities update; omitted fields are left unchanged."""

    running_water: bool | None = None
    electricity_type: ElectricityType | None = None
    gas_supply: bool | None = None
    shelter: bool | None = None
    toilet_facilities: bool | None = None
    wifi: bool | None = None
    customer_seating: bool | None = None
    waste_disposal: bool | None = None
    overnight_parking: bool | None = None
    security_cctv: bool | None = None
    loading_dock: bool | None = None
    refrigeration_access: bool | None = None


# Search filter key -> predicate on an amenities row
AMENITY_FILTERS = {
    "running_water": lambda a: bool(a.get("running_water")),
    "electricity": lambda a: a.get("electricity_type", ElectricityType.NONE.value) != ElectricityType.NONE.value,
    "gas": lambda a: bool(a.get("gas_supply")),
    "shelter": lambda a: bool(a.get("shelter")),
    "toilet": lambda a: bool(a.get("toilet_facilities")),
    "wifi": lambda a: bool(a.get("wifi")),
    "seating": lambda a: bool(a.get("customer_seating")),
    "waste_disposal": lambda a: bool(a.get("waste_disposal")),
    "overnight_parking": lambda a: bool(a.get("overnight_parking")),
    "security": lambda a: bool(a.get("security_cctv")),
    "loading_dock": lambda a: bool(a.get("loading_dock")),
    "refrigeration": lambda a: bool(a.get("refrigeration_access")),
}


# =============================================================================
# Listings
# =============================================================================

class ListingBase(BaseModel):
    """
    Fields a venue owner supplies when publishing a listing.

    Example:
        {
            "title": "Car park behind The Red Lion",
            "description": "Level tarmac, space for two trucks",
            "address": "1 High St", "city": "London", "state": "Greater London",
            "postal_code": "SW1A 1AA", "country": "UK",
            "latitude": 51.5074, "longitude": -0.1278,
            "hourly_rate": 25, "daily_rate": 150
        }
    """

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = ""
    postal_code: str = ""
    country: str = "UK"
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    hourly_rate: float = Field(..., ge=0)
    daily_rate: float = Field(..., ge=0)
    weekly_rate: float | None = Field(default=None, ge=0)
    min_booking_hours: float = Field(default=1, gt=0)
    max_booking_hours: float | None = Field(default=None, gt=0)
    space_size_sqm: float | None = Field(default=None, gt=0)
    max_trucks: int = Field(default=1, ge=1)

    @model_validator(mode="after")
    def check_booking_hours(self):
        """Max booking hours, when set, can't be below the minimum."""
        if self.max_booking_hours is not None and self.max_booking_hours < self.min_booking_hours:
            raise ValueError("max_booking_hours must be >= min_booking_hours")
        return self


class ListingCreate(ListingBase):
    """Create payload: listing fields plus its amenities."""

    status: ListingStatus = ListingStatus.ACTIVE
    amenities: AmenitiesBase = Field(default_factory=AmenitiesBase)


class ListingUpdate(BaseModel):
    """Partial listing update; omitted fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    hourly_rate: float | None = Field(default=None, ge=0)
    daily_rate: float | None = Field(default=None, ge=0)
    weekly_rate: float | None = Field(default=None, ge=0)
    min_booking_hours: float | None = Field(default=None, gt=0)
    max_booking_hours: float | None = Field(default=None, gt=0)
    space_size_sqm: float | None = Field(default=None, gt=0)
    max_trucks: int | None = Field(default=None, ge=1)
    status: ListingStatus | None = None
    amenities: AmenitiesUpdate | None = None


class Listing(ListingBase):
    """Row from the listings table."""

    id: UUID
    owner_id: UUID
    images: list[str] = Field(default_factory=list)
    status: ListingStatus = ListingStatus.ACTIVE
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ListingWithAmenities(Listing):
    """
    A listing as returned to clients.

    `distance` is only present on location searches (km from the search point).
    """

    amenities: Amenities | None = None
    owner: User | None = None
    distance: float | None = None


class ListingSearchFilters(BaseModel):
    """Query parameters accepted by the listing search."""

    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    radius_km: float | None = Field(default=None, gt=0)
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)
    amenities: list[str] = Field(default_factory=list)
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)

    @property
    def has_location(self) -> bool:
        return (
            self.latitude is not None
            and self.longitude is not None
            and self.radius_km is not None
        )
