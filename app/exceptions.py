# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error carries a machine-readable code and, where possible, a
# suggestion telling the caller how to fix the problem.
# =============================================================================

import logging
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class FoodTruckHubException(Exception):
    """
    Base exception for the FoodTruck Hub API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "FOODTRUCKHUB_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Auth Exceptions
# =============================================================================

class AuthRequiredError(FoodTruckHubException):
    """Raised when a protected route is hit without any credential."""

    def __init__(self, path: str | None = None):
        super().__init__(
            message="Authentication required",
            code="AUTH_REQUIRED",
            status_code=401,
            suggestion="Sign in and send the access token as a Bearer header or session cookie",
            details={"path": path} if path else None,
        )


class AuthProviderError(FoodTruckHubException):
    """Raised when the hosted auth provider rejects a request."""

    def __init__(self, action: str, error: str, status_code: int = 400):
        super().__init__(
            message=f"Authentication provider error during {action}: {error}",
            code="AUTH_PROVIDER_ERROR",
            status_code=status_code,
            suggestion="Check the credentials and try again",
            details={"action": action},
        )


class RoleRequiredError(FoodTruckHubException):
    """Raised when the user's role does not allow an operation."""

    def __init__(self, required: list[str], actual: str | None):
        super().__init__(
            message=f"This action requires role: {', '.join(required)}",
            code="ROLE_REQUIRED",
            status_code=403,
            suggestion="Sign in with an account that has the required role",
            details={"required_roles": required, "role": actual},
        )


class AdminRequiredError(FoodTruckHubException):
    """Raised when a non-admin calls an admin endpoint."""

    def __init__(self):
        super().__init__(
            message="Administrator access required",
            code="ADMIN_REQUIRED",
            status_code=403,
            suggestion="Ask an operator to add your e-mail to ADMIN_EMAILS",
        )


class OwnershipError(FoodTruckHubException):
    """Raised when a user tries to modify a record they do not own."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"You do not have access to this {resource}",
            code="NOT_OWNER",
            status_code=403,
            suggestion=f"Only the owner of the {resource} can perform this action",
            details={"resource": resource, "id": resource_id},
        )


# =============================================================================
# User / Profile Exceptions
# =============================================================================

class UserNotFoundError(FoodTruckHubException):
    """Raised when a users row doesn't exist."""

    def __init__(self, user_id: str):
        super().__init__(
            message=f"User not found: {user_id}",
            code="USER_NOT_FOUND",
            status_code=404,
            suggestion="The account may still be provisioning; sign in again to create it",
            details={"user_id": user_id},
        )


class ProfileNotFoundError(FoodTruckHubException):
    """Raised when a role-specific profile doesn't exist."""

    def __init__(self, user_id: str, role: str):
        super().__init__(
            message=f"No {role} profile for user: {user_id}",
            code="PROFILE_NOT_FOUND",
            status_code=404,
            suggestion="Create the profile first using PUT /profile/details",
            details={"user_id": user_id, "role": role},
        )


class InvalidProfileError(FoodTruckHubException):
    """Raised when a profile payload is missing required fields."""

    def __init__(self, message: str, role: str):
        super().__init__(
            message=message,
            code="INVALID_PROFILE",
            status_code=400,
            suggestion="Fill in the required profile fields and try again",
            details={"role": role},
        )


# =============================================================================
# Listing Exceptions
# =============================================================================

class ListingNotFoundError(FoodTruckHubException):
    """Raised when a listing ID doesn't exist."""

    def __init__(self, listing_id: str):
        super().__init__(
            message=f"Listing not found: {listing_id}",
            code="LISTING_NOT_FOUND",
            status_code=404,
            suggestion="Check that the listing_id is correct and the listing hasn't been deleted",
            details={"listing_id": listing_id},
        )


class ListingUnavailableError(FoodTruckHubException):
    """Raised when booking a listing that isn't active."""

    def __init__(self, listing_id: str, status: str):
        super().__init__(
            message=f"Listing is not accepting bookings (status: {status})",
            code="LISTING_UNAVAILABLE",
            status_code=400,
            suggestion="Choose an active listing",
            details={"listing_id": listing_id, "status": status},
        )


# =============================================================================
# Booking Exceptions
# =============================================================================

class BookingNotFoundError(FoodTruckHubException):
    """Raised when a booking ID doesn't exist."""

    def __init__(self, booking_id: str):
        super().__init__(
            message=f"Booking not found: {booking_id}",
            code="BOOKING_NOT_FOUND",
            status_code=404,
            suggestion="Check that the booking_id is correct",
            details={"booking_id": booking_id},
        )


class SlotUnavailableError(FoodTruckHubException):
    """Raised when the requested time window overlaps an existing booking."""

    def __init__(self, listing_id: str, booking_date: str, start_time: str, end_time: str):
        super().__init__(
            message="This time slot is not available",
            code="SLOT_UNAVAILABLE",
            status_code=409,
            suggestion="Pick another time using GET /listings/{id}/availability",
            details={
                "listing_id": listing_id,
                "booking_date": booking_date,
                "start_time": start_time,
                "end_time": end_time,
            },
        )


class InvalidBookingError(FoodTruckHubException):
    """Raised when a booking request fails business validation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="INVALID_BOOKING",
            status_code=400,
            suggestion="Adjust the booking window and try again",
            details=details,
        )


class InvalidBookingTransitionError(FoodTruckHubException):
    """Raised when a booking can't move from its current status."""

    def __init__(self, booking_id: str, current: str, target: str):
        super().__init__(
            message=f"Cannot change booking from '{current}' to '{target}'",
            code="INVALID_BOOKING_TRANSITION",
            status_code=409,
            suggestion="Refresh the booking to see its current status",
            details={"booking_id": booking_id, "current": current, "target": target},
        )


# =============================================================================
# Payment Exceptions
# =============================================================================

class PaymentIntentNotFoundError(FoodTruckHubException):
    """Raised when a payment intent doesn't exist in the gateway."""

    def __init__(self, payment_intent_id: str):
        super().__init__(
            message=f"Payment intent not found: {payment_intent_id}",
            code="PAYMENT_INTENT_NOT_FOUND",
            status_code=404,
            suggestion="Create a new payment intent; mock intents are lost on restart",
            details={"payment_intent_id": payment_intent_id},
        )


class InvalidPaymentError(FoodTruckHubException):
    """Raised when a payment doesn't fit the booking or the intent's state."""

    def __init__(self, message: str, details: dict[str, Any] | None = None, status_code: int = 409):
        super().__init__(
            message=message,
            code="INVALID_PAYMENT",
            status_code=status_code,
            suggestion="Refresh the booking and its payment before retrying",
            details=details,
        )


class ConnectAccountNotFoundError(FoodTruckHubException):
    """Raised when a venue owner has no payout account."""

    def __init__(self, user_id: str):
        super().__init__(
            message=f"No payout account for user: {user_id}",
            code="CONNECT_ACCOUNT_NOT_FOUND",
            status_code=404,
            suggestion="Create one using POST /payments/connect",
            details={"user_id": user_id},
        )


# =============================================================================
# Upload Exceptions
# =============================================================================

class InvalidFileTypeError(FoodTruckHubException):
    """Raised when uploaded file type is not allowed."""

    def __init__(self, filename: str, allowed: list[str]):
        super().__init__(
            message=f"Invalid file type: {filename}",
            code="INVALID_FILE_TYPE",
            status_code=400,
            suggestion=f"Only these file types are supported: {', '.join(allowed)}",
            details={"filename": filename, "allowed_types": allowed},
        )


class FileTooLargeError(FoodTruckHubException):
    """Raised when uploaded file exceeds size limit."""

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File too large: {size_mb:.1f}MB (max: {max_mb}MB)",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload a file smaller than {max_mb}MB",
            details={"size_mb": size_mb, "max_mb": max_mb},
        )


class StorageUploadError(FoodTruckHubException):
    """Raised when file upload to storage fails."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to upload file to storage: {error}",
            code="STORAGE_UPLOAD_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"error": error},
        )


class StorageDeleteError(FoodTruckHubException):
    """Raised when removing a file from storage fails."""

    def __init__(self, path: str, error: str):
        super().__init__(
            message=f"Failed to delete file from storage: {error}",
            code="STORAGE_DELETE_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"path": path, "error": error},
        )


# =============================================================================
# Geocoding Exceptions
# =============================================================================

class LocationNotFoundError(FoodTruckHubException):
    """Raised when a search location can't be resolved to coordinates."""

    def __init__(self, location: str):
        super().__init__(
            message=f"Could not find location: {location}",
            code="LOCATION_NOT_FOUND",
            status_code=404,
            suggestion="Try a city name or a postcode",
            details={"location": location},
        )


class GeocodingError(FoodTruckHubException):
    """Raised when the geocoding service can't be reached."""

    def __init__(self, location: str, error: str):
        super().__init__(
            message=f"Geocoding service error: {error}",
            code="GEOCODING_ERROR",
            status_code=502,
            suggestion="Search by coordinates or try again later",
            details={"location": location},
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def foodtruckhub_exception_handler(
    request: Request,
    exc: FoodTruckHubException
) -> JSONResponse:
    """
    Convert FoodTruckHubException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Converts validation errors to user-friendly messages.
    """
    errors = jsonable_encoder(exc.errors()) if hasattr(exc, "errors") else str(exc)
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": errors,
        }
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Last-resort handler so clients always get the structured error shape."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "code": "INTERNAL_ERROR",
        }
    )


async def supabase_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle lib.supabase_client.SupabaseClientError.

    Hosted-backend failures surface as 503 with the client's code and
    suggestion so the caller knows the request itself was fine.
    """
    logger.error(f"Backend error on {request.method} {request.url.path}: {exc}")
    content: dict[str, Any] = {
        "detail": getattr(exc, "message", str(exc)),
        "code": getattr(exc, "code", "SUPABASE_ERROR"),
    }
    if getattr(exc, "suggestion", None):
        content["suggestion"] = exc.suggestion
    return JSONResponse(status_code=503, content=content)
