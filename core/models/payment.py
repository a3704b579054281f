# =============================================================================
# core/models/payment.py - Payment Schemas
# =============================================================================
# Payments run through a mock gateway that mimics Stripe's payment-intent
# shape. Intent statuses use Stripe's vocabulary; the payments table uses
# the simpler PaymentStatus.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class PaymentIntentStatus(str, Enum):
    """Gateway-side status of a payment intent (Stripe vocabulary)."""
    REQUIRES_PAYMENT_METHOD = "requires_payment_method"
    REQUIRES_CONFIRMATION = "requires_confirmation"
    REQUIRES_ACTION = "requires_action"
    PROCESSING = "processing"
    REQUIRES_CAPTURE = "requires_capture"
    CANCELED = "canceled"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PaymentStatus(str, Enum):
    """Status stored on the payments row."""
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PayoutStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


# =============================================================================
# Gateway Objects
# =============================================================================

class MockPaymentIntent(BaseModel):
    """
    Payment intent held by the mock gateway.

    `amount` is in the smallest currency unit (cents), as with Stripe.
    `created` is a unix timestamp in milliseconds.
    """

    id: str
    amount: int
    currency: str = "usd"
    status: PaymentIntentStatus = PaymentIntentStatus.REQUIRES_PAYMENT_METHOD
    client_secret: str
    created: int
    description: str | None = None
    metadata: dict[str, str] = Field(default_factory=dict)


class Refund(BaseModel):
    id: str
    amount: int
    currency: str
    status: str = "succeeded"
    payment_intent: str


class ConnectAccount(BaseModel):
    """Mock payout account for a venue owner."""

    id: str
    business_type: str = "individual"
    charges_enabled: bool = True
    payouts_enabled: bool = True
    details_submitted: bool = True
    country: str = "US"
    email: str


# =============================================================================
# Stored Rows
# =============================================================================

class Payment(BaseModel):
    """Row from the payments table. Money columns are in major units."""

    id: UUID | None = None
    booking_id: UUID
    stripe_payment_intent_id: str
    amount: float
    platform_fee: float
    vendor_payout: float
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payout_status: PayoutStatus = PayoutStatus.PENDING
    stripe_refund_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# =============================================================================
# Request / Response
# =============================================================================

class CreatePaymentIntentRequest(BaseModel):
    """
    Example:
        {"booking_id": "550e8400-...", "amount": 15000}
    """

    booking_id: UUID
    amount: int | None = Field(default=None, gt=0, description="Cents; defaults to the booking total")
    description: str | None = None


class ConfirmPaymentRequest(BaseModel):
    payment_method_id: str | None = None
    card_number: str | None = Field(
        default=None,
        description="Test card; 4242424242424242 succeeds, 4000000000000002 fails"
    )


class RefundRequest(BaseModel):
    amount: int | None = Field(default=None, gt=0, description="Cents; defaults to what is left to refund")


class PaymentStatusResponse(BaseModel):
    payment_intent_id: str
    status: PaymentStatus


class ConnectAccountRequest(BaseModel):
    country: str = Field(default="US", min_length=2, max_length=2)


class AccountLinkRequest(BaseModel):
    return_url: str
    refresh_url: str


class AccountLinkResponse(BaseModel):
    url: str
