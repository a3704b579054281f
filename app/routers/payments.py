# =============================================================================
# app/routers/payments.py - Mock Payment Endpoints
# =============================================================================
# Payment intents for vendors and payout (connect) accounts for venue
# owners. Nothing here talks to a real payment provider.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status

from app.auth import AuthUser, get_current_user, require_vendor, require_venue_owner
from app.dependencies import ConnectServiceDep, PaymentServiceDep
from core.models.payment import (
    AccountLinkRequest,
    AccountLinkResponse,
    ConfirmPaymentRequest,
    ConnectAccount,
    ConnectAccountRequest,
    CreatePaymentIntentRequest,
    MockPaymentIntent,
    PaymentStatusResponse,
    Refund,
    RefundRequest,
)

router = APIRouter()

IntentId = Annotated[str, Path(description="Payment intent id (pi_mock_...)")]


# =============================================================================
# Payment Intents
# =============================================================================

@router.post("/intents", response_model=MockPaymentIntent, status_code=status.HTTP_201_CREATED)
def create_payment_intent(
    request: CreatePaymentIntentRequest,
    payments: PaymentServiceDep,
    user: AuthUser = Depends(require_vendor),
):
    """
    Start paying for a booking.

    `amount` is in cents and defaults to the booking total; a different
    amount is rejected.
    """
    return payments.create_payment_intent(
        request.booking_id, user.id, request.amount, request.description
    )


@router.post("/intents/{intent_id}/confirm", response_model=MockPaymentIntent)
def confirm_payment(
    intent_id: IntentId,
    request: ConfirmPaymentRequest,
    payments: PaymentServiceDep,
    user: AuthUser = Depends(require_vendor),
):
    """
    Confirm a payment.

    Test cards: 4242424242424242 succeeds, 4000000000000002 fails.
    """
    return payments.confirm_payment(
        intent_id, user.id, request.payment_method_id, request.card_number
    )


@router.get("/intents/{intent_id}/status", response_model=PaymentStatusResponse)
def get_payment_status(
    intent_id: IntentId,
    payments: PaymentServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    return PaymentStatusResponse(
        payment_intent_id=intent_id,
        status=payments.get_payment_status(intent_id, user.id),
    )


@router.post("/intents/{intent_id}/refund", response_model=Refund)
def create_refund(
    intent_id: IntentId,
    request: RefundRequest,
    payments: PaymentServiceDep,
    user: AuthUser = Depends(require_venue_owner),
):
    """Refund all (default) or part of a payment on one of your venues."""
    return payments.create_refund(intent_id, user.id, request.amount)


@router.get("/bookings/{booking_id}")
def get_booking_payment(
    booking_id: Annotated[UUID, Path(description="Booking UUID")],
    payments: PaymentServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """The stored payment for a booking, or null if it hasn't been paid for."""
    return payments.get_booking_payment(booking_id, user.id)


# =============================================================================
# Connect Accounts
# =============================================================================

@router.post("/connect/account", response_model=ConnectAccount, status_code=status.HTTP_201_CREATED)
def create_connect_account(
    connect: ConnectServiceDep,
    user: AuthUser = Depends(require_venue_owner),
    request: ConnectAccountRequest | None = None,
):
    """Create (or return) the owner's payout account."""
    country = request.country if request else "US"
    return connect.initialize_venue_owner_account(user.id, country)


@router.get("/connect/account", response_model=ConnectAccount)
def get_connect_account(
    connect: ConnectServiceDep,
    user: AuthUser = Depends(require_venue_owner),
):
    return connect.get_venue_owner_account(user.id)


@router.post("/connect/account-link", response_model=AccountLinkResponse)
def create_account_link(
    request: AccountLinkRequest,
    connect: ConnectServiceDep,
    user: AuthUser = Depends(require_venue_owner),
):
    """Onboarding link for the owner's payout account."""
    account = connect.get_venue_owner_account(user.id)
    return AccountLinkResponse(
        url=connect.create_account_link(account.id, request.return_url, request.refresh_url)
    )
