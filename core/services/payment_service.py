# =============================================================================
# core/services/payment_service.py - Mock Payments & Payouts
# =============================================================================
# Payments run through an in-process mock of Stripe's payment-intent API.
#
# Layers:
#   MockPaymentGateway   - intents and refunds in process memory (not durable)
#   PaymentService       - mirrors gateway results into payments/bookings rows,
#                          sends e-mails and realtime events
#   MockConnectService   - payout accounts for venue owners
#
# Test cards:
#   4242 4242 4242 4242  always succeeds
#   4000 0000 0000 0002  always fails
#   anything else        succeeds with probability MOCK_PAYMENT_SUCCESS_RATE
# =============================================================================

import logging
import random
import string
import time
from typing import Any
from uuid import UUID

from app.config import settings
from app.exceptions import (
    BookingNotFoundError,
    ConnectAccountNotFoundError,
    InvalidPaymentError,
    OwnershipError,
    PaymentIntentNotFoundError,
    UserNotFoundError,
)
from app.websocket.broadcast import publish_booking_event, publish_payment_event
from core.models.booking import BookingPaymentStatus, BookingStatus
from core.models.payment import (
    ConnectAccount,
    MockPaymentIntent,
    PaymentIntentStatus,
    PaymentStatus,
    PayoutStatus,
    Refund,
)
from core.services.notification_service import notify_payment_failed, notify_payment_received
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid, utc_now_iso

logger = logging.getLogger(__name__)

SUCCESS_CARD = "4242424242424242"
DECLINE_CARD = "4000000000000002"

# Bookings in these states take no new payment intents or confirmations
UNPAYABLE_BOOKING_STATUSES = {BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value}
SETTLED_PAYMENT_STATUSES = {BookingPaymentStatus.PAID.value, BookingPaymentStatus.REFUNDED.value}


def map_intent_status(status: PaymentIntentStatus) -> PaymentStatus:
    """Collapse the gateway vocabulary into the payments table's."""
    if status == PaymentIntentStatus.SUCCEEDED:
        return PaymentStatus.SUCCEEDED
    if status == PaymentIntentStatus.CANCELED:
        return PaymentStatus.CANCELLED
    if status == PaymentIntentStatus.FAILED:
        return PaymentStatus.FAILED
    return PaymentStatus.PENDING


def split_amount(amount_cents: int) -> tuple[float, float, float]:
    """
    Split a charge into (amount, platform_fee, vendor_payout) in major units.

    Example:
        split_amount(15000)  # (150.0, 15.0, 135.0) at a 10% fee
    """
    amount = amount_cents / 100
    fee = round(amount * settings.PLATFORM_FEE_PERCENT / 100, 2)
    return amount, fee, round(amount - fee, 2)


# =============================================================================
# Gateway
# =============================================================================

class MockPaymentGateway:
    """
    Stand-in for the payment provider.

    Intents live in a dict on the instance and vanish with the process.

    Args:
        success_rate: Chance that a confirmation without a test card succeeds
        rng: Random source (inject a seeded random.Random in tests)
        latency_seconds: Sleep before each gateway call
    """

    def __init__(
        self,
        success_rate: float | None = None,
        rng: random.Random | None = None,
        latency_seconds: float | None = None,
    ):
        self.success_rate = (
            settings.MOCK_PAYMENT_SUCCESS_RATE if success_rate is None else success_rate
        )
        self.latency_seconds = (
            settings.MOCK_PAYMENT_LATENCY_SECONDS if latency_seconds is None else latency_seconds
        )
        self.rng = rng or random.Random()
        self._intents: dict[str, MockPaymentIntent] = {}
        self._refunds: dict[str, Refund] = {}

    def _delay(self) -> None:
        if self.latency_seconds:
            time.sleep(self.latency_seconds)

    def _random_suffix(self, length: int = 9) -> str:
        return "".join(self.rng.choices(string.ascii_lowercase + string.digits, k=length))

    def create_payment_intent(
        self,
        booking_id: UUID | str,
        amount: int,
        currency: str | None = None,
        description: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> MockPaymentIntent:
        """Create an intent awaiting a payment method. `amount` is in cents."""
        self._delay()

        created = int(time.time() * 1000)
        intent_id = f"pi_mock_{created}_{self._random_suffix()}"
        intent = MockPaymentIntent(
            id=intent_id,
            amount=amount,
            currency=currency or settings.PAYMENT_CURRENCY,
            client_secret=f"{intent_id}_secret_{self._random_suffix()}",
            created=created,
            description=description,
            metadata={**(metadata or {}), "booking_id": normalize_uuid(booking_id)},
        )
        self._intents[intent_id] = intent

        logger.info(f"Mock gateway created {intent_id} for {amount} {intent.currency}")
        return intent

    def get_payment_intent(self, intent_id: str) -> MockPaymentIntent:
        """
        Raises:
            PaymentIntentNotFoundError: If the gateway doesn't know the id
        """
        intent = self._intents.get(intent_id)
        if intent is None:
            raise PaymentIntentNotFoundError(intent_id)
        return intent

    def confirm_payment_intent(
        self,
        intent_id: str,
        payment_method_id: str | None = None,
        card_number: str | None = None,
    ) -> MockPaymentIntent:
        """
        Attempt the charge; the intent ends succeeded or failed.

        Raises:
            InvalidPaymentError: If the intent was already confirmed
        """
        self._delay()
        intent = self.get_payment_intent(intent_id)
        if intent.status != PaymentIntentStatus.REQUIRES_PAYMENT_METHOD:
            raise InvalidPaymentError(
                f"Payment intent is already {intent.status.value}",
                details={"payment_intent_id": intent_id, "status": intent.status.value},
            )

        card = (card_number or "").replace(" ", "")
        if card == SUCCESS_CARD:
            succeeded = True
        elif card == DECLINE_CARD:
            succeeded = False
        else:
            succeeded = self.rng.random() < self.success_rate

        intent.status = PaymentIntentStatus.SUCCEEDED if succeeded else PaymentIntentStatus.FAILED
        logger.info(f"Mock gateway confirmed {intent_id}: {intent.status.value}")
        return intent

    def create_refund(self, intent_id: str, amount: int | None = None) -> Refund:
        """
        Refund all or part of a succeeded intent.

        The amount defaults to whatever hasn't been refunded yet.

        Raises:
            InvalidPaymentError: If the intent never succeeded or the
                amount exceeds what is left to refund
        """
        self._delay()
        intent = self.get_payment_intent(intent_id)
        if intent.status != PaymentIntentStatus.SUCCEEDED:
            raise InvalidPaymentError(
                f"Only succeeded payments can be refunded (status: {intent.status.value})",
                details={"payment_intent_id": intent_id, "status": intent.status.value},
            )

        remaining = intent.amount - self.refunded_amount(intent_id)
        if amount is None:
            amount = remaining
        if amount <= 0 or amount > remaining:
            raise InvalidPaymentError(
                f"Refund amount must be between 1 and {remaining} cents",
                details={"payment_intent_id": intent_id, "amount": amount, "refundable": remaining},
                status_code=400,
            )

        refund = Refund(
            id=f"re_mock_{int(time.time() * 1000)}_{self._random_suffix()}",
            amount=amount,
            currency=intent.currency,
            payment_intent=intent_id,
        )
        self._refunds[refund.id] = refund

        logger.info(f"Mock gateway refunded {refund.amount} on {intent_id}")
        return refund

    def refunded_amount(self, intent_id: str) -> int:
        return sum(r.amount for r in self._refunds.values() if r.payment_intent == intent_id)

    def clear(self) -> None:
        self._intents.clear()
        self._refunds.clear()


# Process-wide gateway
payment_gateway = MockPaymentGateway()


# =============================================================================
# Persisting Service
# =============================================================================

class PaymentService:
    """
    Payment operations on top of the gateway.

    The service-role client bypasses row-level security, so every call
    checks that the caller is a party to the booking.

    Args:
        gateway: Defaults to the process-wide mock gateway
    """

    def __init__(self, gateway: MockPaymentGateway | None = None):
        self.gateway = gateway or payment_gateway

    @staticmethod
    def _parties(booking: dict[str, Any]) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
        """(vendor users row, listing row) for a booking."""
        vendor = SupabaseClient.fetch_user(booking["vendor_id"])
        listing = SupabaseClient.fetch_listing(booking["listing_id"])
        return vendor, listing

    @staticmethod
    def _ensure_payable(booking: dict[str, Any]) -> None:
        """Cancelled, completed and already-paid bookings take no new payments."""
        if booking["status"] in UNPAYABLE_BOOKING_STATUSES:
            raise InvalidPaymentError(
                f"Cannot pay for a {booking['status']} booking",
                details={"booking_id": str(booking["id"]), "status": booking["status"]},
            )
        if booking.get("payment_status") in SETTLED_PAYMENT_STATUSES:
            raise InvalidPaymentError(
                f"Booking payment is already {booking['payment_status']}",
                details={"booking_id": str(booking["id"]), "payment_status": booking["payment_status"]},
            )

    def _intent_booking(
        self,
        intent: MockPaymentIntent,
    ) -> tuple[str | None, dict[str, Any] | None]:
        booking_id = intent.metadata.get("booking_id")
        return booking_id, SupabaseClient.fetch_booking(booking_id) if booking_id else None

    def create_payment_intent(
        self,
        booking_id: UUID | str,
        vendor_id: UUID | str,
        amount: int | None = None,
        description: str | None = None,
    ) -> MockPaymentIntent:
        """
        Start paying for a booking.

        The amount is the booking's total_cost in cents; a client amount
        must match it. A payments row is stored when the booking exists;
        a missing booking is logged and the intent is still returned.

        Raises:
            OwnershipError: If the booking belongs to another vendor
            InvalidPaymentError: If the booking can't be paid for or the
                amount doesn't match
        """
        booking_id_str = normalize_uuid(booking_id)
        booking = SupabaseClient.fetch_booking(booking_id_str)

        if booking is not None:
            if str(booking["vendor_id"]) != normalize_uuid(vendor_id):
                raise OwnershipError("booking", booking_id_str)
            self._ensure_payable(booking)

            expected = round(float(booking["total_cost"]) * 100)
            if amount is not None and amount != expected:
                raise InvalidPaymentError(
                    f"Amount must equal the booking total ({expected} cents)",
                    details={"booking_id": booking_id_str, "amount": amount, "expected": expected},
                    status_code=400,
                )
            amount = expected
        elif amount is None:
            raise InvalidPaymentError(
                "Amount is required when the booking is unknown",
                details={"booking_id": booking_id_str},
                status_code=400,
            )

        intent = self.gateway.create_payment_intent(
            booking_id_str,
            amount,
            description=description or f"Booking {booking_id_str}",
            metadata={"vendor_id": normalize_uuid(vendor_id)},
        )

        if booking is None:
            logger.warning(f"Booking {booking_id_str} not found; payment row not stored")
            return intent

        total, fee, payout = split_amount(amount)
        SupabaseClient.insert_row("payments", {
            "booking_id": booking_id_str,
            "stripe_payment_intent_id": intent.id,
            "amount": total,
            "platform_fee": fee,
            "vendor_payout": payout,
            "payment_status": map_intent_status(intent.status).value,
            "payout_status": PayoutStatus.PENDING.value,
        })
        SupabaseClient.update_rows(
            "bookings", "id", booking_id_str,
            {"stripe_payment_intent_id": intent.id, "updated_at": utc_now_iso()},
        )
        return intent

    def confirm_payment(
        self,
        intent_id: str,
        vendor_id: UUID | str,
        payment_method_id: str | None = None,
        card_number: str | None = None,
    ) -> MockPaymentIntent:
        """
        Confirm at the gateway and mirror the outcome.

        succeeded: booking -> confirmed / paid, payment_received e-mail
        failed:    booking -> pending / failed, payment_failed e-mail

        Raises:
            OwnershipError: If the caller isn't the booking's vendor
            InvalidPaymentError: If the booking can't be paid for or the
                intent was already confirmed
        """
        intent = self.gateway.get_payment_intent(intent_id)
        booking_id, booking = self._intent_booking(intent)

        payer = str(booking["vendor_id"]) if booking else intent.metadata.get("vendor_id")
        if payer != normalize_uuid(vendor_id):
            raise OwnershipError("payment intent", intent_id)
        if booking is not None:
            self._ensure_payable(booking)

        intent = self.gateway.confirm_payment_intent(intent_id, payment_method_id, card_number)
        status = map_intent_status(intent.status)
        succeeded = status == PaymentStatus.SUCCEEDED

        SupabaseClient.update_rows(
            "payments", "stripe_payment_intent_id", intent_id,
            {"payment_status": status.value, "updated_at": utc_now_iso()},
        )

        if booking is None:
            logger.warning(f"No booking for payment intent {intent_id}")
            return intent

        rows = SupabaseClient.update_rows("bookings", "id", booking_id, {
            "status": (BookingStatus.CONFIRMED if succeeded else BookingStatus.PENDING).value,
            "payment_status": (
                BookingPaymentStatus.PAID if succeeded else BookingPaymentStatus.FAILED
            ).value,
            "stripe_payment_intent_id": intent_id,
            "updated_at": utc_now_iso(),
        })
        updated = rows[0] if rows else booking

        vendor, listing = self._parties(booking)
        venue_name = listing["title"] if listing else "your venue"
        if vendor:
            vendor_name = " ".join(
                p for p in (vendor.get("first_name"), vendor.get("last_name")) if p
            ) or vendor["email"].split("@")[0]
            if succeeded:
                notify_payment_received(
                    vendor["email"], vendor_name, venue_name, intent.amount / 100, intent_id
                )
            else:
                notify_payment_failed(
                    vendor["email"], vendor_name, venue_name, intent.amount / 100,
                    "Your card was declined",
                )

        publish_payment_event(
            str(booking["vendor_id"]),
            "payment_succeeded" if succeeded else "payment_failed",
            intent_id,
            booking_id,
            intent.amount,
        )
        publish_booking_event(
            "booking_payment_updated",
            updated,
            [booking["vendor_id"], listing["owner_id"] if listing else None],
        )
        return intent

    def get_payment_status(self, intent_id: str, user_id: UUID | str) -> PaymentStatus:
        """
        Raises:
            OwnershipError: If the user is neither the payer nor the venue owner
        """
        intent = self.gateway.get_payment_intent(intent_id)
        _, booking = self._intent_booking(intent)

        parties = {intent.metadata.get("vendor_id")}
        if booking is not None:
            listing = SupabaseClient.fetch_listing(booking["listing_id"]) or {}
            parties |= {str(booking["vendor_id"]), str(listing.get("owner_id"))}
        if normalize_uuid(user_id) not in parties:
            raise OwnershipError("payment intent", intent_id)

        return map_intent_status(intent.status)

    def create_refund(self, intent_id: str, owner_id: UUID | str, amount: int | None = None) -> Refund:
        """
        Refund at the gateway and mark the booking refunded.

        Raises:
            OwnershipError: If the caller doesn't own the booked listing
            InvalidPaymentError: If the intent never succeeded or the amount
                exceeds what is left to refund
        """
        intent = self.gateway.get_payment_intent(intent_id)
        booking_id, booking = self._intent_booking(intent)

        listing = SupabaseClient.fetch_listing(booking["listing_id"]) if booking else None
        if not listing or str(listing["owner_id"]) != normalize_uuid(owner_id):
            raise OwnershipError("payment intent", intent_id)

        refund = self.gateway.create_refund(intent_id, amount)

        SupabaseClient.update_rows(
            "payments", "stripe_payment_intent_id", intent_id,
            {"stripe_refund_id": refund.id, "updated_at": utc_now_iso()},
        )

        rows = SupabaseClient.update_rows("bookings", "id", booking_id, {
            "payment_status": BookingPaymentStatus.REFUNDED.value,
            "updated_at": utc_now_iso(),
        })
        if rows:
            publish_payment_event(
                str(rows[0]["vendor_id"]), "payment_refunded", intent_id, booking_id, refund.amount
            )

        logger.info(f"Refunded {refund.amount} on {intent_id} ({refund.id})")
        return refund

    def get_booking_payment(self, booking_id: UUID | str, user_id: UUID | str) -> dict[str, Any] | None:
        """Latest payments row for a booking the user is party to."""
        booking_id_str = normalize_uuid(booking_id)
        booking = SupabaseClient.fetch_booking(booking_id_str)
        if not booking:
            raise BookingNotFoundError(booking_id_str)

        listing = SupabaseClient.fetch_listing(booking["listing_id"]) or {}
        if normalize_uuid(user_id) not in (str(booking["vendor_id"]), str(listing.get("owner_id"))):
            raise OwnershipError("booking", booking_id_str)

        if not booking.get("stripe_payment_intent_id"):
            return None
        return SupabaseClient.fetch_payment_by_intent(booking["stripe_payment_intent_id"])


# =============================================================================
# Connect Accounts (venue owner payouts)
# =============================================================================

class MockConnectService:
    """In-memory payout accounts, keyed by account id."""

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()
        self._accounts: dict[str, ConnectAccount] = {}

    def create_connect_account(self, user_id: UUID | str, email: str, country: str = "US") -> ConnectAccount:
        suffix = "".join(self.rng.choices(string.ascii_lowercase + string.digits, k=9))
        account = ConnectAccount(
            id=f"acct_mock_{int(time.time() * 1000)}_{suffix}",
            country=country,
            email=email,
        )
        self._accounts[account.id] = account
        logger.info(f"Created mock connect account {account.id} for {user_id}")
        return account

    def get_connect_account(self, account_id: str) -> ConnectAccount | None:
        return self._accounts.get(account_id)

    def create_account_link(self, account_id: str, return_url: str, refresh_url: str) -> str:
        """Onboarding link; the mock sends the user straight back."""
        return f"{return_url}?account_id={account_id}&mock=true"

    def initialize_venue_owner_account(self, user_id: UUID | str, country: str = "US") -> ConnectAccount:
        """
        Create a payout account for a venue owner and store its id on the user.

        An owner who already has an account gets the existing one back.

        Raises:
            UserNotFoundError: If the users row is missing
        """
        user_id_str = normalize_uuid(user_id)
        user = SupabaseClient.fetch_user(user_id_str)
        if not user:
            raise UserNotFoundError(user_id_str)

        existing = user.get("stripe_connect_id")
        if existing and existing in self._accounts:
            return self._accounts[existing]

        account = self.create_connect_account(user_id_str, user["email"], country)
        SupabaseClient.update_rows(
            "users", "id", user_id_str,
            {"stripe_connect_id": account.id, "updated_at": utc_now_iso()},
        )
        return account

    def get_venue_owner_account(self, user_id: UUID | str) -> ConnectAccount:
        """
        Raises:
            ConnectAccountNotFoundError: If the owner has no account
        """
        user_id_str = normalize_uuid(user_id)
        user = SupabaseClient.fetch_user(user_id_str) or {}
        account = self.get_connect_account(user.get("stripe_connect_id") or "")
        if account is None:
            raise ConnectAccountNotFoundError(user_id_str)
        return account


payment_service = PaymentService()
connect_service = MockConnectService()
