# =============================================================================
# core/services/notification_service.py - E-mail Notifications
# =============================================================================
# Renders marketplace e-mails and hands them to a mock sender.
#
# Delivery is mocked: MockEmailSender keeps every message in an in-memory
# outbox and reports success with probability MOCK_EMAIL_SUCCESS_RATE.
#
# Services don't send directly; they call the notify_* helpers, which queue
# the Celery task workers.tasks.send_notification. With
# CELERY_TASK_ALWAYS_EAGER the task runs inline.
# =============================================================================

import html
import logging
import random
import time
from datetime import datetime, timezone
from typing import Any, Callable

from app.config import settings
from core.models.notification import EmailTemplate, Notification, NotificationType, SentEmail

logger = logging.getLogger(__name__)


# =============================================================================
# Templates
# =============================================================================

def _html_page(heading: str, color: str, greeting: str, intro: str,
               details_title: str, details: list[tuple[str, Any]], outro: str) -> str:
    rows = "\n".join(
        f"      <p><strong>{html.escape(label)}:</strong> {html.escape(str(value))}</p>"
        for label, value in details
    )
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">\n'
        f'  <h2 style="color: {color};">{html.escape(heading)}</h2>\n'
        f"  <p>Hello {html.escape(str(greeting))},</p>\n"
        f"  <p>{html.escape(intro)}</p>\n"
        '  <div style="background: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;">\n'
        f"    <h3>{html.escape(details_title)}:</h3>\n"
        f"{rows}\n"
        "  </div>\n"
        f"  <p>{html.escape(outro)}</p>\n"
        f"  <p>Best regards,<br>{html.escape(settings.EMAIL_SENDER_NAME)}</p>\n"
        "</div>"
    )


def _text_page(heading: str, greeting: str, intro: str,
               details_title: str, details: list[tuple[str, Any]], outro: str) -> str:
    lines = [heading, "", f"Hello {greeting},", "", intro, "", f"{details_title}:"]
    lines += [f"- {label}: {value}" for label, value in details]
    lines += ["", outro, "", "Best regards,", settings.EMAIL_SENDER_NAME]
    return "\n".join(lines)


def _render(subject: str, heading: str, color: str, greeting: str, intro: str,
            details_title: str, details: list[tuple[str, Any]], outro: str) -> EmailTemplate:
    return EmailTemplate(
        subject=subject,
        html=_html_page(heading, color, greeting, intro, details_title, details, outro),
        text=_text_page(heading, greeting, intro, details_title, details, outro),
    )


def _booking_details(data: dict[str, Any]) -> list[tuple[str, Any]]:
    return [
        ("Venue", data.get("venue_name")),
        ("Date", data.get("booking_date")),
        ("Time", f"{data.get('start_time')} - {data.get('end_time')}"),
        ("Duration", f"{data.get('total_hours')} hours"),
        ("Total Cost", f"${data.get('total_cost')}"),
    ]


def _booking_created(data: dict[str, Any]) -> EmailTemplate:
    return _render(
        f"Booking Request: {data.get('venue_name')}",
        "New Booking Request", "#333", data.get("vendor_name"),
        "Your booking request has been submitted successfully!",
        "Booking Details", _booking_details(data),
        "You'll receive another email once the venue owner confirms your booking.",
    )


def _booking_confirmed(data: dict[str, Any]) -> EmailTemplate:
    return _render(
        f"Booking Confirmed: {data.get('venue_name')}",
        "Booking Confirmed!", "#28a745", data.get("vendor_name"),
        "Great news! Your booking has been confirmed by the venue owner.",
        "Confirmed Booking", _booking_details(data),
        "Please arrive 15 minutes before your scheduled time to set up.",
    )


def _booking_cancelled(data: dict[str, Any]) -> EmailTemplate:
    return _render(
        f"Booking Cancelled: {data.get('venue_name')}",
        "Booking Cancelled", "#dc3545", data.get("vendor_name"),
        "Your booking has been cancelled.",
        "Cancelled Booking",
        [
            ("Venue", data.get("venue_name")),
            ("Date", data.get("booking_date")),
            ("Time", f"{data.get('start_time')} - {data.get('end_time')}"),
            ("Reason", data.get("cancellation_reason") or "No reason provided"),
        ],
        "If you have any questions, please contact support.",
    )


def _payment_received(data: dict[str, Any]) -> EmailTemplate:
    return _render(
        f"Payment Received: {data.get('venue_name')}",
        "Payment Successful!", "#28a745", data.get("vendor_name"),
        "Your payment has been processed successfully.",
        "Payment Details",
        [
            ("Venue", data.get("venue_name")),
            ("Amount", f"${data.get('amount')}"),
            ("Payment ID", data.get("payment_id")),
            ("Date", data.get("payment_date")),
        ],
        "Your booking is now confirmed and paid for.",
    )


def _payment_failed(data: dict[str, Any]) -> EmailTemplate:
    return _render(
        f"Payment Failed: {data.get('venue_name')}",
        "Payment Failed", "#dc3545", data.get("vendor_name"),
        "There was an issue processing your payment.",
        "Payment Details",
        [
            ("Venue", data.get("venue_name")),
            ("Amount", f"${data.get('amount')}"),
            ("Error", data.get("error_message")),
        ],
        "Please try again or contact support if the issue persists.",
    )


def _venue_owner_notification(data: dict[str, Any]) -> EmailTemplate:
    details = [
        ("Vendor", data.get("vendor_name")),
        ("Date", data.get("booking_date")),
        ("Time", f"{data.get('start_time')} - {data.get('end_time')}"),
        ("Duration", f"{data.get('total_hours')} hours"),
        ("Total Revenue", f"${data.get('total_revenue')}"),
    ]
    if data.get("special_requests"):
        details.append(("Special Requests", data["special_requests"]))
    return _render(
        f"New Booking Request: {data.get('venue_name')}",
        "New Booking Request", "#333", data.get("venue_owner_name"),
        "You have received a new booking request for your venue.",
        "Booking Details", details,
        "Please log in to your dashboard to review and respond to this request.",
    )


def _vendor_notification(data: dict[str, Any]) -> EmailTemplate:
    return _render(
        f"Booking Update: {data.get('venue_name')}",
        "Booking Update", "#333", data.get("vendor_name"),
        data.get("message") or "Your booking has been updated.",
        "Booking Details",
        [
            ("Venue", data.get("venue_name")),
            ("Date", data.get("booking_date")),
            ("Time", f"{data.get('start_time')} - {data.get('end_time')}"),
            ("Status", data.get("status")),
        ],
        "You can see the latest details in your dashboard.",
    )


EMAIL_TEMPLATES: dict[NotificationType, Callable[[dict[str, Any]], EmailTemplate]] = {
    NotificationType.BOOKING_CREATED: _booking_created,
    NotificationType.BOOKING_CONFIRMED: _booking_confirmed,
    NotificationType.BOOKING_CANCELLED: _booking_cancelled,
    NotificationType.PAYMENT_RECEIVED: _payment_received,
    NotificationType.PAYMENT_FAILED: _payment_failed,
    NotificationType.VENUE_OWNER_NOTIFICATION: _venue_owner_notification,
    NotificationType.VENDOR_NOTIFICATION: _vendor_notification,
}


def render_notification(notification: Notification) -> EmailTemplate:
    return EMAIL_TEMPLATES[notification.type](notification.data)


# =============================================================================
# Mock Sender
# =============================================================================

class MockEmailSender:
    """
    In-memory stand-in for an e-mail provider.

    Every message is kept in the outbox, delivered or not.
    """

    def __init__(
        self,
        success_rate: float | None = None,
        rng: random.Random | None = None,
        latency_seconds: float | None = None,
    ):
        self.success_rate = settings.MOCK_EMAIL_SUCCESS_RATE if success_rate is None else success_rate
        self.latency_seconds = settings.MOCK_EMAIL_LATENCY_SECONDS if latency_seconds is None else latency_seconds
        self.rng = rng or random.Random()
        self._outbox: list[SentEmail] = []

    def send_email(self, to: str, subject: str, html_body: str, text_body: str) -> bool:
        if self.latency_seconds > 0:
            time.sleep(self.latency_seconds)

        delivered = self.rng.random() < self.success_rate
        self._outbox.append(SentEmail(
            to=to,
            subject=subject,
            html=html_body,
            text=text_body,
            timestamp=datetime.now(timezone.utc),
            delivered=delivered,
        ))
        logger.info(f"Mock e-mail to {to}: '{subject}' (delivered={delivered})")
        return delivered

    def get_sent_emails(self) -> list[SentEmail]:
        return list(self._outbox)

    def clear_sent_emails(self) -> None:
        self._outbox.clear()


class NotificationService:
    """Renders and sends notifications."""

    def __init__(self, sender: MockEmailSender | None = None):
        self.sender = sender or MockEmailSender()

    def send_notification(self, notification: Notification) -> bool:
        """
        Render and send one notification.

        Returns:
            True if the sender accepted it. Failures are logged, never raised.
        """
        try:
            template = render_notification(notification)
            delivered = self.sender.send_email(
                notification.to,
                template.subject,
                template.html,
                template.text,
            )
        except Exception as e:
            logger.error(f"Error sending {notification.type.value} notification to {notification.to}: {e}")
            return False

        if delivered:
            logger.info(f"Notification {notification.type.value} sent to {notification.to}")
        else:
            logger.warning(f"Notification {notification.type.value} to {notification.to} was not delivered")
        return delivered

    def get_sent_emails(self) -> list[SentEmail]:
        return self.sender.get_sent_emails()

    def clear_sent_emails(self) -> None:
        self.sender.clear_sent_emails()


# Process-wide instance used by the Celery task
notification_service = NotificationService()


# =============================================================================
# Dispatch
# =============================================================================

def dispatch_notification(notification: Notification) -> bool:
    """
    Queue a notification on the Celery worker.

    Returns:
        True if queued (or, in eager mode, sent). Broker errors are logged
        and reported as False so a booking never fails on e-mail.
    """
    from workers.tasks import send_notification

    try:
        result = send_notification.delay(notification.model_dump(mode="json"))
    except Exception as e:
        logger.error(f"Failed to queue {notification.type.value} notification: {e}")
        return False

    if settings.CELERY_TASK_ALWAYS_EAGER:
        return bool(result.get())
    return True


def _booking_data(booking: dict[str, Any]) -> dict[str, Any]:
    return {
        "booking_date": booking.get("booking_date"),
        "start_time": booking.get("start_time"),
        "end_time": booking.get("end_time"),
        "total_hours": booking.get("total_hours"),
        "total_cost": booking.get("total_cost"),
    }


def notify_booking_created(vendor_email: str, vendor_name: str, venue_name: str,
                           booking: dict[str, Any]) -> bool:
    return dispatch_notification(Notification(
        to=vendor_email,
        type=NotificationType.BOOKING_CREATED,
        data={"vendor_name": vendor_name, "venue_name": venue_name, **_booking_data(booking)},
    ))


def notify_booking_confirmed(vendor_email: str, vendor_name: str, venue_name: str,
                             booking: dict[str, Any]) -> bool:
    return dispatch_notification(Notification(
        to=vendor_email,
        type=NotificationType.BOOKING_CONFIRMED,
        data={"vendor_name": vendor_name, "venue_name": venue_name, **_booking_data(booking)},
    ))


def notify_booking_cancelled(vendor_email: str, vendor_name: str, venue_name: str,
                             booking: dict[str, Any]) -> bool:
    return dispatch_notification(Notification(
        to=vendor_email,
        type=NotificationType.BOOKING_CANCELLED,
        data={
            "vendor_name": vendor_name,
            "venue_name": venue_name,
            "cancellation_reason": booking.get("cancellation_reason"),
            **_booking_data(booking),
        },
    ))


def notify_venue_owner(owner_email: str, owner_name: str, vendor_name: str,
                       venue_name: str, booking: dict[str, Any]) -> bool:
    data = _booking_data(booking)
    return dispatch_notification(Notification(
        to=owner_email,
        type=NotificationType.VENUE_OWNER_NOTIFICATION,
        data={
            "venue_owner_name": owner_name,
            "vendor_name": vendor_name,
            "venue_name": venue_name,
            "total_revenue": data.pop("total_cost"),
            "special_requests": booking.get("special_requests"),
            **data,
        },
    ))


def notify_vendor(vendor_email: str, vendor_name: str, venue_name: str,
                  booking: dict[str, Any], message: str) -> bool:
    return dispatch_notification(Notification(
        to=vendor_email,
        type=NotificationType.VENDOR_NOTIFICATION,
        data={
            "vendor_name": vendor_name,
            "venue_name": venue_name,
            "message": message,
            "status": booking.get("status"),
            **_booking_data(booking),
        },
    ))


def notify_payment_received(vendor_email: str, vendor_name: str, venue_name: str,
                            amount: float, payment_intent_id: str) -> bool:
    return dispatch_notification(Notification(
        to=vendor_email,
        type=NotificationType.PAYMENT_RECEIVED,
        data={
            "vendor_name": vendor_name,
            "venue_name": venue_name,
            "amount": amount,
            "payment_id": payment_intent_id,
            "payment_date": datetime.now(timezone.utc).isoformat(),
        },
    ))


def notify_payment_failed(vendor_email: str, vendor_name: str, venue_name: str,
                          amount: float, error_message: str) -> bool:
    return dispatch_notification(Notification(
        to=vendor_email,
        type=NotificationType.PAYMENT_FAILED,
        data={
            "vendor_name": vendor_name,
            "venue_name": venue_name,
            "amount": amount,
            "error_message": error_message,
        },
    ))
