# =============================================================================
# core/models/notification.py - Notification Schemas
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    BOOKING_CREATED = "booking_created"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_CANCELLED = "booking_cancelled"
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_FAILED = "payment_failed"
    VENUE_OWNER_NOTIFICATION = "venue_owner_notification"
    VENDOR_NOTIFICATION = "vendor_notification"


class Notification(BaseModel):
    """
    One e-mail to send.

    `data` holds the template variables (vendor_name, venue_name, ...).
    Serializable with model_dump() so it can travel through Celery.
    """

    to: str = Field(..., min_length=3)
    type: NotificationType
    data: dict[str, Any] = Field(default_factory=dict)
    user_id: str | None = None


class EmailTemplate(BaseModel):
    subject: str
    html: str
    text: str


class SentEmail(BaseModel):
    to: str
    subject: str
    html: str
    text: str
    timestamp: datetime
    delivered: bool = True
