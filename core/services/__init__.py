# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .storage_service import StorageService
from .user_service import UserService
from .verification_service import VerificationService
from .listing_service import ListingService
from .booking_service import BookingService
from .payment_service import MockConnectService, MockPaymentGateway, PaymentService
from .notification_service import MockEmailSender, NotificationService
from .dashboard_service import DashboardService

__all__ = [
    "StorageService",
    "UserService",
    "VerificationService",
    "ListingService",
    "BookingService",
    "MockPaymentGateway",
    "PaymentService",
    "MockConnectService",
    "MockEmailSender",
    "NotificationService",
    "DashboardService",
]
