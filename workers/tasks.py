# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Background tasks for the marketplace.
#
# Tasks:
# - send_notification: Render and send one e-mail notification
# =============================================================================

import logging
from typing import Any

from workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="workers.tasks.send_notification")
def send_notification(self, notification: dict[str, Any]) -> bool:
    """
    Send an e-mail notification.

    Args:
        notification: A Notification serialized with model_dump(mode="json")

    Returns:
        True if the e-mail was delivered
    """
    from core.models.notification import Notification
    from core.services.notification_service import notification_service

    parsed = Notification(**notification)
    logger.info(f"Sending {parsed.type.value} notification to {parsed.to}")
    return notification_service.send_notification(parsed)
