# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and task definitions for
# background delivery of e-mail notifications.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (send_notification)
# - config.py: Worker-specific settings
#
# Usage:
#   # Start worker
#   celery -A workers.celery_app worker -Q notifications,default --loglevel=info
#
#   # Submit task (from API)
#   from workers.tasks import send_notification
#   send_notification.delay(notification.model_dump(mode="json"))
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
