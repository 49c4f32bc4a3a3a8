"""
Notifications module

In-app notifications with push delivery via a transactional outbox:
business transactions stage notification + outbox rows, and the
notifications_dispatch_outbox job (APScheduler) pushes them through FCM
with exponential-backoff retry.
"""

from .jobs import register_notification_jobs
from .router import router

__all__ = ["router", "register_notification_jobs"]
