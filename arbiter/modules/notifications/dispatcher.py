"""NotificationDispatcher: post-commit, fire-and-forget email hand-off."""

import logging
from collections.abc import Iterable

from arbiter.modules.notifications.messages import EmailNotification

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Hands committed-transition emails to the Celery ``send_email`` task.

    Call ``dispatch`` only after the unit of work has committed. Enqueue
    failures are logged and swallowed; they never fail the transition.
    """

    async def dispatch(self, notifications: Iterable[EmailNotification]) -> int:
        """Enqueue each notification; return how many were handed off."""
        from arbiter.modules.notifications.tasks import send_email

        queued = 0
        for notification in notifications:
            if not notification.email:
                continue
            try:
                send_email.delay(
                    notification.email, notification.subject, notification.message
                )
                queued += 1
            except Exception:
                logger.exception(
                    "Failed to enqueue notification '%s' to %s",
                    notification.subject,
                    notification.email,
                )
        return queued


_dispatcher: NotificationDispatcher | None = None


def get_notifier() -> NotificationDispatcher:
    """FastAPI dependency returning the process-wide dispatcher."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher()
    return _dispatcher
