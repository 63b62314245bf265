"""Celery tasks for email delivery and stale-case reminders."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import select

from arbiter.config import settings
from arbiter.database.engine import async_session
from arbiter.models.api_key import ApiKey
from arbiter.models.dispute import Dispute
from arbiter.modules.dispute.constants import NON_TERMINAL_STATUSES
from arbiter.modules.notifications.email_client import EmailClient
from arbiter.modules.notifications.messages import stale_case_reminder
from celery_app import celery

logger = logging.getLogger(__name__)


async def _send_email_async(email: str, subject: str, message: str) -> None:
    client = EmailClient()
    try:
        await client.send(email, subject, message)
    finally:
        await client.aclose()


async def _remind_stale_disputes_async() -> dict:
    """Email the arbitrator of every active dispute idle for ``stale_dispute_days``."""
    from arbiter.modules.notifications.dispatcher import NotificationDispatcher

    stats = {"checked": 0, "reminded": 0, "errors": 0}
    cutoff = datetime.now(UTC) - timedelta(days=settings.stale_dispute_days)

    async with async_session() as session:
        result = await session.execute(
            select(Dispute.id, ApiKey.email)
            .join(ApiKey, Dispute.arbitrator_id == ApiKey.id)
            .where(
                Dispute.status.in_(NON_TERMINAL_STATUSES),
                Dispute.updated_at < cutoff,
            )
        )
        rows = list(result.all())

    stats["checked"] = len(rows)
    dispatcher = NotificationDispatcher()
    for dispute_id, arbitrator_email in rows:
        try:
            notification = stale_case_reminder(
                dispute_id, arbitrator_email, settings.stale_dispute_days
            )
            stats["reminded"] += await dispatcher.dispatch([notification])
        except Exception:
            logger.exception("Error sending stale reminder for dispute %s", dispute_id)
            stats["errors"] += 1

    return stats


@celery.task(
    name="arbiter.modules.notifications.tasks.send_email",
    bind=True,
    max_retries=3,
)
def send_email(self, email: str, subject: str, message: str) -> None:
    """Deliver one email through the mail API."""
    try:
        asyncio.run(_send_email_async(email, subject, message))
    except Exception as exc:
        logger.exception("send_email failed for %s", email)
        raise self.retry(exc=exc, countdown=60)


@celery.task(name="arbiter.modules.notifications.tasks.remind_stale_disputes")
def remind_stale_disputes():
    """Remind arbitrators about disputes with no recent activity."""
    stats = asyncio.run(_remind_stale_disputes_async())
    logger.info("remind_stale_disputes complete: %s", stats)
    return stats
