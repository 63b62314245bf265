"""Email notifications produced by lifecycle transitions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class EmailNotification:
    email: str
    subject: str
    message: str


def _humanize(value: Any) -> str:
    text = getattr(value, "value", value)
    return str(text).replace("_", " ")


def dispute_created(dispute: Any) -> list[EmailNotification]:
    return [
        EmailNotification(
            email=dispute.initiator_email,
            subject="Dispute Created",
            message=(
                f"Your dispute {dispute.id} ({dispute.reason}) has been opened. "
                "You will be notified as it progresses."
            ),
        ),
        EmailNotification(
            email=dispute.counterparty_email,
            subject="Dispute Raised Against You",
            message=(
                f"A dispute {dispute.id} ({dispute.reason}) has been raised by "
                f"{dispute.initiator_email}. You may submit evidence while it is open."
            ),
        ),
    ]


def arbitrator_assigned(dispute: Any, arbitrator_email: str) -> list[EmailNotification]:
    return [
        EmailNotification(
            email=arbitrator_email,
            subject="Dispute Assigned",
            message=f"You have been assigned as arbitrator for dispute {dispute.id}.",
        )
    ]


def dispute_resolved(dispute: Any, arbitrator_email: str | None) -> list[EmailNotification]:
    outcome = _humanize(dispute.resolution)
    recipients = [dispute.initiator_email, dispute.counterparty_email]
    if arbitrator_email:
        recipients.append(arbitrator_email)
    return [
        EmailNotification(
            email=email,
            subject="Dispute Resolved",
            message=f"Dispute {dispute.id} has been resolved: {outcome}.",
        )
        for email in recipients
    ]


def stale_case_reminder(dispute_id: Any, arbitrator_email: str, days: int) -> EmailNotification:
    return EmailNotification(
        email=arbitrator_email,
        subject="Dispute Action Required",
        message=f"Dispute {dispute_id} has had no activity for {days} days. Please review.",
    )
