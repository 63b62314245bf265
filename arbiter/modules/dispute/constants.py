"""Dispute state machine, history action tags, and cache settings."""

from __future__ import annotations

from arbiter.models.enums import DisputeResolution, DisputeStatus, TransactionStatus

# Valid status transitions: from_status -> [allowed to_statuses]
VALID_DISPUTE_TRANSITIONS: dict[DisputeStatus, list[DisputeStatus]] = {
    DisputeStatus.OPEN: [
        DisputeStatus.UNDER_REVIEW,
        DisputeStatus.RESOLVED,
        DisputeStatus.REJECTED,
        DisputeStatus.CANCELED,
    ],
    DisputeStatus.UNDER_REVIEW: [
        DisputeStatus.UNDER_REVIEW,
        DisputeStatus.RESOLVED,
        DisputeStatus.REJECTED,
        DisputeStatus.CANCELED,
    ],
    DisputeStatus.RESOLVED: [],
    DisputeStatus.REJECTED: [],
    DisputeStatus.CANCELED: [],
}

# Terminal statuses (no further mutation possible)
TERMINAL_STATUSES: frozenset[DisputeStatus] = frozenset(
    {DisputeStatus.RESOLVED, DisputeStatus.REJECTED, DisputeStatus.CANCELED}
)
NON_TERMINAL_STATUSES: frozenset[DisputeStatus] = frozenset(
    {DisputeStatus.OPEN, DisputeStatus.UNDER_REVIEW}
)

# History action tags
HISTORY_CREATED = "created"
HISTORY_UPDATED = "updated"
HISTORY_ARBITRATOR_ASSIGNED = "arbitrator_assigned"
HISTORY_REVIEW_STARTED = "review_started"
HISTORY_RESOLVED = "resolved"
HISTORY_CANCELED = "canceled"
HISTORY_EVIDENCE_ADDED = "evidence_added"
HISTORY_COMMENT_ADDED = "comment_added"

# Transaction status applied when a case is resolved
RESOLUTION_TRANSACTION_STATUS: dict[DisputeResolution, TransactionStatus] = {
    DisputeResolution.IN_FAVOR_OF_INITIATOR: TransactionStatus.FAILED,
    DisputeResolution.IN_FAVOR_OF_RESPONDENT: TransactionStatus.COMPLETED,
    DisputeResolution.PARTIAL: TransactionStatus.COMPLETED,
}

# Fields only an admin may change through a generic update
ADMIN_ONLY_FIELDS: frozenset[str] = frozenset(
    {"resolution", "arbitrator_id", "resolution_notes", "action", "date_treated"}
)

# Cache key namespaces
CACHE_KEY_CASE = "dispute:{dispute_id}"
CACHE_KEY_STATS = "stats:{kind}:{tenant}:{arbitrator}:{from_date}:{to_date}"
