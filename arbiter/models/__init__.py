# Import all models so SQLAlchemy metadata is complete
from arbiter.models.api_key import ApiKey, WhitelistedIp
from arbiter.models.business import Business
from arbiter.models.comment import Comment
from arbiter.models.dispute import Dispute
from arbiter.models.dispute_history import DisputeHistory
from arbiter.models.enums import (
    ActorRole,
    DisputeAction,
    DisputeResolution,
    DisputeStatus,
    TransactionStatus,
)
from arbiter.models.evidence import Evidence
from arbiter.models.profile import Profile
from arbiter.models.transaction import Transaction

__all__ = [
    "ActorRole",
    "ApiKey",
    "Business",
    "Comment",
    "Dispute",
    "DisputeAction",
    "DisputeHistory",
    "DisputeResolution",
    "DisputeStatus",
    "Evidence",
    "Profile",
    "Transaction",
    "TransactionStatus",
    "WhitelistedIp",
]
