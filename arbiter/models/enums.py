"""Closed enumerations shared by models, schemas, and services."""

import enum


class ActorRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"
    ARBITRATOR = "arbitrator"


class DisputeStatus(str, enum.Enum):
    OPEN = "open"
    UNDER_REVIEW = "under_review"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    CANCELED = "canceled"


class DisputeResolution(str, enum.Enum):
    IN_FAVOR_OF_INITIATOR = "in_favor_of_initiator"
    IN_FAVOR_OF_RESPONDENT = "in_favor_of_respondent"
    PARTIAL = "partial"


class DisputeAction(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    DISPUTED = "disputed"
