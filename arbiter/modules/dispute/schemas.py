"""Pydantic v2 schemas for the dispute and arbitration endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from arbiter.models.enums import (
    DisputeAction,
    DisputeResolution,
    DisputeStatus,
    TransactionStatus,
)
from arbiter.schemas.responses import PaginationMeta

# ---------------------------------------------------------------------------
# Dispute Create / Update
# ---------------------------------------------------------------------------


class DisputeCreate(BaseModel):
    transaction_id: uuid.UUID | None = None
    initiator_email: EmailStr
    counterparty_email: EmailStr
    reason: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    amount: Decimal | None = Field(None, ge=0, max_digits=15, decimal_places=2)
    # Only honoured for admin callers; business actors always use their own tenant
    business_id: uuid.UUID | None = None

    session_id: str | None = Field(None, max_length=255)
    source_account_name: str | None = Field(None, max_length=255)
    source_bank: str | None = Field(None, max_length=255)
    beneficiary_account_name: str | None = Field(None, max_length=255)
    beneficiary_bank: str | None = Field(None, max_length=255)

    # Optional initial evidence
    evidence_type: str | None = Field(None, max_length=50)
    evidence_description: str | None = None
    evidence_file_path: str | None = Field(None, max_length=255)
    evidence_file_name: str | None = Field(None, max_length=255)

    @model_validator(mode="after")
    def _evidence_pair(self) -> DisputeCreate:
        if bool(self.evidence_type) != bool(self.evidence_description):
            raise ValueError(
                "Both evidence_type and evidence_description are required if one is provided"
            )
        return self

    @property
    def has_evidence(self) -> bool:
        return bool(self.evidence_type and self.evidence_description)


class DisputeUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reason: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    amount: Decimal | None = Field(None, ge=0, max_digits=15, decimal_places=2)
    resolution: DisputeResolution | None = None
    resolution_notes: str | None = None
    action: DisputeAction | None = None
    date_treated: datetime | None = None
    arbitrator_id: uuid.UUID | None = None

    @model_validator(mode="after")
    def _validate_changes(self) -> DisputeUpdate:
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        if "reason" in self.model_fields_set and self.reason is None:
            raise ValueError("reason cannot be null")
        return self


# ---------------------------------------------------------------------------
# Evidence / Comment
# ---------------------------------------------------------------------------


class EvidenceCreate(BaseModel):
    evidence_type: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1)
    file_path: str | None = Field(None, max_length=255)
    file_name: str | None = Field(None, max_length=255)


class CommentCreate(BaseModel):
    comment: str = Field(..., min_length=1)
    is_private: bool = False


# ---------------------------------------------------------------------------
# Arbitration commands
# ---------------------------------------------------------------------------


class AssignArbitratorRequest(BaseModel):
    arbitrator_id: uuid.UUID


class ReviewRequest(BaseModel):
    notes: str | None = Field(None, max_length=2000)


class ResolveRequest(BaseModel):
    resolution: DisputeResolution
    resolution_notes: str = Field(..., min_length=1, max_length=2000)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class EvidenceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    dispute_id: uuid.UUID
    submitted_by: uuid.UUID
    evidence_type: str
    description: str | None = None
    file_path: str | None = None
    file_name: str | None = None
    created_at: datetime


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    dispute_id: uuid.UUID
    created_by: uuid.UUID
    comment: str
    is_private: bool
    created_at: datetime


class HistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    dispute_id: uuid.UUID
    created_by: uuid.UUID
    action: str
    details: str | None = None
    action_date: datetime


class DisputeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    business_id: uuid.UUID | None = None
    transaction_id: uuid.UUID | None = None
    initiator_email: str
    counterparty_email: str
    initiator_profile_id: uuid.UUID | None = None
    counterparty_profile_id: uuid.UUID | None = None
    created_by: uuid.UUID
    arbitrator_id: uuid.UUID | None = None
    reason: str
    description: str | None = None
    amount: Decimal | None = None
    session_id: str | None = None
    source_account_name: str | None = None
    source_bank: str | None = None
    beneficiary_account_name: str | None = None
    beneficiary_bank: str | None = None
    status: DisputeStatus
    resolution: DisputeResolution | None = None
    resolution_notes: str | None = None
    resolution_date: datetime | None = None
    action: DisputeAction | None = None
    date_treated: datetime | None = None
    created_at: datetime
    updated_at: datetime


class DisputeDetail(DisputeResponse):
    """A dispute with its evidence, comments, and history, newest first."""

    transaction_status: TransactionStatus | None = None
    arbitrator_email: str | None = None
    evidence: list[EvidenceResponse] = Field(default_factory=list)
    comments: list[CommentResponse] = Field(default_factory=list)
    history: list[HistoryResponse] = Field(default_factory=list)


class DisputeListResponse(BaseModel):
    items: list[DisputeResponse]
    pagination: PaginationMeta
