"""Dispute model: a contested transaction moving through the lifecycle."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from arbiter.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from arbiter.models.enums import DisputeAction, DisputeResolution, DisputeStatus

if TYPE_CHECKING:
    from arbiter.models.api_key import ApiKey
    from arbiter.models.comment import Comment
    from arbiter.models.dispute_history import DisputeHistory
    from arbiter.models.evidence import Evidence
    from arbiter.models.transaction import Transaction


def _pg_enum(enum_cls, name: str) -> SQLAlchemyEnum:
    return SQLAlchemyEnum(
        enum_cls,
        name=name,
        create_type=False,
        values_callable=lambda e: [m.value for m in e],
    )


class Dispute(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "disputes"

    # Null only on legacy rows created before tenancy existed
    business_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE")
    )

    # Links
    transaction_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("transactions.id", ondelete="SET NULL")
    )

    # Parties
    initiator_email: Mapped[str] = mapped_column(String(255), nullable=False)
    counterparty_email: Mapped[str] = mapped_column(String(255), nullable=False)
    initiator_profile_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="RESTRICT")
    )
    counterparty_profile_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="RESTRICT")
    )
    created_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("api_keys.id", ondelete="CASCADE"),
        nullable=False,
    )
    arbitrator_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("api_keys.id", ondelete="SET NULL")
    )

    # Classification
    reason: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(15, 2))

    # Transaction snapshot
    session_id: Mapped[str | None] = mapped_column(String(255))
    source_account_name: Mapped[str | None] = mapped_column(String(255))
    source_bank: Mapped[str | None] = mapped_column(String(255))
    beneficiary_account_name: Mapped[str | None] = mapped_column(String(255))
    beneficiary_bank: Mapped[str | None] = mapped_column(String(255))

    # Lifecycle
    status: Mapped[DisputeStatus] = mapped_column(
        _pg_enum(DisputeStatus, "disputestatus"),
        nullable=False,
        server_default="open",
    )
    resolution: Mapped[DisputeResolution | None] = mapped_column(
        _pg_enum(DisputeResolution, "disputeresolution")
    )
    resolution_notes: Mapped[str | None] = mapped_column(Text)
    resolution_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    action: Mapped[DisputeAction | None] = mapped_column(
        _pg_enum(DisputeAction, "disputeaction")
    )
    date_treated: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Relationships
    transaction: Mapped[Transaction | None] = relationship("Transaction", lazy="noload")
    arbitrator: Mapped[ApiKey | None] = relationship(
        "ApiKey", foreign_keys=[arbitrator_id], lazy="noload"
    )
    evidence: Mapped[list[Evidence]] = relationship(
        "Evidence", back_populates="dispute", lazy="noload", cascade="all, delete-orphan"
    )
    comments: Mapped[list[Comment]] = relationship(
        "Comment", back_populates="dispute", lazy="noload", cascade="all, delete-orphan"
    )
    history: Mapped[list[DisputeHistory]] = relationship(
        "DisputeHistory", back_populates="dispute", lazy="noload", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_disputes_business_id", "business_id"),
        Index("ix_disputes_transaction_id", "transaction_id", postgresql_where="transaction_id IS NOT NULL"),
        Index("ix_disputes_status", "status"),
        Index("ix_disputes_arbitrator_id", "arbitrator_id"),
        Index("ix_disputes_initiator_profile_id", "initiator_profile_id"),
        Index("ix_disputes_counterparty_profile_id", "counterparty_profile_id"),
    )
