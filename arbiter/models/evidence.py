"""Evidence model: append-only supporting material for a dispute."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from arbiter.database.base import Base, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from arbiter.models.dispute import Dispute


class Evidence(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "evidence"

    dispute_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("disputes.id", ondelete="CASCADE"),
        nullable=False,
    )
    submitted_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("api_keys.id", ondelete="CASCADE"),
        nullable=False,
    )
    evidence_type: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    file_path: Mapped[str | None] = mapped_column(String(255))
    file_name: Mapped[str | None] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    dispute: Mapped[Dispute] = relationship(
        "Dispute", back_populates="evidence", lazy="noload"
    )

    __table_args__ = (Index("ix_evidence_dispute_id", "dispute_id"),)
