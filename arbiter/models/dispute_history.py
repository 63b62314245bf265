"""DisputeHistory model: append-only audit log of lifecycle actions."""

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


class DisputeHistory(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "dispute_history"

    dispute_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("disputes.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("api_keys.id", ondelete="CASCADE"),
        nullable=False,
    )
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    details: Mapped[str | None] = mapped_column(Text)

    action_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    dispute: Mapped[Dispute] = relationship(
        "Dispute", back_populates="history", lazy="noload"
    )

    __table_args__ = (Index("ix_dispute_history_dispute_id", "dispute_id"),)
