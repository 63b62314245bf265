"""Comment model: append-only discussion trail for a dispute."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from arbiter.database.base import Base, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from arbiter.models.dispute import Dispute


class Comment(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "comments"

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
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    # Private comments are arbitration notes hidden from the parties
    is_private: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="false"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    dispute: Mapped[Dispute] = relationship(
        "Dispute", back_populates="comments", lazy="noload"
    )

    __table_args__ = (Index("ix_comments_dispute_id", "dispute_id"),)
