"""ApiKey and WhitelistedIp models: caller identities."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, UniqueConstraint, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from arbiter.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from arbiter.models.enums import ActorRole

if TYPE_CHECKING:
    from arbiter.models.business import Business


class ApiKey(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "api_keys"

    key: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[ActorRole] = mapped_column(
        SQLAlchemyEnum(
            ActorRole,
            name="actorrole",
            create_type=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        server_default="user",
    )
    # Null for platform admins and unbound arbitrators
    business_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("businesses.id", ondelete="CASCADE")
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="true"
    )

    business: Mapped[Business | None] = relationship("Business", lazy="noload")
    whitelisted_ips: Mapped[list[WhitelistedIp]] = relationship(
        "WhitelistedIp",
        back_populates="api_key",
        lazy="noload",
        cascade="all, delete-orphan",
    )

    __table_args__ = (Index("ix_api_keys_business_id", "business_id"),)


class WhitelistedIp(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "whitelisted_ips"

    api_key_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("api_keys.id", ondelete="CASCADE"),
        nullable=False,
    )
    ip_address: Mapped[str] = mapped_column(String(45), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    api_key: Mapped[ApiKey] = relationship(
        "ApiKey", back_populates="whitelisted_ips", lazy="noload"
    )

    __table_args__ = (
        UniqueConstraint("api_key_id", "ip_address", name="uq_whitelisted_ips_key_ip"),
        Index("ix_whitelisted_ips_api_key_id", "api_key_id"),
    )
