"""Transaction model: the payment a dispute is raised against."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, Numeric, String, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from arbiter.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from arbiter.models.enums import TransactionStatus


class Transaction(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "transactions"

    session_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False)
    source_account_name: Mapped[str] = mapped_column(String(100), nullable=False)
    source_bank: Mapped[str] = mapped_column(String(100), nullable=False)
    beneficiary_account_name: Mapped[str] = mapped_column(String(100), nullable=False)
    beneficiary_bank: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[TransactionStatus] = mapped_column(
        SQLAlchemyEnum(
            TransactionStatus,
            name="transactionstatus",
            create_type=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        server_default="pending",
    )
    transaction_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    channel_code: Mapped[str | None] = mapped_column(String(50))
    destination_node: Mapped[str | None] = mapped_column(String(100))

    __table_args__ = (Index("ix_transactions_status", "status"),)
