"""Payout transaction model for storing transactions synced from the platform."""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from payout_sync.db.base import Base


class PayoutTransaction(Base):
    """
    Stores payout transactions fetched from a cabinet's feed.

    A platform transaction is stored at most once per cabinet.
    """

    __tablename__ = "payout_transactions"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Transaction identification
    external_id: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        index=True,
        comment="Transaction id assigned by the platform",
    )
    cabinet_id: Mapped[int] = mapped_column(
        ForeignKey("cabinets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    payment_method_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # Transaction details
    wallet: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    amount: Mapped[Any] = mapped_column(
        JSON, nullable=True, comment="Amount structure, numbers as decimal strings"
    )
    total: Mapped[Any] = mapped_column(
        JSON, nullable=True, comment="Total structure, numbers as decimal strings"
    )
    status: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    # Timestamps (local display time)
    approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    expired_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Platform timestamps, kept verbatim
    created_at_external: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True
    )
    updated_at_external: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True
    )

    # Every other field of the platform record
    extra_data: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="JSON document of unrecognized fields"
    )

    # Audit fields
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint(
            "external_id", "cabinet_id", name="uq_payout_transaction_external_cabinet"
        ),
        Index("idx_payout_transaction_cabinet_status", "cabinet_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<PayoutTransaction(id={self.id}, external_id={self.external_id}, "
            f"cabinet_id={self.cabinet_id}, status={self.status})>"
        )
