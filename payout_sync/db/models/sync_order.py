"""Sync order model: a request to synchronize one or all cabinets."""

import enum
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from payout_sync.db.base import Base


class SyncOrderStatus(str, enum.Enum):
    """Lifecycle of a sync order."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class SyncOrder(Base):
    """
    A unit of synchronization work.

    Orders are created in PENDING by another system. The sync job claims
    them (IN_PROGRESS) and finishes them as COMPLETED or FAILED; terminal
    orders are never picked up again.
    """

    __tablename__ = "sync_orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    cabinet_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("cabinets.id", ondelete="CASCADE"),
        nullable=True,
        comment="Target cabinet; NULL means every cabinet",
    )
    status: Mapped[SyncOrderStatus] = mapped_column(
        Enum(SyncOrderStatus, name="sync_order_status"),
        nullable=False,
        default=SyncOrderStatus.PENDING,
        index=True,
    )
    pages: Mapped[list[int]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Pages to fetch per cabinet, last value repeats",
    )

    start_sync_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    end_sync_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    processed: Mapped[Optional[Any]] = mapped_column(
        JSON, nullable=True, comment="Per-cabinet results or the order error"
    )

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

    def __repr__(self) -> str:
        return (
            f"<SyncOrder(id={self.id}, cabinet_id={self.cabinet_id}, "
            f"status={self.status})>"
        )
