"""Sync order repository with status transitions."""

from datetime import datetime, timezone
from typing import Any, List, Optional

from payout_sync.db.models.sync_order import SyncOrder, SyncOrderStatus
from payout_sync.db.repository import BaseRepository


class SyncOrderRepository(BaseRepository[SyncOrder]):
    """Repository for SyncOrder with its lifecycle transitions."""

    async def get_pending(self) -> List[SyncOrder]:
        """Get all PENDING orders, oldest first."""
        return await self.filter(status=SyncOrderStatus.PENDING)

    async def claim(self, order_id: int, started_at: Optional[datetime] = None) -> bool:
        """
        Move an order from PENDING to IN_PROGRESS.

        The update only matches a row that is still PENDING, so an order
        that already left PENDING is never claimed twice.

        Args:
            order_id: Order ID
            started_at: Sync start timestamp (defaults to now)

        Returns:
            True if the order was claimed
        """
        updated = await self.update_where(
            {"id": order_id, "status": SyncOrderStatus.PENDING},
            status=SyncOrderStatus.IN_PROGRESS,
            start_sync_at=started_at or datetime.now(timezone.utc),
        )
        return updated > 0

    async def finish(
        self,
        order_id: int,
        status: SyncOrderStatus,
        processed: Any,
        ended_at: Optional[datetime] = None,
    ) -> Optional[SyncOrder]:
        """
        Record the terminal state of an order.

        Args:
            order_id: Order ID
            status: COMPLETED or FAILED
            processed: Result document to store
            ended_at: Sync end timestamp (defaults to now)

        Returns:
            Updated order
        """
        if status not in (SyncOrderStatus.COMPLETED, SyncOrderStatus.FAILED):
            raise ValueError(f"Not a terminal status: {status}")
        return await self.update(
            order_id,
            status=status,
            processed=processed,
            end_sync_at=ended_at or datetime.now(timezone.utc),
        )
