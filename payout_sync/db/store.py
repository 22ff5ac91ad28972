"""
Store handle used by the sync pipeline.

Each operation runs in its own unit of work, wrapped in the store
retry policy, so a retried attempt always starts on a fresh session.
"""

from typing import Any, Iterable, List, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payout_sync.db.models import Cabinet, PayoutTransaction, SyncOrder, SyncOrderStatus
from payout_sync.db.retry import retry_store_operation
from payout_sync.db.unit_of_work import UnitOfWork
from payout_sync.transactions.config import StoreRetryConfig


class SyncStore:
    """Store operations consumed by the sync pipeline."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        retry_config: Optional[StoreRetryConfig] = None,
    ):
        """
        Initialize the store.

        Args:
            session_factory: Factory producing database sessions
            retry_config: Retry policy for unreachable-server errors
        """
        self.session_factory = session_factory
        self.retry_config = retry_config or StoreRetryConfig()

    async def _run(self, operation_name: str, work):
        async def attempt():
            async with UnitOfWork(self.session_factory) as uow:
                return await work(uow)

        return await retry_store_operation(
            attempt, self.retry_config, operation_name=operation_name
        )

    # Sync orders

    async def find_pending_orders(self) -> List[SyncOrder]:
        return await self._run(
            "find_pending_orders", lambda uow: uow.sync_orders.get_pending()
        )

    async def claim_order(self, order_id: int) -> bool:
        return await self._run(
            "claim_order", lambda uow: uow.sync_orders.claim(order_id)
        )

    async def finish_order(
        self, order_id: int, status: SyncOrderStatus, processed: Any
    ) -> Optional[SyncOrder]:
        return await self._run(
            "finish_order",
            lambda uow: uow.sync_orders.finish(order_id, status, processed),
        )

    # Cabinets

    async def get_cabinet(self, cabinet_id: int) -> Optional[Cabinet]:
        return await self._run(
            "get_cabinet", lambda uow: uow.cabinets.get_by_id(cabinet_id)
        )

    async def list_cabinets(self) -> List[Cabinet]:
        return await self._run(
            "list_cabinets", lambda uow: uow.cabinets.get_all_for_sync()
        )

    # Transactions

    async def find_existing_external_ids(self, external_ids: Iterable[int]) -> Set[int]:
        ids = list(external_ids)
        return await self._run(
            "find_existing_external_ids",
            lambda uow: uow.transactions.get_existing_external_ids(ids),
        )

    async def find_cabinet_external_ids(self, cabinet_id: int) -> Set[int]:
        return await self._run(
            "find_cabinet_external_ids",
            lambda uow: uow.transactions.get_external_ids_for_cabinet(cabinet_id),
        )

    async def create_transaction(self, **fields: Any) -> PayoutTransaction:
        return await self._run(
            "create_transaction", lambda uow: uow.transactions.create(**fields)
        )
