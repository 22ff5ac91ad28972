"""One session, one transaction: the scope of every store operation."""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payout_sync.db.models import Cabinet, PayoutTransaction, SyncOrder
from payout_sync.db.repositories import (
    CabinetRepository,
    SyncOrderRepository,
    TransactionRepository,
)


class UnitOfWork:
    """
    Opens a session and exposes the sync job's repositories on it.

    Leaving the block commits; leaving it with an exception rolls back.
    The session is closed either way.

    Usage:
        async with UnitOfWork(session_factory) as uow:
            claimed = await uow.sync_orders.claim(order_id)
    """

    cabinets: CabinetRepository
    sync_orders: SyncOrderRepository
    transactions: TransactionRepository

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None

    async def __aenter__(self) -> "UnitOfWork":
        session = self._session_factory()
        self._session = session
        self.cabinets = CabinetRepository(Cabinet, session)
        self.sync_orders = SyncOrderRepository(SyncOrder, session)
        self.transactions = TransactionRepository(PayoutTransaction, session)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        session = self._session
        try:
            if exc_type is None:
                await session.commit()
            else:
                await session.rollback()
        finally:
            await session.close()
            self._session = None
