"""
Sync order processing.

Runs one order at a time: claim it, resolve its cabinets, then log in,
page through the feed and store new transactions for each cabinet in
turn. A failing cabinet is recorded in the order result; a failing
order is marked FAILED.
"""

from typing import Any, Dict, List, Optional, Sequence

import structlog

from payout_sync.db.models import Cabinet, SyncOrder, SyncOrderStatus
from payout_sync.db.store import SyncStore
from payout_sync.transactions.clients.gate_client import GateClient
from payout_sync.transactions.config import SyncConfig
from payout_sync.transactions.pagination import TransactionPaginator
from payout_sync.transactions.persister import TransactionPersister

logger = structlog.get_logger()


def determine_pages(pages: Optional[Sequence[int]], cabinet_index: int, default: int = 10) -> int:
    """
    Pages to fetch for the cabinet at ``cabinet_index``.

    An empty list means ``default``; otherwise the value at the index,
    with the last value repeating for indexes past the end.
    """
    if not pages:
        return default
    return pages[min(cabinet_index, len(pages) - 1)]


class OrderProcessor:
    """Processes pending sync orders."""

    def __init__(
        self,
        store: SyncStore,
        client: GateClient,
        config: Optional[SyncConfig] = None,
        paginator: Optional[TransactionPaginator] = None,
        persister: Optional[TransactionPersister] = None,
    ):
        """
        Initialize the processor.

        Args:
            store: Store handle
            client: Platform client used for login and page fetches
            config: Sync configuration
            paginator: Feed paginator (built from client and store by default)
            persister: Transaction persister (built from store by default)
        """
        self.store = store
        self.client = client
        self.config = config or SyncConfig()
        self.paginator = paginator or TransactionPaginator(client, store, self.config)
        self.persister = persister or TransactionPersister(
            store, local_time_offset_hours=self.config.local_time_offset_hours
        )

    async def process_orders(self, orders: Sequence[SyncOrder]) -> int:
        """
        Process a batch of pending orders, one after another.

        An order that cannot even be recorded as FAILED is logged and
        skipped; the rest of the batch still runs.

        Args:
            orders: Orders found in PENDING

        Returns:
            Number of orders in the batch
        """
        logger.info("orders.batch_started", count=len(orders))
        for order in orders:
            try:
                await self.process_order(order)
            except Exception as e:
                logger.error(
                    "order.failed",
                    order_id=order.id,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
        return len(orders)

    async def process_order(self, order: SyncOrder) -> Optional[SyncOrderStatus]:
        """
        Run one order to a terminal state.

        Any failure after the order was picked up, including a failed
        claim or a failed COMPLETED write, marks it FAILED.

        Args:
            order: A PENDING order

        Returns:
            The terminal status, or None if the order was no longer PENDING

        Raises:
            StoreError: The FAILED state itself could not be written
        """
        with structlog.contextvars.bound_contextvars(order_id=order.id):
            try:
                if not await self.store.claim_order(order.id):
                    logger.warning("order.not_claimed")
                    return None

                logger.info(
                    "order.started", cabinet_id=order.cabinet_id, pages=order.pages
                )
                cabinets = await self.resolve_cabinets(order)
                results: List[Dict[str, Any]] = []
                for index, cabinet in enumerate(cabinets):
                    pages = determine_pages(order.pages, index, self.config.default_pages)
                    results.append(await self.sync_cabinet(cabinet, pages))

                await self.store.finish_order(
                    order.id, SyncOrderStatus.COMPLETED, results
                )
            except Exception as e:
                logger.error(
                    "order.failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
                await self.store.finish_order(
                    order.id, SyncOrderStatus.FAILED, {"error": str(e)}
                )
                return SyncOrderStatus.FAILED

            logger.info("order.completed", cabinets=len(results))
            return SyncOrderStatus.COMPLETED

    async def resolve_cabinets(self, order: SyncOrder) -> List[Cabinet]:
        """
        Cabinets an order applies to.

        Raises:
            CabinetNotFound: The order names a cabinet that does not exist
            NoCabinetsConfigured: The order targets all cabinets and there are none
        """
        if order.cabinet_id is not None:
            cabinet = await self.store.get_cabinet(order.cabinet_id)
            if cabinet is None:
                raise CabinetNotFound(f"Cabinet {order.cabinet_id} not found")
            return [cabinet]

        cabinets = await self.store.list_cabinets()
        if not cabinets:
            raise NoCabinetsConfigured("No cabinets found in the database")
        return cabinets

    async def sync_cabinet(self, cabinet: Cabinet, pages: int) -> Dict[str, Any]:
        """
        Sync one cabinet and describe the outcome.

        Errors are caught and reported in the returned entry.
        """
        with structlog.contextvars.bound_contextvars(cabinet_id=cabinet.id):
            logger.info("cabinet.started", login=cabinet.login, pages=pages)
            try:
                session = await self.client.login(cabinet.login, cabinet.password)
                transactions = await self.paginator.fetch_new(session, pages)
                saved = await self.persister.save(transactions, cabinet.id)
            except Exception as e:
                logger.error(
                    "cabinet.failed", error=str(e), error_type=type(e).__name__
                )
                return {"cabinet_id": cabinet.id, "error": str(e)}

            logger.info(
                "cabinet.completed", transactions=len(transactions), new=len(saved)
            )
            return {
                "cabinet_id": cabinet.id,
                "transactions": len(transactions),
                "new_transactions": len(saved),
            }


class CabinetResolutionError(Exception):
    """Base exception for orders whose cabinets cannot be resolved."""

    pass


class CabinetNotFound(CabinetResolutionError):
    """Raised when an order targets a cabinet that does not exist."""

    pass


class NoCabinetsConfigured(CabinetResolutionError):
    """Raised when an order targets all cabinets and none exist."""

    pass
