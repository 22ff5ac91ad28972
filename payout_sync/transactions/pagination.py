"""
Paginated fetch of a cabinet's payout feed.

Walks pages in order and stops as soon as a page brings nothing the
store does not already know. The feed is assumed to be ordered newest
first; if the platform ever inserts older records out of order, they
can sit behind a fully known page and will be missed.

An empty page also ends the walk, since it brings nothing new. The feed
is not expected to return an empty page before a non-empty one; if it
did, the records after the gap would be missed the same way.
"""

import asyncio
from typing import List, Optional

import structlog

from payout_sync.db.store import SyncStore
from payout_sync.transactions.clients.base import APIError, RemoteTransaction, Session
from payout_sync.transactions.clients.gate_client import GateClient
from payout_sync.transactions.config import SyncConfig

logger = structlog.get_logger()


class TransactionPaginator:
    """Collects unseen transactions across feed pages."""

    def __init__(
        self, client: GateClient, store: SyncStore, config: Optional[SyncConfig] = None
    ):
        self.client = client
        self.store = store
        self.config = config or SyncConfig()

    async def fetch_new(self, session: Session, pages: int) -> List[RemoteTransaction]:
        """
        Fetch up to ``pages`` pages and return the records not yet stored.

        Pages are requested one after another with ``page_delay`` between
        them. A page that fails to load is logged and skipped.

        Args:
            session: Authenticated session
            pages: Maximum number of pages to read

        Returns:
            Unseen transactions in feed order
        """
        collected: List[RemoteTransaction] = []

        for page in range(1, pages + 1):
            if page > 1:
                await asyncio.sleep(self.config.page_delay)

            logger.info("pagination.fetching_page", page=page, pages=pages)
            try:
                transactions = await self.client.fetch_payouts_page(session, page)
            except APIError as e:
                logger.warning(
                    "pagination.page_failed",
                    page=page,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            existing = await self.store.find_existing_external_ids(
                tx.id for tx in transactions
            )
            unseen = [tx for tx in transactions if tx.id not in existing]
            collected.extend(unseen)

            logger.info(
                "pagination.page_fetched",
                page=page,
                count=len(transactions),
                new=len(unseen),
            )

            if not unseen:
                logger.info("pagination.caught_up", page=page)
                break

        return collected
