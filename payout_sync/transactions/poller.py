"""
Sync order poller.

Checks the store for pending sync orders on a fixed interval and hands
them to the order processor. One cycle runs at a time.
"""

import asyncio
import time
from typing import Optional

import structlog

from payout_sync.db.store import SyncStore
from payout_sync.transactions.config import SyncConfig
from payout_sync.transactions.processor import OrderProcessor

logger = structlog.get_logger()


class SyncOrderPoller:
    """
    Main polling service.

    Runs cycles until asked to stop. Stopping lets the cycle in flight
    finish within the configured grace period, then cancels it.
    """

    def __init__(
        self,
        store: SyncStore,
        processor: OrderProcessor,
        config: Optional[SyncConfig] = None,
    ):
        """
        Initialize the poller.

        Args:
            store: Store handle used to find pending orders
            processor: Order processor
            config: Sync configuration (poll interval, shutdown grace)
        """
        self.store = store
        self.processor = processor
        self.config = config or SyncConfig()

        self._running = False
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._last_idle_log: Optional[float] = None
        self.cycle_count = 0

        logger.info(
            "poller.initialized",
            poll_interval_seconds=self.config.poll_interval,
            shutdown_grace_seconds=self.config.shutdown_grace,
        )

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        """Start the polling loop in the background."""
        if self._running:
            logger.warning("poller.already_running")
            return

        self._running = True
        self._stop_event.clear()
        self._task = asyncio.create_task(self._polling_loop())
        logger.info("poller.started", interval_seconds=self.config.poll_interval)

    def request_stop(self, reason: str = "requested"):
        """Stop scheduling new cycles; the cycle in flight keeps running."""
        if not self._running:
            return
        logger.info("poller.stop_requested", reason=reason)
        self._running = False
        self._stop_event.set()

    async def stop(self):
        """Stop the polling loop, waiting up to the grace period for in-flight work."""
        self.request_stop()
        if self._task is None:
            return

        logger.info("poller.stopping", grace_seconds=self.config.shutdown_grace)
        try:
            await asyncio.wait_for(
                asyncio.shield(self._task), timeout=self.config.shutdown_grace
            )
        except asyncio.TimeoutError:
            logger.warning("poller.grace_expired")
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        self._task = None
        logger.info("poller.stopped", cycles=self.cycle_count)

    async def wait_stopped(self):
        """Wait until a stop has been requested."""
        await self._stop_event.wait()

    async def _polling_loop(self):
        """Main polling loop that runs on interval."""
        while self._running:
            try:
                await self.poll_once()
            except Exception as e:
                logger.error(
                    "polling_loop_error",
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )

            if not self._running:
                break
            await self._sleep_interval()

        logger.info("poller.loop_finished")

    async def _sleep_interval(self):
        """Sleep for the poll interval, waking early on a stop request."""
        try:
            await asyncio.wait_for(
                self._stop_event.wait(), timeout=self.config.poll_interval
            )
        except asyncio.TimeoutError:
            pass

    async def poll_once(self) -> int:
        """
        Run a single cycle.

        Returns:
            Number of orders handed to the processor
        """
        self.cycle_count += 1
        orders = await self.store.find_pending_orders()

        if not orders:
            self._log_idle()
            return 0

        logger.info("poll.orders_found", count=len(orders))
        return await self.processor.process_orders(orders)

    def _log_idle(self):
        now = time.monotonic()
        if (
            self._last_idle_log is None
            or now - self._last_idle_log >= self.config.idle_log_interval
        ):
            self._last_idle_log = now
            logger.info("poll.idle", waiting_for="sync orders")
