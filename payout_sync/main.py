from __future__ import annotations

import asyncio
import signal
import sys

import httpx
import structlog

from payout_sync.core.config import Settings, get_settings
from payout_sync.core.logging import configure_logging
from payout_sync.db.base import create_engine_from_url, create_session_factory
from payout_sync.db.store import SyncStore
from payout_sync.transactions.clients.fetcher import RateLimitedFetcher
from payout_sync.transactions.clients.gate_client import GateClient
from payout_sync.transactions.config import SyncConfig, get_sync_config
from payout_sync.transactions.poller import SyncOrderPoller
from payout_sync.transactions.processor import OrderProcessor

logger = structlog.get_logger(__name__)


def build_poller(
    config: SyncConfig, store: SyncStore, http_client: httpx.AsyncClient
) -> SyncOrderPoller:
    """Wire the sync pipeline around an existing store and HTTP client."""
    fetcher = RateLimitedFetcher(http_client, config.rate_limit)
    client = GateClient(fetcher, config)
    processor = OrderProcessor(store, client, config)
    return SyncOrderPoller(store, processor, config)


async def run(settings: Settings | None = None) -> int:
    """Run the sync job until SIGINT or SIGTERM."""
    settings = settings or get_settings()
    configure_logging(settings.ENV, settings.DEBUG)

    logger.info("sync.starting", env=settings.ENV, base_url=settings.GATE_BASE_URL)

    config = get_sync_config(settings)
    engine = create_engine_from_url(settings.get_database_url())
    store = SyncStore(create_session_factory(engine), config.store_retry)

    try:
        async with httpx.AsyncClient(timeout=config.request_timeout) as http_client:
            poller = build_poller(config, store, http_client)

            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, poller.request_stop, sig.name)

            try:
                await poller.start()
                await poller.wait_stopped()
                await poller.stop()
            finally:
                for sig in (signal.SIGINT, signal.SIGTERM):
                    loop.remove_signal_handler(sig)
    finally:
        await engine.dispose()

    logger.info("sync.stopped")
    return 0


def main() -> None:
    try:
        sys.exit(asyncio.run(run()))
    except Exception as e:
        logger.critical("sync.crashed", error=str(e), exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
