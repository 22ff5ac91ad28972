import sys
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

# Ensure project root is on sys.path so `import payout_sync` and
# `import tests.fixtures` work when running pytest from root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from payout_sync.db.base import (  # noqa: E402
    create_engine_from_url,
    create_session_factory,
    create_tables,
)
from payout_sync.db.store import SyncStore  # noqa: E402
from payout_sync.transactions.clients.fetcher import RateLimitedFetcher  # noqa: E402
from payout_sync.transactions.clients.gate_client import GateClient  # noqa: E402
from payout_sync.transactions.config import (  # noqa: E402
    RateLimitConfig,
    StoreRetryConfig,
    SyncConfig,
)
from tests.fixtures.gate_platform import GatePlatform  # noqa: E402

BASE_URL = "https://panel.test"


@pytest.fixture
def sync_config() -> SyncConfig:
    """Sync configuration with every delay shrunk for tests."""
    return SyncConfig(
        base_url=BASE_URL,
        page_delay=0,
        poll_interval=0.01,
        shutdown_grace=0.2,
        rate_limit=RateLimitConfig(initial_delay=0),
        store_retry=StoreRetryConfig(initial_delay=0),
    )


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """A fresh SQLite database per test."""
    engine = create_engine_from_url(f"sqlite+aiosqlite:///{tmp_path / 'sync.db'}")
    await create_tables(engine)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def store(session_factory, sync_config) -> SyncStore:
    return SyncStore(session_factory, sync_config.store_retry)


@pytest.fixture
def platform() -> GatePlatform:
    return GatePlatform()


@pytest_asyncio.fixture
async def http_client(platform):
    async with httpx.AsyncClient(transport=platform.transport()) as client:
        yield client


@pytest.fixture
def gate_client(http_client, sync_config) -> GateClient:
    return GateClient(RateLimitedFetcher(http_client, sync_config.rate_limit), sync_config)

