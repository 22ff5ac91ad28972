"""
Retry wrapper for store operations.

Retries an operation with exponential backoff while the database server
cannot be reached. Every other database error is raised at once.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)

from payout_sync.transactions.config import StoreRetryConfig

logger = structlog.get_logger()

T = TypeVar("T")

_UNREACHABLE_MARKERS = (
    "can't reach database server",
    "could not connect",
    "connection refused",
    "connection reset",
    "server closed the connection",
    "connection is closed",
    "unable to open database",
    "timeout expired",
)


def is_server_unreachable(error: BaseException) -> bool:
    """Tell whether ``error`` means the database server could not be reached."""
    if isinstance(error, (OSError, DisconnectionError, InterfaceError)):
        return True
    if isinstance(error, DBAPIError):
        if error.connection_invalidated:
            return True
        if isinstance(error.orig, OSError):
            return True
    if isinstance(error, OperationalError):
        message = str(error).lower()
        return any(marker in message for marker in _UNREACHABLE_MARKERS)
    return False


async def retry_store_operation(
    func: Callable[[], Awaitable[T]],
    config: StoreRetryConfig,
    operation_name: str = "store_operation",
) -> T:
    """
    Execute a store operation, retrying while the server is unreachable.

    Args:
        func: Async function to execute; called again on every attempt
        config: Retry configuration
        operation_name: Name for logging

    Returns:
        Function result

    Raises:
        StoreUnreachable: The server stayed unreachable after all retries
        StoreOperationFailed: Any other database error
    """
    delay = config.initial_delay
    retries_left = config.max_retries

    while True:
        try:
            return await func()
        except Exception as e:
            if not is_server_unreachable(e):
                if isinstance(e, SQLAlchemyError):
                    raise StoreOperationFailed(f"{operation_name} failed: {e}") from e
                raise

            if retries_left <= 0:
                logger.error(
                    "store.unreachable",
                    operation=operation_name,
                    attempts=config.max_retries + 1,
                    error=str(e),
                )
                raise StoreUnreachable(
                    f"{operation_name}: database server unreachable: {e}"
                ) from e

            logger.info(
                "store.retrying",
                operation=operation_name,
                delay_seconds=delay,
                retries_left=retries_left,
                error=str(e),
            )
            await asyncio.sleep(delay)
            retries_left -= 1
            delay *= config.exponential_base


class StoreError(Exception):
    """Base exception for store failures."""

    pass


class StoreUnreachable(StoreError):
    """Raised when the database server stays unreachable after retries."""

    pass


class StoreOperationFailed(StoreError):
    """Raised when a store operation fails for any other reason."""

    pass
