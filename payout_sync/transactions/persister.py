"""
Duplicate-safe persistence of fetched transactions.

Normalizes platform records into table columns and inserts the ones a
cabinet does not have yet.
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog

from payout_sync.db.models import PayoutTransaction
from payout_sync.db.store import SyncStore
from payout_sync.transactions.clients.base import RemoteTransaction

logger = structlog.get_logger()


class TransactionPersister:
    """Stores transactions once per (external_id, cabinet_id)."""

    def __init__(self, store: SyncStore, local_time_offset_hours: int = 3):
        """
        Initialize the persister.

        Args:
            store: Store handle
            local_time_offset_hours: Shift applied to approval/expiry timestamps
        """
        self.store = store
        self.local_time_offset = timedelta(hours=local_time_offset_hours)

    async def save(
        self, transactions: List[RemoteTransaction], cabinet_id: int
    ) -> List[PayoutTransaction]:
        """
        Insert the transactions the cabinet does not have yet.

        Existing keys are read in one query. Inserts run concurrently and
        independently; all of them settle before this returns.

        Args:
            transactions: Fetched transactions
            cabinet_id: Owning cabinet

        Returns:
            Newly created rows

        Raises:
            Exception: The first insert failure, after every insert settled
        """
        existing = await self.store.find_cabinet_external_ids(cabinet_id)
        logger.info(
            "storage.existing_loaded", cabinet_id=cabinet_id, existing=len(existing)
        )

        fresh: List[RemoteTransaction] = []
        seen = set(existing)
        for tx in transactions:
            if tx.id in seen:
                continue
            seen.add(tx.id)
            fresh.append(tx)

        if not fresh:
            logger.info("storage.nothing_new", cabinet_id=cabinet_id)
            return []

        results = await asyncio.gather(
            *(self._insert(tx, cabinet_id) for tx in fresh),
            return_exceptions=True,
        )

        saved = [r for r in results if isinstance(r, PayoutTransaction)]
        failures = [r for r in results if isinstance(r, BaseException)]
        for error in failures:
            logger.error(
                "storage.failed",
                cabinet_id=cabinet_id,
                error=str(error),
                error_type=type(error).__name__,
            )

        logger.info(
            "storage.complete",
            cabinet_id=cabinet_id,
            stored=len(saved),
            failed=len(failures),
            total=len(existing) + len(saved),
        )

        if failures:
            raise failures[0]
        return saved

    async def _insert(self, tx: RemoteTransaction, cabinet_id: int) -> PayoutTransaction:
        return await self.store.create_transaction(**self.extract_fields(tx, cabinet_id))

    def extract_fields(self, tx: RemoteTransaction, cabinet_id: int) -> Dict[str, Any]:
        """
        Split a platform record into table columns.

        Args:
            tx: Platform transaction
            cabinet_id: Owning cabinet

        Returns:
            Keyword arguments for ``PayoutTransaction``
        """
        return {
            "external_id": int(tx.id),
            "payment_method_id": int(tx.payment_method_id),
            "wallet": tx.wallet,
            "amount": decimal_safe(tx.amount),
            "total": decimal_safe(tx.total),
            "status": tx.status,
            "approved_at": self._to_local_time(tx.approved_at),
            "expired_at": self._to_local_time(tx.expired_at),
            "created_at_external": tx.created_at,
            "updated_at_external": tx.updated_at,
            "extra_data": json.dumps(decimal_safe(tx.extra_fields), ensure_ascii=False),
            "cabinet_id": cabinet_id,
        }

    def _to_local_time(self, value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        return parse_timestamp(value) + self.local_time_offset


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def decimal_safe(value: Any) -> Any:
    """
    Return ``value`` with every non-integer number as an exact decimal string.

    Works recursively through dicts and lists so nested amount structures
    survive JSON storage without float rounding.
    """
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, float):
        return format(Decimal(repr(value)), "f")
    if isinstance(value, dict):
        return {str(k): decimal_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [decimal_safe(v) for v in value]
    return value
