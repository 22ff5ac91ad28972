"""Database models for the payout sync job."""

from .cabinet import Cabinet
from .sync_order import SyncOrder, SyncOrderStatus
from .transaction import PayoutTransaction

__all__ = ["Cabinet", "SyncOrder", "SyncOrderStatus", "PayoutTransaction"]
