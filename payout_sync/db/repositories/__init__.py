"""Repository exports."""

from .cabinet_repository import CabinetRepository
from .sync_order_repository import SyncOrderRepository
from .transaction_repository import TransactionRepository

__all__ = [
    "CabinetRepository",
    "SyncOrderRepository",
    "TransactionRepository",
]
