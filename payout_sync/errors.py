"""Exceptions raised by the sync pipeline, gathered in one place."""

from payout_sync.db.retry import StoreError, StoreOperationFailed, StoreUnreachable
from payout_sync.transactions.clients.base import (
    APIError,
    AuthenticationFailed,
    RateLimited,
    RequestFailed,
    UnexpectedResponseShape,
)
from payout_sync.transactions.processor import (
    CabinetNotFound,
    CabinetResolutionError,
    NoCabinetsConfigured,
)

__all__ = [
    "APIError",
    "RateLimited",
    "RequestFailed",
    "AuthenticationFailed",
    "UnexpectedResponseShape",
    "CabinetResolutionError",
    "CabinetNotFound",
    "NoCabinetsConfigured",
    "StoreError",
    "StoreUnreachable",
    "StoreOperationFailed",
]
