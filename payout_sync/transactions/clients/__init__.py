"""Payout platform API clients."""

from .base import RemoteTransaction, Session
from .fetcher import RateLimitedFetcher
from .gate_client import GateClient

__all__ = ["RemoteTransaction", "Session", "RateLimitedFetcher", "GateClient"]
