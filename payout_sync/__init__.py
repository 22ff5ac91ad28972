"""Synchronization job for payout platform transactions."""

__version__ = "0.1.0"
