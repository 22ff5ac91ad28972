"""
Payout transaction synchronization.

This module logs cabinets into the payout platform, pages through their
payout feeds and stores new transactions once per cabinet. Entry points:
``poller.SyncOrderPoller`` and ``processor.OrderProcessor``.
"""
