"""Background workers."""

from wahoo.workers.sync_bridge import SyncBridge

__all__ = ["SyncBridge"]
