"""
Background tasks for CatalogSync
"""

from .catalog_sync_task import CatalogSyncTask, SyncRunResult

__all__ = ["CatalogSyncTask", "SyncRunResult"]
