"""Remote store integration: HTTP client and local-to-remote sync."""

from studysync.adapters.remote_store.client import RemoteStoreClient, RemoteStoreError
from studysync.adapters.remote_store.sync_service import StudySyncService

__all__ = ["RemoteStoreClient", "RemoteStoreError", "StudySyncService"]
