from __future__ import annotations

from .remote_store import RemoteStoreConfig, SyncPolicyConfig
from .settings import AppConfig, RuntimeConfig, Settings, load_config
from .storage import CacheConfig, LocalStoreConfig, ServerConfig

__all__ = [
    "AppConfig",
    "CacheConfig",
    "LocalStoreConfig",
    "RemoteStoreConfig",
    "RuntimeConfig",
    "ServerConfig",
    "Settings",
    "SyncPolicyConfig",
    "load_config",
]
