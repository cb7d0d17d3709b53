"""Local-to-remote synchronization engine."""

from studysync.adapters.remote_store.sync.classifier import DuplicateClassifier
from studysync.adapters.remote_store.sync.errors import ErrorKind, SyncError, classify_error
from studysync.adapters.remote_store.sync.hashing import fingerprint, legacy_fingerprint
from studysync.adapters.remote_store.sync.orchestrator import SyncOrchestrator
from studysync.adapters.remote_store.sync.retry import RetryExecutor, RetryPolicy, SyncPolicies
from studysync.adapters.remote_store.sync.uploaders import ItemUploader

__all__ = [
    "DuplicateClassifier",
    "ErrorKind",
    "ItemUploader",
    "RetryExecutor",
    "RetryPolicy",
    "SyncError",
    "SyncOrchestrator",
    "SyncPolicies",
    "classify_error",
    "fingerprint",
    "legacy_fingerprint",
]
