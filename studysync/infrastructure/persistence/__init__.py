from studysync.infrastructure.persistence.history_io import (
    HistoryImportError,
    export_history,
    import_history,
    merge_history,
)
from studysync.infrastructure.persistence.local_store import LocalHistoryStore

__all__ = [
    "HistoryImportError",
    "LocalHistoryStore",
    "export_history",
    "import_history",
    "merge_history",
]
