"""Export, import and merge of local history as JSON."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from studysync.core.time_utils import UTC
from studysync.domain.models import DocumentItem, HistoryItem, InterviewItem, item_label

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 100

_history_adapter: TypeAdapter[list[DocumentItem | InterviewItem]] = TypeAdapter(
    list[HistoryItem]
)


class HistoryImportError(ValueError):
    """Raised when an imported history file is not a valid history array."""


def export_history(items: Iterable[DocumentItem | InterviewItem]) -> str:
    """Serialize history to the pretty-printed camelCase JSON used by exported files."""
    payload = [item.to_wire() for item in items]
    return json.dumps(payload, indent=2, ensure_ascii=False)


def import_history(text: str) -> list[DocumentItem | InterviewItem]:
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = "Invalid file format or corrupted data"
        raise HistoryImportError(msg) from exc

    if not isinstance(raw, list):
        msg = "Import data must be an array"
        raise HistoryImportError(msg)

    normalized: list[Any] = []
    for position, entry in enumerate(raw):
        if not isinstance(entry, dict):
            msg = f"Invalid history item structure at index {position}"
            raise HistoryImportError(msg)
        # Files exported before interviews existed carry no type tag.
        if "type" not in entry and "fileName" in entry:
            entry = {**entry, "type": "document"}
        normalized.append(entry)

    try:
        items = _history_adapter.validate_python(normalized)
    except PydanticValidationError as exc:
        msg = f"Invalid history item structure: {exc.error_count()} validation error(s)"
        raise HistoryImportError(msg) from exc

    logger.info("history_imported", extra={"count": len(items)})
    return items


def _sort_key(item: DocumentItem | InterviewItem) -> float:
    try:
        parsed = datetime.fromisoformat(item.date.replace("Z", "+00:00"))
    except ValueError:
        return float("-inf")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.timestamp()


def merge_history(
    current: Sequence[DocumentItem | InterviewItem],
    imported: Sequence[DocumentItem | InterviewItem],
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> list[DocumentItem | InterviewItem]:
    """Merge two histories keyed by (label, date).

    Imported items replace current ones with the same key. The result is
    sorted newest first and truncated to ``limit``.
    """
    merged: dict[tuple[str, str], DocumentItem | InterviewItem] = {}
    for item in [*current, *imported]:
        merged[(item_label(item), item.date)] = item

    ordered = sorted(merged.values(), key=_sort_key, reverse=True)
    return ordered[:limit]
