"""SQLite-backed local offline copy of the user's history."""

from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import peewee
from playhouse.sqlite_ext import SqliteExtDatabase
from pydantic import TypeAdapter

from studysync.domain.models import (
    DocumentItem,
    HistoryItem,
    InterviewItem,
    QuestionBank,
    item_label,
)
from studysync.infrastructure.persistence.history_io import (
    DEFAULT_HISTORY_LIMIT,
    merge_history,
)
from studysync.infrastructure.persistence.models import (
    ALL_MODELS,
    HistoryRecord,
    QuestionBankRecord,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

logger = logging.getLogger(__name__)

_history_item_adapter: TypeAdapter[DocumentItem | InterviewItem] = TypeAdapter(HistoryItem)
_binding_lock = threading.RLock()


class LocalHistoryStore:
    """Keeps documents, interviews and question banks on this machine.

    Peewee calls run in a worker thread through ``asyncio.to_thread``.
    """

    def __init__(self, path: str, *, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self.path = path
        self.history_limit = history_limit
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        self._database = SqliteExtDatabase(
            path,
            pragmas={"journal_mode": "wal", "synchronous": "normal"},
            check_same_thread=False,
        )

    @property
    def database(self) -> peewee.SqliteDatabase:
        return self._database

    def migrate(self) -> None:
        with self._bound(), self._database.connection_context():
            self._database.create_tables(ALL_MODELS, safe=True)
        logger.info("local_store_migrated", extra={"path": self.path})

    @contextmanager
    def _bound(self) -> Iterator[None]:
        # Models are module-level, so binding is serialized across stores.
        with _binding_lock, self._database.bind_ctx(ALL_MODELS):
            yield

    async def _execute(self, operation: Callable[..., Any], *args: Any) -> Any:
        def _op_wrapper() -> Any:
            with self._bound(), self._database.connection_context():
                return operation(*args)

        return await asyncio.to_thread(_op_wrapper)

    async def add_item(self, item: DocumentItem | InterviewItem) -> int:
        """Store one item, dropping the oldest ones beyond ``history_limit``."""
        limit = self.history_limit

        def _insert() -> int:
            with self._database.atomic():
                record = HistoryRecord.create(
                    item_type=item.type,
                    label=item_label(item),
                    date=item.date,
                    payload=item.to_wire(),
                )
                keep = (
                    HistoryRecord.select(HistoryRecord.id)
                    .order_by(HistoryRecord.id.desc())
                    .limit(limit)
                )
                HistoryRecord.delete().where(HistoryRecord.id.not_in(keep)).execute()
            return record.id

        record_id = await self._execute(_insert)
        logger.debug(
            "local_history_item_added",
            extra={"record_id": record_id, "item_type": item.type, "label": item_label(item)},
        )
        return record_id

    async def list_history(self, limit: int | None = None) -> list[DocumentItem | InterviewItem]:
        """History items, most recently added first."""

        def _select() -> list[dict[str, Any]]:
            query = HistoryRecord.select().order_by(HistoryRecord.id.desc())
            if limit is not None:
                query = query.limit(limit)
            return [record.payload for record in query]

        payloads = await self._execute(_select)
        return [_history_item_adapter.validate_python(payload) for payload in payloads]

    async def add_question_bank(self, bank: QuestionBank) -> int:
        def _insert() -> int:
            record = QuestionBankRecord.create(
                name=bank.name,
                payload=bank.to_wire(),
            )
            return record.id

        return await self._execute(_insert)

    async def list_question_banks(self) -> list[QuestionBank]:
        def _select() -> list[dict[str, Any]]:
            query = QuestionBankRecord.select().order_by(QuestionBankRecord.id.asc())
            return [record.payload for record in query]

        payloads = await self._execute(_select)
        return [QuestionBank.model_validate(payload) for payload in payloads]

    async def delete_item(self, record_id: int) -> bool:
        def _delete() -> int:
            return HistoryRecord.delete().where(HistoryRecord.id == record_id).execute()

        return bool(await self._execute(_delete))

    async def clear(self) -> int:
        """Remove all history items and question banks; return the number removed."""

        def _clear() -> int:
            with self._database.atomic():
                removed = HistoryRecord.delete().execute()
                removed += QuestionBankRecord.delete().execute()
            return removed

        removed = await self._execute(_clear)
        logger.info("local_store_cleared", extra={"removed": removed})
        return removed

    async def merge_imported(self, imported: Sequence[DocumentItem | InterviewItem]) -> int:
        """Merge imported history into the store and return the resulting item count."""
        current = await self.list_history()
        merged = merge_history(current, imported, limit=self.history_limit)

        def _replace() -> None:
            with self._database.atomic():
                HistoryRecord.delete().execute()
                # Oldest first so that id order matches recency.
                for item in reversed(merged):
                    HistoryRecord.create(
                        item_type=item.type,
                        label=item_label(item),
                        date=item.date,
                        payload=item.to_wire(),
                    )

        await self._execute(_replace)
        logger.info(
            "local_history_merged",
            extra={"imported": len(imported), "current": len(current), "result": len(merged)},
        )
        return len(merged)
