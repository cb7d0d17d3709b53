"""Async access to the server tables."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from studysync.api.db import row_to_dict
from studysync.api.exceptions import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable

    import peewee

logger = logging.getLogger(__name__)


class RecordRepository:
    """Create / list / fetch-by-id for one table.

    Peewee calls run in a worker thread inside a connection context.
    """

    def __init__(self, database: peewee.Database, model: type[peewee.Model], resource: str) -> None:
        self._database = database
        self._model = model
        self.resource = resource

    async def _execute(self, operation: Callable[[], Any]) -> Any:
        def _op_wrapper() -> Any:
            with self._database.connection_context():
                return operation()

        return await asyncio.to_thread(_op_wrapper)

    async def create(self, fields: dict[str, Any]) -> dict[str, Any]:
        record = await self._execute(lambda: row_to_dict(self._model.create(**fields)))
        logger.info(
            "remote_record_created",
            extra={"resource": self.resource, "record_id": record["id"]},
        )
        return record

    async def list_all(self) -> list[dict[str, Any]]:
        """All rows, newest first."""
        model = self._model

        def _select() -> list[dict[str, Any]]:
            query = model.select().order_by(model.created_at.desc(), model.id.desc())
            return [row_to_dict(row) for row in query]

        return await self._execute(_select)

    async def get(self, record_id: int) -> dict[str, Any]:
        model = self._model

        def _fetch() -> dict[str, Any] | None:
            row = model.get_or_none(model.id == record_id)
            return row_to_dict(row) if row is not None else None

        record = await self._execute(_fetch)
        if record is None:
            raise NotFoundError(self.resource, record_id)
        return record
