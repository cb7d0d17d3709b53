"""Remote listing reuse for duplicate classification."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from studysync.adapters.remote_store.models import (
    RemoteDocument,
    RemoteInterview,
    RemoteQuestionBank,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from studysync.adapters.remote_store.models import RemoteRecord
    from studysync.adapters.remote_store.sync.protocols import RemoteStoreClientProtocol

logger = logging.getLogger(__name__)


class RemoteListingCache:
    """Lists each remote resource once per scope.

    Outside a ``scope()`` every call goes to the remote store, so each item is
    classified against fresh state. Inside a scope the first listing is kept
    and records created during the run are appended to it.
    """

    def __init__(self) -> None:
        self._listings: dict[str, list[Any]] = {}
        self._allow_cache_reuse = False

    def reuse_enabled(self) -> bool:
        return self._allow_cache_reuse

    def clear(self) -> None:
        self._listings.clear()

    @asynccontextmanager
    async def scope(self) -> AsyncIterator[None]:
        previous = self._allow_cache_reuse
        self._allow_cache_reuse = True
        self.clear()
        try:
            yield
        finally:
            self._allow_cache_reuse = previous
            self.clear()

    async def documents(
        self, client: RemoteStoreClientProtocol, *, correlation_id: str
    ) -> list[RemoteDocument]:
        return await self._get("documents", client.list_documents, correlation_id)

    async def interviews(
        self, client: RemoteStoreClientProtocol, *, correlation_id: str
    ) -> list[RemoteInterview]:
        return await self._get("interviews", client.list_interviews, correlation_id)

    async def question_banks(
        self, client: RemoteStoreClientProtocol, *, correlation_id: str
    ) -> list[RemoteQuestionBank]:
        return await self._get("question_banks", client.list_question_banks, correlation_id)

    def remember(self, record: RemoteRecord) -> None:
        """Add a record created during this run to its cached listing."""
        if not self._allow_cache_reuse:
            return
        match record:
            case RemoteDocument():
                resource = "documents"
            case RemoteInterview():
                resource = "interviews"
            case RemoteQuestionBank():
                resource = "question_banks"
            case _:
                return
        listing = self._listings.get(resource)
        if listing is not None:
            listing.insert(0, record)

    async def _get(
        self,
        resource: str,
        fetch: Callable[[], Awaitable[list[Any]]],
        correlation_id: str,
    ) -> list[Any]:
        if self._allow_cache_reuse and resource in self._listings:
            logger.debug(
                "remote_listing_cache_hit",
                extra={
                    "correlation_id": correlation_id,
                    "resource": resource,
                    "count": len(self._listings[resource]),
                },
            )
            return self._listings[resource]

        records = await fetch()
        logger.debug(
            "remote_listing_fetched",
            extra={"correlation_id": correlation_id, "resource": resource, "count": len(records)},
        )
        if self._allow_cache_reuse:
            self._listings[resource] = list(records)
            return self._listings[resource]
        return records
