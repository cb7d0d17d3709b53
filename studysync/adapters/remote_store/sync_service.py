"""Public sync service composed of the sync use-case classes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from studysync.adapters.remote_store.client import RemoteStoreClient
from studysync.adapters.remote_store.sync.cache import RemoteListingCache
from studysync.adapters.remote_store.sync.orchestrator import SyncOrchestrator
from studysync.adapters.remote_store.sync.retry import RetryExecutor, SyncPolicies
from studysync.core.logging_utils import generate_correlation_id

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Iterable

    from studysync.adapters.remote_store.models import SyncOutcome, SyncPreview
    from studysync.adapters.remote_store.sync.protocols import (
        ProgressCallback,
        RemoteStoreClientFactory,
    )
    from studysync.config import AppConfig
    from studysync.domain.models import (
        DocumentItem,
        InterviewItem,
        QuestionBank,
        QuestionBankItem,
    )

logger = logging.getLogger(__name__)


class StudySyncService:
    """Syncs local history and question banks to the remote store.

    Owns the client lifecycle: one client per call, closed when the call ends.
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = 10.0,
        *,
        policies: SyncPolicies | None = None,
        retry: RetryExecutor | None = None,
        reuse_remote_listing: bool = False,
        client_factory: RemoteStoreClientFactory | None = None,
    ) -> None:
        self.api_url = api_url
        self.timeout = timeout
        self._policies = policies or SyncPolicies()
        self._retry = retry or RetryExecutor()
        self._reuse_remote_listing = reuse_remote_listing
        self._client_factory = client_factory or RemoteStoreClient
        self._cache = RemoteListingCache()

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        client_factory: RemoteStoreClientFactory | None = None,
        retry: RetryExecutor | None = None,
    ) -> StudySyncService:
        return cls(
            config.remote_store.api_url,
            config.remote_store.timeout_sec,
            policies=SyncPolicies.from_config(config.sync_policy),
            retry=retry,
            reuse_remote_listing=config.sync_policy.reuse_remote_listing,
            client_factory=client_factory,
        )

    async def sync_all(
        self,
        local_history: Iterable[DocumentItem | InterviewItem | QuestionBankItem],
        question_banks: Iterable[QuestionBank | QuestionBankItem],
        on_progress: ProgressCallback | None = None,
        *,
        abort: asyncio.Event | None = None,
    ) -> list[SyncOutcome]:
        correlation_id = generate_correlation_id()
        logger.info(
            "study_sync_start",
            extra={"correlation_id": correlation_id, "api_url": self.api_url},
        )
        async with self._client_factory(self.api_url, self.timeout) as client:
            orchestrator = self._orchestrator(client)
            return await orchestrator.sync_all(
                local_history,
                question_banks,
                on_progress,
                abort=abort,
                correlation_id=correlation_id,
            )

    async def preview(
        self,
        local_history: Iterable[DocumentItem | InterviewItem | QuestionBankItem],
        question_banks: Iterable[QuestionBank | QuestionBankItem],
    ) -> SyncPreview:
        correlation_id = generate_correlation_id()
        async with self._client_factory(self.api_url, self.timeout) as client:
            return await self._orchestrator(client).preview(
                local_history, question_banks, correlation_id=correlation_id
            )

    def _orchestrator(self, client) -> SyncOrchestrator:
        return SyncOrchestrator(
            client,
            policies=self._policies,
            retry=self._retry,
            cache=self._cache,
            reuse_remote_listing=self._reuse_remote_listing,
        )
