"""Local -> remote sync use-case implementation."""

from __future__ import annotations

import contextlib
import dataclasses
import logging
import time
from typing import TYPE_CHECKING

from studysync.adapters.remote_store.models import ProgressEvent, SyncOutcome, SyncPreview
from studysync.adapters.remote_store.sync.cache import RemoteListingCache
from studysync.adapters.remote_store.sync.classifier import DuplicateClassifier
from studysync.adapters.remote_store.sync.errors import (
    DuplicateError,
    SyncAbortedError,
    to_sync_error,
)
from studysync.adapters.remote_store.sync.retry import RetryExecutor, SyncPolicies
from studysync.adapters.remote_store.sync.uploaders import ItemUploader
from studysync.adapters.remote_store.sync.work_items import _SyncWorkItem, flatten
from studysync.core.logging_utils import generate_correlation_id, truncate_log_content

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Iterable

    from studysync.adapters.remote_store.sync.protocols import (
        ProgressCallback,
        RemoteStoreClientProtocol,
    )
    from studysync.domain.models import (
        DocumentItem,
        InterviewItem,
        QuestionBank,
        QuestionBankItem,
    )

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """Pushes a heterogeneous batch of local items to the remote store.

    Items are processed strictly one at a time: classify, then upload when
    the item is not already stored. Every item yields exactly one outcome
    and outcomes come back in input order. No single item can stop the
    batch; only the abort event ends it early.
    """

    def __init__(
        self,
        client: RemoteStoreClientProtocol,
        *,
        policies: SyncPolicies | None = None,
        retry: RetryExecutor | None = None,
        cache: RemoteListingCache | None = None,
        reuse_remote_listing: bool = False,
    ) -> None:
        self._policies = policies or SyncPolicies()
        self._retry = retry or RetryExecutor()
        self._cache = cache or RemoteListingCache()
        self._reuse_remote_listing = reuse_remote_listing
        self._classifier = DuplicateClassifier(client, cache=self._cache)
        self._uploader = ItemUploader(client)

    async def sync_all(
        self,
        local_history: Iterable[DocumentItem | InterviewItem | QuestionBankItem],
        question_banks: Iterable[QuestionBank | QuestionBankItem],
        on_progress: ProgressCallback | None = None,
        *,
        abort: asyncio.Event | None = None,
        correlation_id: str | None = None,
    ) -> list[SyncOutcome]:
        correlation_id = correlation_id or generate_correlation_id()
        work_items = flatten(local_history, question_banks, self._policies)
        total = len(work_items)
        if total == 0:
            logger.info("sync_batch_empty", extra={"correlation_id": correlation_id})
            return []

        start_time = time.time()
        logger.info(
            "sync_batch_start",
            extra={
                "correlation_id": correlation_id,
                "total": total,
                "reuse_remote_listing": self._reuse_remote_listing,
            },
        )

        outcomes: list[SyncOutcome] = []
        async with self._listing_scope():
            for work_item in work_items:
                self._emit(on_progress, work_item.index, total, work_item.label, correlation_id)
                if abort is not None and abort.is_set():
                    outcomes.append(
                        self._failure(
                            work_item,
                            SyncAbortedError("Sync aborted before this item was attempted"),
                            attempts=0,
                            correlation_id=correlation_id,
                        )
                    )
                    continue
                outcomes.append(
                    await self._sync_item(work_item, abort=abort, correlation_id=correlation_id)
                )
            self._emit(on_progress, total, total, work_items[-1].label, correlation_id)

        succeeded = sum(1 for outcome in outcomes if outcome.succeeded)
        logger.info(
            "sync_batch_complete",
            extra={
                "correlation_id": correlation_id,
                "total": total,
                "succeeded": succeeded,
                "failed": total - succeeded,
                "duplicates": sum(1 for outcome in outcomes if outcome.is_duplicate),
                "duration": round(time.time() - start_time, 3),
            },
        )
        return outcomes

    async def preview(
        self,
        local_history: Iterable[DocumentItem | InterviewItem | QuestionBankItem],
        question_banks: Iterable[QuestionBank | QuestionBankItem],
        *,
        correlation_id: str | None = None,
    ) -> SyncPreview:
        """Classify every item without writing anything."""
        correlation_id = correlation_id or generate_correlation_id()
        preview = SyncPreview()
        work_items = flatten(local_history, question_banks, self._policies)
        logger.info(
            "sync_preview_start",
            extra={"correlation_id": correlation_id, "total": len(work_items)},
        )

        async with self._cache.scope():
            for work_item in work_items:
                entry = {"type": work_item.item_type, "label": work_item.label}
                try:
                    duplicate = await self._classifier.is_duplicate(
                        work_item.item, correlation_id=correlation_id
                    )
                except Exception as exc:
                    preview.errors.append(f"{work_item.label}: {exc}")
                    logger.warning(
                        "sync_preview_classification_failed",
                        extra={
                            "correlation_id": correlation_id,
                            "item_type": work_item.item_type,
                            "label": work_item.label,
                            "error": truncate_log_content(str(exc)),
                        },
                    )
                    continue
                if duplicate:
                    preview.would_skip.append(entry)
                else:
                    preview.would_sync.append(entry)

        return preview

    async def _sync_item(
        self,
        work_item: _SyncWorkItem,
        *,
        abort: asyncio.Event | None,
        correlation_id: str,
    ) -> SyncOutcome:
        try:
            duplicate = await self._classify(work_item, abort=abort, correlation_id=correlation_id)
        except Exception as exc:
            return self._failure(work_item, exc, attempts=0, correlation_id=correlation_id)

        if duplicate:
            return self._failure(
                work_item,
                DuplicateError(work_item.item_type, work_item.label),
                attempts=0,
                correlation_id=correlation_id,
            )

        attempts = 0

        async def _upload():
            nonlocal attempts
            attempts += 1
            return await self._uploader.upload(work_item.item)

        try:
            record = await self._retry.run(
                _upload,
                policy=work_item.policy,
                operation_name=f"upload_{work_item.item_type}",
                correlation_id=correlation_id,
                abort=abort,
            )
        except Exception as exc:
            return self._failure(work_item, exc, attempts=attempts, correlation_id=correlation_id)

        self._cache.remember(record)
        logger.info(
            "sync_item_uploaded",
            extra={
                "correlation_id": correlation_id,
                "item_type": work_item.item_type,
                "label": work_item.label,
                "attempts": attempts,
                "remote_id": record.id,
            },
        )
        return SyncOutcome(
            status="success",
            item_type=work_item.item_type,
            label=work_item.label,
            attempts=attempts,
            remote_id=record.id,
        )

    async def _classify(
        self,
        work_item: _SyncWorkItem,
        *,
        abort: asyncio.Event | None,
        correlation_id: str,
    ) -> bool:
        policy = work_item.policy
        if not policy.retry_classification:
            policy = dataclasses.replace(policy, max_attempts=1)
        return await self._retry.run(
            lambda: self._classifier.is_duplicate(work_item.item, correlation_id=correlation_id),
            policy=policy,
            operation_name=f"classify_{work_item.item_type}",
            correlation_id=correlation_id,
            abort=abort,
        )

    def _failure(
        self,
        work_item: _SyncWorkItem,
        exc: Exception,
        *,
        attempts: int,
        correlation_id: str,
    ) -> SyncOutcome:
        error = to_sync_error(exc)
        log = logger.info if isinstance(error, DuplicateError) else logger.warning
        log(
            "sync_item_failed",
            extra={
                "correlation_id": correlation_id,
                "item_type": work_item.item_type,
                "label": work_item.label,
                "reason": error.kind.value,
                "attempts": attempts,
                "error": truncate_log_content(str(error)),
            },
        )
        return SyncOutcome(
            status="failure",
            item_type=work_item.item_type,
            label=work_item.label,
            reason=error.kind.value,
            error=str(error),
            attempts=attempts,
        )

    def _listing_scope(self) -> contextlib.AbstractAsyncContextManager[None]:
        if self._reuse_remote_listing:
            return self._cache.scope()
        return contextlib.nullcontext()

    def _emit(
        self,
        on_progress: ProgressCallback | None,
        completed: int,
        total: int,
        label: str,
        correlation_id: str,
    ) -> None:
        event = ProgressEvent(completed=completed, total=total, current_label=label)
        logger.debug(
            "sync_progress",
            extra={
                "correlation_id": correlation_id,
                "completed": event.completed,
                "total": event.total,
                "label": event.current_label,
            },
        )
        if on_progress is None:
            return
        try:
            on_progress(event.completed, event.total, event.current_label)
        except Exception:
            logger.exception(
                "sync_progress_callback_failed",
                extra={"correlation_id": correlation_id, "completed": completed, "total": total},
            )
