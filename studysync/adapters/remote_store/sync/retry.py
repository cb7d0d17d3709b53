"""Retry wrapper for sync operations.

The HTTP client never retries; each item's classification and upload are
retried here based on error semantics and the item type's policy.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from studysync.adapters.remote_store.sync import constants
from studysync.adapters.remote_store.sync.constants import (
    DEFAULT_BASE_DELAY_SECONDS,
    DEFAULT_MAX_JITTER_SECONDS,
    DOCUMENT_MAX_ATTEMPTS,
    INTERVIEW_MAX_ATTEMPTS,
    QUESTION_BANK_MAX_ATTEMPTS,
)
from studysync.adapters.remote_store.sync.errors import SyncAbortedError, is_retryable

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from studysync.config import SyncPolicyConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 1
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS
    max_jitter: float = DEFAULT_MAX_JITTER_SECONDS
    retry_classification: bool = False

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)
        if self.base_delay < 0 or self.max_jitter < 0:
            msg = "Retry delays cannot be negative"
            raise ValueError(msg)


@dataclass(frozen=True)
class SyncPolicies:
    document: RetryPolicy = RetryPolicy(
        max_attempts=DOCUMENT_MAX_ATTEMPTS, retry_classification=True
    )
    interview: RetryPolicy = RetryPolicy(max_attempts=INTERVIEW_MAX_ATTEMPTS)
    question_bank: RetryPolicy = RetryPolicy(max_attempts=QUESTION_BANK_MAX_ATTEMPTS)

    def for_type(self, item_type: str) -> RetryPolicy:
        match item_type:
            case constants.ITEM_TYPE_DOCUMENT:
                return self.document
            case constants.ITEM_TYPE_INTERVIEW:
                return self.interview
            case constants.ITEM_TYPE_QUESTION_BANK:
                return self.question_bank
        msg = f"Unknown item type: {item_type}"
        raise ValueError(msg)

    @classmethod
    def from_config(cls, config: SyncPolicyConfig) -> SyncPolicies:
        def _policy(max_attempts: int, *, retry_classification: bool) -> RetryPolicy:
            return RetryPolicy(
                max_attempts=max_attempts,
                base_delay=config.base_delay_sec,
                max_jitter=config.max_jitter_sec,
                retry_classification=retry_classification,
            )

        return cls(
            document=_policy(config.document_max_attempts, retry_classification=True),
            interview=_policy(config.interview_max_attempts, retry_classification=False),
            question_bank=_policy(config.question_bank_max_attempts, retry_classification=False),
        )


def _default_jitter(upper: float) -> float:
    return random.random() * upper


class RetryExecutor:
    """Runs an async operation with exponential backoff and jitter.

    After ``n`` failed attempts the wait is ``base_delay * 2**n`` plus a
    jitter in ``[0, max_jitter)``. Only transient network errors are retried.
    """

    def __init__(
        self,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        jitter: Callable[[float], float] = _default_jitter,
    ) -> None:
        self._sleep = sleep
        self._jitter = jitter

    def delay_for(self, attempts_made: int, policy: RetryPolicy) -> float:
        return policy.base_delay * (2**attempts_made) + self._jitter(policy.max_jitter)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        policy: RetryPolicy,
        operation_name: str,
        correlation_id: str,
        abort: asyncio.Event | None = None,
    ) -> T:
        attempts_made = 0
        while True:
            try:
                return await self._race(operation(), abort, operation_name)
            except SyncAbortedError:
                raise
            except Exception as exc:
                attempts_made += 1
                retryable = is_retryable(exc)
                if not retryable or attempts_made >= policy.max_attempts:
                    if retryable and policy.max_attempts > 1:
                        logger.warning(
                            "sync_retry_exhausted",
                            extra={
                                "correlation_id": correlation_id,
                                "operation": operation_name,
                                "attempts": attempts_made,
                                "error": str(exc),
                            },
                        )
                    raise

                delay = self.delay_for(attempts_made, policy)
                logger.info(
                    "sync_retrying",
                    extra={
                        "correlation_id": correlation_id,
                        "operation": operation_name,
                        "attempt": attempts_made,
                        "max_attempts": policy.max_attempts,
                        "delay_seconds": round(delay, 3),
                        "error": str(exc),
                    },
                )
                await self._race(self._sleep(delay), abort, operation_name)

    async def _race(
        self, awaitable: Awaitable[T], abort: asyncio.Event | None, operation_name: str
    ) -> T:
        if abort is None:
            return await awaitable
        if abort.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise SyncAbortedError(f"{operation_name} aborted")

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(abort.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            raise

        if task in done:
            waiter.cancel()
            await asyncio.gather(waiter, return_exceptions=True)
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise SyncAbortedError(f"{operation_name} aborted")
