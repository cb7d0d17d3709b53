"""Tests for the sync retry executor and per-type policies."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, call

import httpx
import pytest

from studysync.adapters.remote_store.client import RemoteStoreError
from studysync.adapters.remote_store.sync import constants
from studysync.adapters.remote_store.sync.errors import SyncAbortedError
from studysync.adapters.remote_store.sync.retry import RetryExecutor, RetryPolicy, SyncPolicies


def _executor(sleep: AsyncMock, jitter: float = 0.0) -> RetryExecutor:
    return RetryExecutor(sleep=sleep, jitter=lambda _upper: jitter)


async def _run(executor: RetryExecutor, operation, policy: RetryPolicy, abort=None):
    return await executor.run(
        operation,
        policy=policy,
        operation_name="upload_document",
        correlation_id="test-cid",
        abort=abort,
    )


@pytest.mark.asyncio
async def test_succeeds_on_third_attempt():
    sleep = AsyncMock()
    operation = AsyncMock(
        side_effect=[httpx.ConnectError("refused"), httpx.ReadTimeout("slow"), "stored"]
    )

    result = await _run(_executor(sleep), operation, RetryPolicy(max_attempts=3, base_delay=1.0))

    assert result == "stored"
    assert operation.await_count == 3
    assert sleep.await_args_list == [call(2.0), call(4.0)]


@pytest.mark.asyncio
async def test_always_failing_operation_is_invoked_max_attempts_times():
    sleep = AsyncMock()
    operation = AsyncMock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(httpx.ConnectError):
        await _run(_executor(sleep), operation, RetryPolicy(max_attempts=3))

    assert operation.await_count == 3
    assert sleep.await_count == 2


@pytest.mark.asyncio
async def test_last_error_is_surfaced():
    errors = [RemoteStoreError("busy", 503), RemoteStoreError("still busy", 503)]
    operation = AsyncMock(side_effect=errors)

    with pytest.raises(RemoteStoreError) as exc_info:
        await _run(_executor(AsyncMock()), operation, RetryPolicy(max_attempts=2))

    assert exc_info.value is errors[-1]


@pytest.mark.asyncio
async def test_non_retryable_error_is_not_retried():
    sleep = AsyncMock()
    operation = AsyncMock(side_effect=RemoteStoreError("bad payload", status_code=422))

    with pytest.raises(RemoteStoreError):
        await _run(_executor(sleep), operation, RetryPolicy(max_attempts=3))

    assert operation.await_count == 1
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_single_attempt_policy_never_sleeps():
    sleep = AsyncMock()
    operation = AsyncMock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(httpx.ConnectError):
        await _run(_executor(sleep), operation, RetryPolicy(max_attempts=1))

    assert operation.await_count == 1
    sleep.assert_not_awaited()


def test_delay_includes_jitter():
    executor = RetryExecutor(sleep=AsyncMock(), jitter=lambda upper: upper / 2)
    policy = RetryPolicy(max_attempts=3, base_delay=0.5, max_jitter=1.0)

    assert executor.delay_for(0, policy) == pytest.approx(1.0)
    assert executor.delay_for(2, policy) == pytest.approx(2.5)


def test_default_jitter_stays_below_upper_bound():
    executor = RetryExecutor()
    policy = RetryPolicy(base_delay=0.0, max_jitter=1.0)

    for _ in range(50):
        assert 0.0 <= executor.delay_for(0, policy) < 1.0


@pytest.mark.asyncio
async def test_abort_already_set_skips_operation():
    abort = asyncio.Event()
    abort.set()
    operation = AsyncMock(return_value="stored")

    with pytest.raises(SyncAbortedError):
        await _run(_executor(AsyncMock()), operation, RetryPolicy(max_attempts=3), abort=abort)

    assert operation.await_count == 0


@pytest.mark.asyncio
async def test_abort_during_backoff_stops_retrying():
    abort = asyncio.Event()
    calls = []

    async def _failing_operation():
        calls.append(1)
        abort.set()
        raise httpx.ConnectError("refused")

    async def _slow_sleep(_delay: float) -> None:
        await asyncio.sleep(10)

    executor = RetryExecutor(sleep=_slow_sleep, jitter=lambda _upper: 0.0)

    with pytest.raises(SyncAbortedError):
        await asyncio.wait_for(
            _run(executor, _failing_operation, RetryPolicy(max_attempts=3), abort=abort),
            timeout=5,
        )

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_abort_while_operation_in_flight():
    abort = asyncio.Event()
    started = asyncio.Event()

    async def _hanging_operation():
        started.set()
        await asyncio.sleep(10)
        return "never"

    async def _abort_when_started():
        await started.wait()
        abort.set()

    trigger = asyncio.create_task(_abort_when_started())
    with pytest.raises(SyncAbortedError):
        await asyncio.wait_for(
            _run(_executor(AsyncMock()), _hanging_operation, RetryPolicy(), abort=abort),
            timeout=5,
        )
    await trigger


class TestRetryPolicy:
    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError, match="max_attempts"):
            RetryPolicy(max_attempts=0)

    def test_rejects_negative_delay(self):
        with pytest.raises(ValueError, match="negative"):
            RetryPolicy(base_delay=-1.0)

    def test_default_policies_per_item_type(self):
        policies = SyncPolicies()

        assert policies.for_type("document").max_attempts == 3
        assert policies.for_type("document").retry_classification is True
        assert policies.for_type("interview").max_attempts == 1
        assert policies.for_type("question_bank").max_attempts == 1

    def test_policies_by_type_constant(self):
        policies = SyncPolicies(interview=RetryPolicy(max_attempts=2))

        assert policies.for_type(constants.ITEM_TYPE_INTERVIEW).max_attempts == 2
        assert policies.for_type(constants.ITEM_TYPE_QUESTION_BANK) is policies.question_bank

    def test_unknown_item_type(self):
        with pytest.raises(ValueError, match="Unknown item type"):
            SyncPolicies().for_type("flashcard")
