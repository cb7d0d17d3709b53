"""Tests for batch orchestration of local items against the remote store.

Covers:
- empty batches, outcome order and one outcome per item
- duplicates are never uploaded, within a batch and against existing rows
- per-type retry policies for uploads and classification
- progress events and callback failures
- abort handling and remote listing reuse
- dry-run preview
"""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import MagicMock

import httpx
import pytest

from studysync.adapters.remote_store.client import RemoteStoreError
from studysync.adapters.remote_store.sync.hashing import fingerprint
from studysync.adapters.remote_store.sync.orchestrator import SyncOrchestrator
from studysync.domain.models import QuestionBank


def _orchestrator(store, retry, **kwargs) -> SyncOrchestrator:
    return SyncOrchestrator(store, retry=retry, **kwargs)


@pytest.mark.asyncio
async def test_empty_batch_returns_no_outcomes_and_no_progress(fake_store, instant_retry):
    progress = MagicMock()

    outcomes = await _orchestrator(fake_store, instant_retry).sync_all([], [], progress)

    assert outcomes == []
    progress.assert_not_called()
    assert fake_store.list_calls == {}


@pytest.mark.asyncio
async def test_mixed_batch_yields_ordered_outcomes(
    fake_store, instant_retry, make_document, make_interview, make_bank
):
    history = [make_document("A.pdf"), make_interview(), make_document("B.pdf")]

    outcomes = await _orchestrator(fake_store, instant_retry).sync_all(history, [make_bank()])

    assert [outcome.label for outcome in outcomes] == [
        "A.pdf",
        "Backend Engineer",
        "B.pdf",
        "Algebra",
    ]
    assert [outcome.item_type for outcome in outcomes] == [
        "document",
        "interview",
        "document",
        "question_bank",
    ]
    assert all(outcome.succeeded for outcome in outcomes)
    assert all(outcome.attempts == 1 for outcome in outcomes)
    assert [outcome.remote_id for outcome in outcomes] == [1, 2, 3, 4]


@pytest.mark.asyncio
async def test_bare_question_banks_are_accepted(fake_store, instant_retry):
    outcomes = await _orchestrator(fake_store, instant_retry).sync_all(
        [], [QuestionBank(name="Chemistry")]
    )

    assert outcomes[0].succeeded
    assert fake_store.question_banks[0].name == "Chemistry"


@pytest.mark.asyncio
async def test_existing_document_is_never_uploaded(fake_store, instant_retry, make_document):
    item = make_document()
    fake_store.seed_document(
        file_name=item.file_name,
        document_text=item.document_text,
        content_hash=fingerprint(item.document_text, item.analysis),
    )

    outcomes = await _orchestrator(fake_store, instant_retry).sync_all([item], [])

    assert outcomes[0].status == "failure"
    assert outcomes[0].reason == "duplicate"
    assert outcomes[0].attempts == 0
    assert "already exists" in outcomes[0].error
    assert fake_store.create_calls["documents"] == 0


@pytest.mark.asyncio
async def test_same_document_twice_in_one_batch_is_stored_once(
    fake_store, instant_retry, make_document
):
    outcomes = await _orchestrator(fake_store, instant_retry).sync_all(
        [make_document(), make_document()], []
    )

    assert outcomes[0].succeeded
    assert outcomes[1].is_duplicate
    assert len(fake_store.documents) == 1


@pytest.mark.asyncio
async def test_document_with_empty_text_is_uploaded(fake_store, instant_retry, make_document):
    outcomes = await _orchestrator(fake_store, instant_retry).sync_all(
        [make_document("scan.pdf", text="")], []
    )

    assert outcomes[0].succeeded
    assert fake_store.documents[0].document_text == ""
    assert len(fake_store.documents[0].content_hash) == 64


@pytest.mark.asyncio
async def test_document_upload_is_retried(fake_store, instant_retry, make_document):
    fake_store.create_failures["documents"].extend(
        [httpx.ConnectError("refused"), RemoteStoreError("busy", status_code=503)]
    )

    outcomes = await _orchestrator(fake_store, instant_retry).sync_all([make_document()], [])

    assert outcomes[0].succeeded
    assert outcomes[0].attempts == 3
    assert len(fake_store.documents) == 1


@pytest.mark.asyncio
async def test_document_upload_exhausts_retries(fake_store, instant_retry, make_document):
    fake_store.create_failures["documents"].extend(
        [httpx.ConnectError("refused") for _ in range(3)]
    )

    outcomes = await _orchestrator(fake_store, instant_retry).sync_all([make_document()], [])

    assert outcomes[0].reason == "transient_network"
    assert outcomes[0].attempts == 3
    assert fake_store.create_calls["documents"] == 3


@pytest.mark.asyncio
async def test_interview_upload_gets_a_single_attempt(fake_store, instant_retry, make_interview):
    fake_store.create_failures["interviews"].append(httpx.ConnectError("refused"))

    outcomes = await _orchestrator(fake_store, instant_retry).sync_all([make_interview()], [])

    assert outcomes[0].reason == "transient_network"
    assert outcomes[0].attempts == 1
    assert fake_store.create_calls["interviews"] == 1


@pytest.mark.asyncio
async def test_validation_failure_is_not_retried(fake_store, instant_retry, make_document):
    fake_store.create_failures["documents"].append(
        RemoteStoreError("fileName cannot be empty", status_code=422)
    )

    outcomes = await _orchestrator(fake_store, instant_retry).sync_all([make_document()], [])

    assert outcomes[0].reason == "validation"
    assert outcomes[0].attempts == 1
    assert outcomes[0].error == "HTTP 422: fileName cannot be empty"


@pytest.mark.asyncio
async def test_long_errors_are_shortened_in_logs_only(
    fake_store, instant_retry, make_document, caplog
):
    detail = " ".join(["field rejected"] * 40)
    fake_store.create_failures["documents"].append(RemoteStoreError(detail, status_code=422))

    with caplog.at_level(logging.WARNING, logger="studysync"):
        outcomes = await _orchestrator(fake_store, instant_retry).sync_all([make_document()], [])

    (record,) = [r for r in caplog.records if r.getMessage() == "sync_item_failed"]
    assert record.error.endswith("... [truncated]")
    assert len(record.error) <= 200
    assert outcomes[0].error == f"HTTP 422: {detail}"


@pytest.mark.asyncio
async def test_document_classification_is_retried(fake_store, instant_retry, make_document):
    fake_store.list_failures["documents"].append(httpx.ConnectError("refused"))

    outcomes = await _orchestrator(fake_store, instant_retry).sync_all([make_document()], [])

    assert outcomes[0].succeeded
    assert fake_store.list_calls["documents"] == 2


@pytest.mark.asyncio
async def test_classification_failure_ends_only_that_item(
    fake_store, instant_retry, make_interview, make_bank
):
    fake_store.list_failures["interviews"].append(httpx.ConnectError("refused"))

    outcomes = await _orchestrator(fake_store, instant_retry).sync_all(
        [make_interview()], [make_bank()]
    )

    assert outcomes[0].reason == "transient_network"
    assert outcomes[0].attempts == 0
    assert fake_store.create_calls["interviews"] == 0
    assert outcomes[1].succeeded


@pytest.mark.asyncio
async def test_progress_for_five_items(fake_store, instant_retry, make_document):
    history = [make_document(f"doc-{index}.pdf") for index in range(5)]
    events = []

    await _orchestrator(fake_store, instant_retry).sync_all(
        history, [], lambda completed, total, label: events.append((completed, total, label))
    )

    assert events == [
        (0, 5, "doc-0.pdf"),
        (1, 5, "doc-1.pdf"),
        (2, 5, "doc-2.pdf"),
        (3, 5, "doc-3.pdf"),
        (4, 5, "doc-4.pdf"),
        (5, 5, "doc-4.pdf"),
    ]


@pytest.mark.asyncio
async def test_failing_progress_callback_does_not_stop_the_batch(
    fake_store, instant_retry, make_document
):
    progress = MagicMock(side_effect=RuntimeError("UI went away"))

    outcomes = await _orchestrator(fake_store, instant_retry).sync_all(
        [make_document("A.pdf"), make_document("B.pdf")], [], progress
    )

    assert [outcome.succeeded for outcome in outcomes] == [True, True]
    assert progress.call_count == 3


@pytest.mark.asyncio
async def test_abort_marks_remaining_items(fake_store, instant_retry, make_document):
    abort = asyncio.Event()

    def _abort_after_first(completed: int, total: int, label: str) -> None:
        if completed == 1:
            abort.set()

    outcomes = await _orchestrator(fake_store, instant_retry).sync_all(
        [make_document("A.pdf"), make_document("B.pdf"), make_document("C.pdf")],
        [],
        _abort_after_first,
        abort=abort,
    )

    assert outcomes[0].succeeded
    assert [outcome.reason for outcome in outcomes[1:]] == ["aborted", "aborted"]
    assert all(outcome.attempts == 0 for outcome in outcomes[1:])
    assert len(fake_store.documents) == 1


@pytest.mark.asyncio
async def test_listing_is_fetched_per_item_by_default(fake_store, instant_retry, make_document):
    history = [make_document(f"doc-{index}.pdf") for index in range(3)]

    await _orchestrator(fake_store, instant_retry).sync_all(history, [])

    assert fake_store.list_calls["documents"] == 3


@pytest.mark.asyncio
async def test_listing_reuse_fetches_once_and_still_catches_duplicates(
    fake_store, instant_retry, make_document
):
    history = [make_document("A.pdf"), make_document("B.pdf", text="Other"), make_document("A.pdf")]

    outcomes = await _orchestrator(
        fake_store, instant_retry, reuse_remote_listing=True
    ).sync_all(history, [])

    assert fake_store.list_calls["documents"] == 1
    assert [outcome.succeeded for outcome in outcomes] == [True, True, False]
    assert outcomes[2].is_duplicate
    assert len(fake_store.documents) == 2


@pytest.mark.asyncio
async def test_preview_classifies_without_writing(fake_store, instant_retry, make_document, make_bank):
    existing = make_document("A.pdf")
    fake_store.seed_document(
        file_name=existing.file_name,
        document_text=existing.document_text,
        content_hash=fingerprint(existing.document_text, existing.analysis),
    )

    preview = await _orchestrator(fake_store, instant_retry).preview(
        [existing, make_document("B.pdf", text="New text")], [make_bank()]
    )

    assert preview.would_skip == [{"type": "document", "label": "A.pdf"}]
    assert preview.would_sync == [
        {"type": "document", "label": "B.pdf"},
        {"type": "question_bank", "label": "Algebra"},
    ]
    assert preview.errors == []
    assert sum(fake_store.create_calls.values()) == 0
    assert fake_store.list_calls["documents"] == 1


@pytest.mark.asyncio
async def test_preview_reports_classification_errors(fake_store, instant_retry, make_bank):
    fake_store.list_failures["question_banks"].append(httpx.ConnectError("refused"))

    preview = await _orchestrator(fake_store, instant_retry).preview([], [make_bank()])

    assert preview.errors == ["Algebra: refused"]
    assert preview.would_sync == []
