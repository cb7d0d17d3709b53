"""Pytest configuration and shared fixtures.

This module provides common fixtures for all tests.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from typing import Any

import pytest

from studysync.adapters.remote_store.models import (
    CreateDocumentRequest,
    CreateInterviewRequest,
    CreateQuestionBankRequest,
    RemoteDocument,
    RemoteInterview,
    RemoteQuestionBank,
)
from studysync.adapters.remote_store.sync.retry import RetryExecutor
from studysync.core.time_utils import utc_now_iso
from studysync.domain.models import (
    AnalysisResult,
    CVInterview,
    DocumentItem,
    InterviewFeedback,
    InterviewItem,
    QuestionBank,
    QuestionBankItem,
)

_ENV_VARS = (
    "LOG_LEVEL",
    "LOG_JSON",
    "REMOTE_STORE_URL",
    "REMOTE_STORE_TIMEOUT_SEC",
    "SYNC_DOCUMENT_MAX_ATTEMPTS",
    "SYNC_INTERVIEW_MAX_ATTEMPTS",
    "SYNC_QUESTION_BANK_MAX_ATTEMPTS",
    "SYNC_BASE_DELAY_SEC",
    "SYNC_MAX_JITTER_SEC",
    "SYNC_REUSE_REMOTE_LISTING",
    "LOCAL_DB_PATH",
    "LOCAL_HISTORY_LIMIT",
    "SERVER_DB_PATH",
    "SERVER_HOST",
    "SERVER_PORT",
    "GENERATION_CACHE_MAX_ENTRIES",
    "GENERATION_CACHE_TTL_SEC",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep host environment variables out of configuration tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class FakeRemoteStore:
    """In-memory remote store implementing the client protocol.

    Failures queued in ``list_failures`` / ``create_failures`` are raised one
    per call, before the call has any effect.
    """

    def __init__(self) -> None:
        self.documents: list[RemoteDocument] = []
        self.interviews: list[RemoteInterview] = []
        self.question_banks: list[RemoteQuestionBank] = []
        self.list_calls: Counter[str] = Counter()
        self.create_calls: Counter[str] = Counter()
        self.list_failures: dict[str, list[BaseException]] = defaultdict(list)
        self.create_failures: dict[str, list[BaseException]] = defaultdict(list)
        self.opened = 0
        self.closed = 0
        self._next_id = 1

    async def __aenter__(self) -> FakeRemoteStore:
        self.opened += 1
        return self

    async def __aexit__(self, *args: object) -> None:
        self.closed += 1

    def factory(self, api_url: str, timeout: float) -> FakeRemoteStore:
        return self

    def _list(self, resource: str) -> list[Any]:
        self.list_calls[resource] += 1
        if self.list_failures[resource]:
            raise self.list_failures[resource].pop(0)
        return list(reversed(getattr(self, resource)))

    def _before_create(self, resource: str) -> int:
        self.create_calls[resource] += 1
        if self.create_failures[resource]:
            raise self.create_failures[resource].pop(0)
        record_id = self._next_id
        self._next_id += 1
        return record_id

    async def list_documents(self) -> list[RemoteDocument]:
        return self._list("documents")

    async def list_interviews(self) -> list[RemoteInterview]:
        return self._list("interviews")

    async def list_question_banks(self) -> list[RemoteQuestionBank]:
        return self._list("question_banks")

    async def create_document(self, request: CreateDocumentRequest) -> RemoteDocument:
        record = RemoteDocument(
            id=self._before_create("documents"),
            created_at=utc_now_iso(),
            **request.model_dump(),
        )
        self.documents.append(record)
        return record

    async def create_interview(self, request: CreateInterviewRequest) -> RemoteInterview:
        record = RemoteInterview(
            id=self._before_create("interviews"),
            created_at=utc_now_iso(),
            **request.model_dump(),
        )
        self.interviews.append(record)
        return record

    async def create_question_bank(self, request: CreateQuestionBankRequest) -> RemoteQuestionBank:
        record = RemoteQuestionBank(
            id=self._before_create("question_banks"),
            created_at=utc_now_iso(),
            **request.model_dump(),
        )
        self.question_banks.append(record)
        return record

    def seed_document(self, **fields: Any) -> RemoteDocument:
        record = RemoteDocument(id=self._next_id, **fields)
        self._next_id += 1
        self.documents.append(record)
        return record


@pytest.fixture
def fake_store() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def instant_retry() -> RetryExecutor:
    """Retry executor that never actually waits and adds no jitter."""

    async def _no_sleep(_delay: float) -> None:
        return None

    return RetryExecutor(sleep=_no_sleep, jitter=lambda _upper: 0.0)


@pytest.fixture
def make_document():
    def _make(
        file_name: str = "A.pdf",
        text: str = "Photosynthesis converts light into chemical energy.",
        summary: str = "Light to energy",
        date: str = "2025-06-15T12:00:00+00:00",
    ) -> DocumentItem:
        return DocumentItem(
            file_name=file_name,
            document_text=text,
            analysis=AnalysisResult(summary=summary, topics=["biology"]),
            date=date,
        )

    return _make


@pytest.fixture
def make_interview():
    def _make(
        target_position: str = "Backend Engineer",
        cv_content: str = "Ten years of Python.",
        date: str = "2025-06-16T09:30:00+00:00",
        feedback: InterviewFeedback | None = None,
    ) -> InterviewItem:
        return InterviewItem(
            interview=CVInterview(
                id="iv-1",
                cv_content=cv_content,
                target_position=target_position,
                feedback=feedback,
            ),
            date=date,
        )

    return _make


@pytest.fixture
def make_bank():
    def _make(name: str = "Algebra", questions: list[dict[str, Any]] | None = None) -> QuestionBankItem:
        return QuestionBankItem(
            bank=QuestionBank(
                id="qb-1",
                name=name,
                questions=questions if questions is not None else [{"question": "2 + 2?"}],
            )
        )

    return _make
