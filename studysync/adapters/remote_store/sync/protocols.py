"""Protocol definitions (ports) for the sync engine.

The orchestrator only depends on these, so tests can hand it fakes and the
CLI can hand it the HTTP client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager

    from studysync.adapters.remote_store.models import (
        CreateDocumentRequest,
        CreateInterviewRequest,
        CreateQuestionBankRequest,
        RemoteDocument,
        RemoteInterview,
        RemoteQuestionBank,
    )


class RemoteStoreClientProtocol(Protocol):
    async def list_documents(self) -> list[RemoteDocument]: ...

    async def list_interviews(self) -> list[RemoteInterview]: ...

    async def list_question_banks(self) -> list[RemoteQuestionBank]: ...

    async def create_document(self, request: CreateDocumentRequest) -> RemoteDocument: ...

    async def create_interview(self, request: CreateInterviewRequest) -> RemoteInterview: ...

    async def create_question_bank(
        self, request: CreateQuestionBankRequest
    ) -> RemoteQuestionBank: ...


class RemoteStoreClientFactory(Protocol):
    def __call__(
        self, api_url: str, timeout: float
    ) -> AbstractAsyncContextManager[RemoteStoreClientProtocol]: ...


class ProgressCallback(Protocol):
    def __call__(self, completed: int, total: int, label: str) -> None: ...
