"""Remote store API client."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from pydantic import BaseModel

from studysync.adapters.remote_store.models import (
    CreateDocumentRequest,
    CreateInterviewRequest,
    CreateQuestionBankRequest,
    CreateQuestionRequest,
    RemoteDocument,
    RemoteInterview,
    RemoteQuestion,
    RemoteQuestionBank,
)
from studysync.core.logging_utils import truncate_log_content

if TYPE_CHECKING:
    from typing import Self

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class RemoteStoreError(Exception):
    """Non-2xx response from the remote store."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is None:
            return base
        return f"HTTP {self.status_code}: {base}"


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        for key in ("error", "detail", "message"):
            if payload.get(key):
                return str(payload[key])
    return str(payload)


class RemoteStoreClient:
    """Async HTTP client for the four remote store resources.

    Every call issues exactly one request. Retrying is left to the caller.
    Transport failures surface as the raw ``httpx`` exception; non-2xx
    responses raise ``RemoteStoreError`` carrying the status code.
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = 10.0,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> Self:
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            headers={"Content-Type": "application/json"},
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client not initialized. Use async context manager.")
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self.client.request(method, path, **kwargs)
        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "remote_store_request_failed",
                extra={
                    "method": method,
                    "path": path,
                    "status": response.status_code,
                    "error": truncate_log_content(message),
                },
            )
            raise RemoteStoreError(message, status_code=response.status_code)
        return response.json()

    async def _create(self, path: str, request: BaseModel, record_type: type[RecordT]) -> RecordT:
        payload = request.model_dump(mode="json", by_alias=True, exclude_none=True)
        data = await self._request("POST", path, json=payload)
        record = record_type.model_validate(data)
        logger.debug("remote_store_record_created", extra={"path": path, "record_id": data.get("id")})
        return record

    async def _list(self, path: str, record_type: type[RecordT]) -> list[RecordT]:
        data = await self._request("GET", path)
        if not isinstance(data, list):
            raise RemoteStoreError(f"Expected a list from {path}, got {type(data).__name__}")
        return [record_type.model_validate(row) for row in data]

    async def _get(self, path: str, record_type: type[RecordT]) -> RecordT:
        return record_type.model_validate(await self._request("GET", path))

    async def create_document(self, request: CreateDocumentRequest) -> RemoteDocument:
        return await self._create("/documents", request, RemoteDocument)

    async def list_documents(self) -> list[RemoteDocument]:
        return await self._list("/documents", RemoteDocument)

    async def get_document(self, record_id: int) -> RemoteDocument:
        return await self._get(f"/documents/{record_id}", RemoteDocument)

    async def create_interview(self, request: CreateInterviewRequest) -> RemoteInterview:
        return await self._create("/interviews", request, RemoteInterview)

    async def list_interviews(self) -> list[RemoteInterview]:
        return await self._list("/interviews", RemoteInterview)

    async def get_interview(self, record_id: int) -> RemoteInterview:
        return await self._get(f"/interviews/{record_id}", RemoteInterview)

    async def create_question(self, request: CreateQuestionRequest) -> RemoteQuestion:
        return await self._create("/questions", request, RemoteQuestion)

    async def list_questions(self) -> list[RemoteQuestion]:
        return await self._list("/questions", RemoteQuestion)

    async def get_question(self, record_id: int) -> RemoteQuestion:
        return await self._get(f"/questions/{record_id}", RemoteQuestion)

    async def create_question_bank(self, request: CreateQuestionBankRequest) -> RemoteQuestionBank:
        return await self._create("/question_banks", request, RemoteQuestionBank)

    async def list_question_banks(self) -> list[RemoteQuestionBank]:
        return await self._list("/question_banks", RemoteQuestionBank)

    async def get_question_bank(self, record_id: int) -> RemoteQuestionBank:
        return await self._get(f"/question_banks/{record_id}", RemoteQuestionBank)

    async def health_check(self) -> bool:
        """Return True when the store answers ``/health`` with a 2xx."""
        root = self.api_url.removesuffix("/api")
        try:
            response = await self.client.get(f"{root}/health")
        except httpx.HTTPError as exc:
            logger.warning("remote_store_health_check_failed", extra={"error": str(exc)})
            return False
        return response.is_success
