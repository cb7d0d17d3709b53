"""Create / list / fetch routers for the stored resources."""

from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel

from studysync.adapters.remote_store.models import (
    CreateDocumentRequest,
    CreateInterviewRequest,
    CreateQuestionBankRequest,
    CreateQuestionRequest,
)
from studysync.api.repository import RecordRepository

RESOURCE_REQUESTS: dict[str, type[BaseModel]] = {
    "documents": CreateDocumentRequest,
    "interviews": CreateInterviewRequest,
    "questions": CreateQuestionRequest,
    "question_banks": CreateQuestionBankRequest,
}


def _repository(request: Request, resource: str) -> RecordRepository:
    return request.app.state.repositories[resource]


def make_router(resource: str) -> APIRouter:
    request_model = RESOURCE_REQUESTS[resource]
    router = APIRouter()

    async def create_record(payload: request_model, request: Request) -> dict[str, Any]:  # type: ignore[valid-type]
        return await _repository(request, resource).create(payload.model_dump())

    async def list_records(request: Request) -> list[dict[str, Any]]:
        return await _repository(request, resource).list_all()

    async def get_record(record_id: int, request: Request) -> dict[str, Any]:
        return await _repository(request, resource).get(record_id)

    router.add_api_route("", create_record, methods=["POST"], name=f"create_{resource}")
    router.add_api_route("", list_records, methods=["GET"], name=f"list_{resource}")
    router.add_api_route("/{record_id}", get_record, methods=["GET"], name=f"get_{resource}")
    return router
