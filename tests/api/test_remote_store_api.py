"""Tests for the remote store HTTP API."""

from __future__ import annotations

import httpx
import peewee
import pytest

from studysync.adapters.remote_store.client import RemoteStoreClient, RemoteStoreError
from studysync.adapters.remote_store.models import CreateQuestionRequest
from studysync.api.main import create_app

_DOCUMENT = {
    "fileName": "A.pdf",
    "documentText": "Photosynthesis converts light into chemical energy.",
    "analysis": {"summary": "Light to energy", "topics": ["biology"]},
}


@pytest.fixture
def app(tmp_path):
    return create_app(str(tmp_path / "remote.db"))


@pytest.fixture
async def client(app):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as http_client:
        yield http_client


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_create_document_returns_snake_case_record(client):
    response = await client.post("/api/documents", json=_DOCUMENT)

    assert response.status_code == 200
    record = response.json()
    assert record["id"] == 1
    assert record["file_name"] == "A.pdf"
    assert record["analysis"] == {"summary": "Light to energy", "topics": ["biology"]}
    assert record["content_hash"] is None
    assert record["created_at"]


@pytest.mark.asyncio
async def test_list_is_newest_first(client):
    await client.post("/api/documents", json=_DOCUMENT)
    await client.post("/api/documents", json={**_DOCUMENT, "fileName": "B.pdf"})

    response = await client.get("/api/documents")

    assert [row["file_name"] for row in response.json()] == ["B.pdf", "A.pdf"]


@pytest.mark.asyncio
async def test_get_by_id(client):
    created = (await client.post("/api/documents", json=_DOCUMENT)).json()

    response = await client.get(f"/api/documents/{created['id']}")

    assert response.status_code == 200
    assert response.json()["document_text"] == _DOCUMENT["documentText"]


@pytest.mark.asyncio
async def test_missing_record_is_404(client):
    response = await client.get("/api/question_banks/999")

    assert response.status_code == 404
    assert response.json() == {"error": "question_banks 999 not found"}


@pytest.mark.asyncio
async def test_empty_file_name_is_rejected(client):
    response = await client.post("/api/documents", json={**_DOCUMENT, "fileName": "  "})

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "Request validation failed"
    assert body["fields"]


@pytest.mark.asyncio
async def test_empty_document_text_is_stored(client):
    response = await client.post("/api/documents", json={**_DOCUMENT, "documentText": ""})

    assert response.status_code == 200
    assert response.json()["document_text"] == ""


@pytest.mark.asyncio
async def test_malformed_content_hash_is_rejected(client):
    response = await client.post("/api/documents", json={**_DOCUMENT, "contentHash": "ABC"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Correlation-ID": "abc123"})

    assert response.headers["X-Correlation-ID"] == "abc123"


@pytest.mark.asyncio
async def test_generated_correlation_id(client):
    response = await client.get("/health")

    assert len(response.headers["X-Correlation-ID"]) == 12


@pytest.mark.asyncio
async def test_interview_and_question_bank_round_trip(client):
    interview = await client.post(
        "/api/interviews",
        json={
            "cvContent": "Ten years of Python.",
            "targetPosition": "Backend Engineer",
            "interviewType": "technical",
            "questions": [{"id": "q1", "question": "Why Python?"}],
            "answers": [],
            "feedback": {"overallScore": 80},
            "overallScore": 80,
            "status": "completed",
        },
    )
    bank = await client.post("/api/question_banks", json={"name": "Algebra", "tags": ["math"]})

    assert interview.status_code == 200
    assert interview.json()["target_position"] == "Backend Engineer"
    assert interview.json()["questions"] == [{"id": "q1", "question": "Why Python?"}]
    assert bank.status_code == 200
    assert bank.json()["tags"] == ["math"]
    assert bank.json()["is_public"] is False


@pytest.mark.asyncio
async def test_database_error_is_500(app, monkeypatch):
    async def _broken_list_all():
        raise peewee.OperationalError("disk I/O error")

    monkeypatch.setattr(app.state.repositories["documents"], "list_all", _broken_list_all)

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as http_client:
        response = await http_client.get("/api/documents")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


class TestRemoteStoreClient:
    @pytest.mark.asyncio
    async def test_questions_through_client(self, app):
        async with RemoteStoreClient(
            "http://test/api", transport=httpx.ASGITransport(app=app)
        ) as store:
            created = await store.create_question(
                CreateQuestionRequest(
                    type="multiple-choice",
                    question="2 + 2?",
                    options=["3", "4"],
                    correct_answer_index=1,
                )
            )
            fetched = await store.get_question(created.id)
            listed = await store.list_questions()

        assert fetched.correct_answer_index == 1
        assert [question.id for question in listed] == [created.id]

    @pytest.mark.asyncio
    async def test_not_found_raises_with_status(self, app):
        async with RemoteStoreClient(
            "http://test/api", transport=httpx.ASGITransport(app=app)
        ) as store:
            with pytest.raises(RemoteStoreError) as exc_info:
                await store.get_document(42)

        assert exc_info.value.status_code == 404
        assert str(exc_info.value) == "HTTP 404: documents 42 not found"

    @pytest.mark.asyncio
    async def test_health_check(self, app):
        async with RemoteStoreClient(
            "http://test/api", transport=httpx.ASGITransport(app=app)
        ) as store:
            assert await store.health_check() is True

    @pytest.mark.asyncio
    async def test_client_requires_context_manager(self):
        with pytest.raises(RuntimeError, match="not initialized"):
            await RemoteStoreClient("http://test/api").list_documents()
