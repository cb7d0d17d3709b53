"""Pydantic models for the remote store API.

Write requests use camelCase on the wire. Stored records come back with
snake_case columns plus ``id`` and ``created_at``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_REQUEST_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")
_RECORD_CONFIG = ConfigDict(populate_by_name=True, extra="ignore")


def _require_text(value: Any, field_name: str) -> str:
    text = str(value or "").strip()
    if not text:
        msg = f"{field_name} cannot be empty"
        raise ValueError(msg)
    return str(value)


class CreateDocumentRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    file_name: str
    document_text: str
    analysis: dict[str, Any]
    content_hash: str | None = None

    @field_validator("file_name", mode="before")
    @classmethod
    def _validate_text(cls, value: Any) -> str:
        return _require_text(value, "File name")

    @field_validator("content_hash")
    @classmethod
    def _validate_hash(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if len(value) != 64 or any(ch not in "0123456789abcdef" for ch in value):
            msg = "contentHash must be a 64-character lowercase hex digest"
            raise ValueError(msg)
        return value


class CreateInterviewRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    cv_content: str
    cv_file_name: str | None = None
    target_position: str
    interview_type: str
    custom_prompt: str | None = None
    questions: list[dict[str, Any]] = Field(default_factory=list)
    answers: list[dict[str, Any]] = Field(default_factory=list)
    overall_score: float | None = None
    feedback: dict[str, Any] = Field(default_factory=dict)
    completed_at: str | None = None
    status: str

    @field_validator("target_position", mode="before")
    @classmethod
    def _validate_text(cls, value: Any) -> str:
        return _require_text(value, "Target position")


class CreateQuestionRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    type: str
    question: str
    options: list[str] | None = None
    correct_answer_index: int | None = None
    explanation: str | None = None
    key_topic: str | None = None


class CreateQuestionBankRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    name: str
    description: str = ""
    subject: str = ""
    tags: list[str] = Field(default_factory=list)
    questions: list[dict[str, Any]] = Field(default_factory=list)
    is_public: bool = False
    usage_count: int = 0

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: Any) -> str:
        return _require_text(value, "Question bank name")


class RemoteDocument(BaseModel):
    model_config = _RECORD_CONFIG

    id: int
    file_name: str
    document_text: str
    analysis: Any = None
    # Rows written before content addressing have no hash.
    content_hash: str | None = None
    created_at: str | None = None


class RemoteInterview(BaseModel):
    model_config = _RECORD_CONFIG

    id: int
    cv_content: str
    cv_file_name: str | None = None
    target_position: str
    interview_type: str | None = None
    custom_prompt: str | None = None
    questions: Any = None
    answers: Any = None
    overall_score: float | None = None
    feedback: Any = None
    created_at: str | None = None
    completed_at: str | None = None
    status: str | None = None


class RemoteQuestion(BaseModel):
    model_config = _RECORD_CONFIG

    id: int
    type: str
    question: str
    options: list[str] | None = None
    correct_answer_index: int | None = None
    explanation: str | None = None
    key_topic: str | None = None
    created_at: str | None = None


class RemoteQuestionBank(BaseModel):
    model_config = _RECORD_CONFIG

    id: int
    name: str
    description: str | None = None
    subject: str | None = None
    tags: list[str] | None = None
    questions: Any = None
    is_public: bool = False
    usage_count: int = 0
    created_at: str | None = None
    updated_at: str | None = None


RemoteRecord = RemoteDocument | RemoteInterview | RemoteQuestion | RemoteQuestionBank


FailureReason = Literal["duplicate", "transient_network", "validation", "unknown", "aborted"]


class SyncOutcome(BaseModel):
    """Result of syncing one local item."""

    status: Literal["success", "failure"]
    item_type: str
    label: str
    reason: FailureReason | None = None
    error: str | None = None
    attempts: int = 0
    remote_id: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    @property
    def is_duplicate(self) -> bool:
        return self.reason == "duplicate"


class ProgressEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    completed: int
    total: int
    current_label: str

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 100.0
        return round(self.completed * 100.0 / self.total, 1)


class SyncPreview(BaseModel):
    """Dry-run classification of a batch."""

    would_sync: list[dict[str, str]] = Field(default_factory=list)
    would_skip: list[dict[str, str]] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
