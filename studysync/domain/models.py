"""Local item models.

Local history is a tagged union over documents, interviews and question
banks, discriminated on the ``type`` field. Field names are snake_case in
Python and camelCase on the wire and in exported history files.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from pydantic import ModelWrapValidatorHandler


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Entity(_CamelModel):
    text: str
    type: str


class DocumentTip(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str = ""
    content: str = ""
    type: str = "factual"
    source: str = ""
    importance: str = "medium"
    category: str | None = None


class AnalysisResult(_CamelModel):
    """Generated analysis of a document."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    summary: str = ""
    topics: list[str] = Field(default_factory=list)
    entities: list[Entity] = Field(default_factory=list)
    sentiment: str = "Neutral"
    tips: list[DocumentTip] = Field(default_factory=list)


class InterviewQuestion(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    question: str
    type: str = "behavioral"
    time_limit: int = 120
    order: int = 0
    category: str | None = None
    difficulty: str | None = None


class InterviewAnswer(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    question_id: str
    answer: str = ""
    time_spent: int = 0
    score: float = 0
    max_score: float = 100
    feedback: str = ""
    strengths: list[str] | None = None
    improvements: list[str] | None = None
    submitted_at: str | None = None


class InterviewFeedback(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    overall_score: float = 0
    position_fit: Any = None
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    summary: str = ""
    detailed_analysis: dict[str, float] | None = None


class CVInterview(_CamelModel):
    id: str
    cv_content: str
    cv_file_name: str | None = None
    target_position: str
    interview_type: str = "general"
    custom_prompt: str | None = None
    questions: list[InterviewQuestion] = Field(default_factory=list)
    answers: list[InterviewAnswer] = Field(default_factory=list)
    overall_score: float | None = None
    feedback: InterviewFeedback | None = None
    created_at: str | None = None
    completed_at: str | None = None
    status: Literal["preparing", "in-progress", "completed", "cancelled"] = "completed"


class QuestionBank(_CamelModel):
    id: str | None = None
    name: str
    description: str | None = None
    subject: str | None = None
    tags: list[str] | None = None
    # Question records are kept as opaque JSON objects.
    questions: list[dict[str, Any]] = Field(default_factory=list)
    is_public: bool | None = None
    usage_count: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


class DocumentItem(_CamelModel):
    type: Literal["document"] = "document"
    file_name: str
    document_text: str
    analysis: AnalysisResult
    date: str

    # Analysis JSON as it was received, key order and missing defaults included.
    _raw_analysis: dict[str, Any] | None = PrivateAttr(default=None)

    @model_validator(mode="wrap")
    @classmethod
    def _keep_raw_analysis(
        cls, data: Any, handler: ModelWrapValidatorHandler[DocumentItem]
    ) -> DocumentItem:
        item = handler(data)
        raw = data.get("analysis") if isinstance(data, dict) else None
        if isinstance(raw, dict):
            item._raw_analysis = copy.deepcopy(raw)
        return item

    def analysis_payload(self) -> dict[str, Any]:
        """The analysis to hash and upload.

        Items read from a history file or the local store keep the JSON they
        were stored with, so fingerprints computed by older clients still match.
        """
        if self._raw_analysis is not None:
            return self._raw_analysis
        return self.analysis.to_wire()

    def to_wire(self) -> dict[str, Any]:
        data = super().to_wire()
        data["analysis"] = self.analysis_payload()
        return data


class InterviewItem(_CamelModel):
    type: Literal["interview"] = "interview"
    interview: CVInterview
    date: str


class QuestionBankItem(_CamelModel):
    type: Literal["question_bank"] = "question_bank"
    bank: QuestionBank


HistoryItem = Annotated[DocumentItem | InterviewItem, Field(discriminator="type")]
LocalItem = Annotated[
    DocumentItem | InterviewItem | QuestionBankItem, Field(discriminator="type")
]


ItemType = Literal["document", "interview", "question_bank"]


def item_label(item: DocumentItem | InterviewItem | QuestionBankItem) -> str:
    """Human-readable label used in progress events and outcomes."""
    match item:
        case DocumentItem(file_name=file_name):
            return file_name
        case InterviewItem(interview=interview):
            return interview.target_position
        case QuestionBankItem(bank=bank):
            return bank.name
    msg = f"Unsupported local item: {type(item).__name__}"
    raise TypeError(msg)


def item_date(item: DocumentItem | InterviewItem | QuestionBankItem) -> str | None:
    match item:
        case DocumentItem(date=date) | InterviewItem(date=date):
            return date
        case QuestionBankItem(bank=bank):
            return bank.updated_at or bank.created_at
    return None
