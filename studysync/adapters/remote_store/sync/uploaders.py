"""Translate local items into remote store write requests and send them."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from studysync.adapters.remote_store.models import (
    CreateDocumentRequest,
    CreateInterviewRequest,
    CreateQuestionBankRequest,
)
from studysync.adapters.remote_store.sync.hashing import fingerprint
from studysync.core.logging_utils import truncate_log_content
from studysync.domain.models import DocumentItem, InterviewItem, QuestionBankItem

if TYPE_CHECKING:
    from studysync.adapters.remote_store.models import RemoteRecord
    from studysync.adapters.remote_store.sync.protocols import RemoteStoreClientProtocol

logger = logging.getLogger(__name__)


def document_request(item: DocumentItem) -> CreateDocumentRequest:
    analysis = item.analysis_payload()
    return CreateDocumentRequest(
        file_name=item.file_name,
        document_text=item.document_text,
        analysis=analysis,
        content_hash=fingerprint(item.document_text, analysis),
    )


def interview_request(item: InterviewItem) -> CreateInterviewRequest:
    interview = item.interview
    feedback = interview.feedback
    overall_score = interview.overall_score
    if overall_score is None and feedback is not None:
        overall_score = feedback.overall_score
    return CreateInterviewRequest(
        cv_content=interview.cv_content,
        cv_file_name=interview.cv_file_name,
        target_position=interview.target_position,
        interview_type=interview.interview_type,
        custom_prompt=interview.custom_prompt,
        questions=[question.to_wire() for question in interview.questions],
        answers=[answer.to_wire() for answer in interview.answers],
        overall_score=overall_score,
        feedback=feedback.to_wire() if feedback is not None else {},
        completed_at=interview.completed_at,
        status=interview.status,
    )


def question_bank_request(item: QuestionBankItem) -> CreateQuestionBankRequest:
    bank = item.bank
    return CreateQuestionBankRequest(
        name=bank.name,
        description=bank.description or "",
        subject=bank.subject or "",
        tags=list(bank.tags or []),
        questions=list(bank.questions),
        is_public=bool(bank.is_public),
        usage_count=bank.usage_count or 0,
    )


class ItemUploader:
    """Writes one local item to the remote store. Exactly one request per call."""

    def __init__(self, client: RemoteStoreClientProtocol) -> None:
        self._client = client

    async def upload(self, item: DocumentItem | InterviewItem | QuestionBankItem) -> RemoteRecord:
        match item:
            case DocumentItem():
                document = document_request(item)
                logger.debug(
                    "sync_upload_document",
                    extra={
                        "file_name": document.file_name,
                        "text_length": len(document.document_text),
                        "content_hash": document.content_hash,
                    },
                )
                return await self._client.create_document(document)
            case InterviewItem():
                interview = interview_request(item)
                logger.debug(
                    "sync_upload_interview",
                    extra={
                        "target_position": interview.target_position,
                        "cv_excerpt": truncate_log_content(interview.cv_content, 80),
                        "questions": len(interview.questions),
                    },
                )
                return await self._client.create_interview(interview)
            case QuestionBankItem():
                bank = question_bank_request(item)
                logger.debug(
                    "sync_upload_question_bank",
                    extra={"bank_name": bank.name, "questions": len(bank.questions)},
                )
                return await self._client.create_question_bank(bank)
        msg = f"Unsupported local item: {type(item).__name__}"
        raise TypeError(msg)
