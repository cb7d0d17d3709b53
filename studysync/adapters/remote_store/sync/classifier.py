"""Decides whether a local item already exists in the remote store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from studysync.adapters.remote_store.sync.hashing import (
    _check_hash_in_set,
    document_fingerprints,
)
from studysync.domain.models import DocumentItem, InterviewItem, QuestionBankItem

if TYPE_CHECKING:
    from studysync.adapters.remote_store.sync.cache import RemoteListingCache
    from studysync.adapters.remote_store.sync.protocols import RemoteStoreClientProtocol

logger = logging.getLogger(__name__)


class DuplicateClassifier:
    """Classifies one local item against the current remote listing.

    Listing failures propagate to the caller. A failed query never counts
    as "not a duplicate".
    """

    def __init__(self, client: RemoteStoreClientProtocol, *, cache: RemoteListingCache) -> None:
        self._client = client
        self._cache = cache

    async def is_duplicate(
        self,
        item: DocumentItem | InterviewItem | QuestionBankItem,
        *,
        correlation_id: str = "",
    ) -> bool:
        match item:
            case DocumentItem():
                return await self._document_exists(item, correlation_id)
            case InterviewItem(interview=interview):
                remote = await self._cache.interviews(self._client, correlation_id=correlation_id)
                return any(
                    record.target_position == interview.target_position
                    and record.cv_content == interview.cv_content
                    for record in remote
                )
            case QuestionBankItem(bank=bank):
                remote = await self._cache.question_banks(
                    self._client, correlation_id=correlation_id
                )
                return any(record.name == bank.name for record in remote)
        msg = f"Unsupported local item: {type(item).__name__}"
        raise TypeError(msg)

    async def _document_exists(self, item: DocumentItem, correlation_id: str) -> bool:
        remote = await self._cache.documents(self._client, correlation_id=correlation_id)
        candidates = document_fingerprints(item.document_text, item.analysis_payload())
        stored_hashes = {record.content_hash for record in remote if record.content_hash}
        if _check_hash_in_set(candidates, stored_hashes):
            return True

        # Rows written before content hashing carry no hash.
        for record in remote:
            if record.content_hash:
                continue
            if (
                record.file_name == item.file_name
                and record.document_text == item.document_text
            ):
                logger.debug(
                    "sync_duplicate_matched_unhashed_row",
                    extra={"correlation_id": correlation_id, "record_id": record.id},
                )
                return True
        return False
