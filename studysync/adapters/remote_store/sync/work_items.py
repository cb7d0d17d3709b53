"""Work item models used during sync orchestration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from studysync.domain.models import QuestionBank, QuestionBankItem, item_label

if TYPE_CHECKING:
    from collections.abc import Iterable

    from studysync.adapters.remote_store.sync.retry import RetryPolicy, SyncPolicies
    from studysync.domain.models import DocumentItem, InterviewItem


@dataclass
class _SyncWorkItem:
    """One flattened item with its position, label and retry policy."""

    index: int
    item: DocumentItem | InterviewItem | QuestionBankItem
    label: str
    policy: RetryPolicy

    @property
    def item_type(self) -> str:
        return self.item.type


def flatten(
    local_history: Iterable[DocumentItem | InterviewItem | QuestionBankItem],
    question_banks: Iterable[QuestionBank | QuestionBankItem],
    policies: SyncPolicies,
) -> list[_SyncWorkItem]:
    """History in the order received, then question banks in the order received."""
    banks = [
        QuestionBankItem(bank=bank) if isinstance(bank, QuestionBank) else bank
        for bank in question_banks
    ]
    items = [*local_history, *banks]
    return [
        _SyncWorkItem(
            index=index,
            item=item,
            label=item_label(item),
            policy=policies.for_type(item.type),
        )
        for index, item in enumerate(items)
    ]
