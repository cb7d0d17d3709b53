"""Aggregate counts and the user-facing summary for a finished sync."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from collections.abc import Sequence

    from studysync.adapters.remote_store.models import SyncOutcome


class SyncSummary(BaseModel):
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    duplicates: int = 0
    by_reason: dict[str, int] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)

    @property
    def hard_failures(self) -> int:
        """Failures other than skipped duplicates."""
        return self.failed - self.duplicates


def summarize(outcomes: Sequence[SyncOutcome]) -> SyncSummary:
    reasons = Counter(outcome.reason for outcome in outcomes if not outcome.succeeded)
    errors = [
        f"{outcome.label}: {outcome.error}"
        for outcome in outcomes
        if not outcome.succeeded and outcome.error
    ]
    succeeded = sum(1 for outcome in outcomes if outcome.succeeded)
    return SyncSummary(
        total=len(outcomes),
        succeeded=succeeded,
        failed=len(outcomes) - succeeded,
        duplicates=reasons.get("duplicate", 0),
        by_reason={str(reason): count for reason, count in reasons.items()},
        errors=errors,
    )


def format_sync_summary(outcomes: Sequence[SyncOutcome]) -> str:
    summary = summarize(outcomes)
    if summary.total == 0:
        return "Nothing to sync."
    if summary.failed == 0:
        return f"Synced {summary.succeeded} of {summary.total} items."

    lines = [f"Synced {summary.succeeded} of {summary.total} items."]
    if summary.duplicates == summary.failed:
        lines.append(
            f"{summary.duplicates} item(s) were already in the remote store and were skipped."
        )
    else:
        lines.append(
            f"{summary.failed} item(s) were not synced. Most of these are usually items "
            "that already exist in the remote store and were skipped as duplicates."
        )
        other = ", ".join(
            f"{reason}: {count}"
            for reason, count in sorted(summary.by_reason.items())
            if reason != "duplicate"
        )
        lines.append(f"Other reasons: {other}.")
    if summary.errors:
        lines.append("Details:")
        lines.extend(f"  - {error}" for error in summary.errors)
    return "\n".join(lines)


def has_hard_failures(outcomes: Sequence[SyncOutcome]) -> bool:
    return summarize(outcomes).hard_failures > 0
