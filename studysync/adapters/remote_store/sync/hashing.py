"""Content addressing for document deduplication."""

from __future__ import annotations

import hashlib
import json
from typing import Any

from pydantic import BaseModel


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    return value


def _serialize(value: Any, *, sort_keys: bool) -> str:
    return json.dumps(
        _jsonable(value),
        sort_keys=sort_keys,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_jsonable,
    )


def _digest(text: str, serialized: str) -> str:
    return hashlib.sha256((text + serialized).encode("utf-8")).hexdigest()


def fingerprint(text: str, analysis: Any) -> str:
    """Return the 64-char SHA-256 hex digest of ``text`` plus canonical JSON of ``analysis``.

    Keys are sorted, so two analyses that differ only in key order share a
    fingerprint.
    """
    return _digest(text, _serialize(analysis, sort_keys=True))


def legacy_fingerprint(text: str, analysis: Any) -> str:
    """Fingerprint with keys in insertion order, as older clients stored it."""
    return _digest(text, _serialize(analysis, sort_keys=False))


def document_fingerprints(text: str, analysis: Any) -> frozenset[str]:
    """Both accepted fingerprints of one document."""
    return frozenset({fingerprint(text, analysis), legacy_fingerprint(text, analysis)})


def _check_hash_in_set(candidates: frozenset[str], hash_set: set[str]) -> bool:
    return not candidates.isdisjoint(hash_set)
