from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class RemoteStoreConfig(BaseModel):
    """Connection settings for the shared remote store."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_url: str = Field(
        default="http://localhost:3002/api",
        validation_alias="REMOTE_STORE_URL",
        description="Base URL of the remote store API",
    )
    timeout_sec: float = Field(
        default=10.0,
        validation_alias="REMOTE_STORE_TIMEOUT_SEC",
        description="Per-request timeout in seconds",
    )

    @field_validator("api_url", mode="before")
    @classmethod
    def _validate_api_url(cls, value: Any) -> str:
        url = str(value or "").strip()
        if not url:
            return "http://localhost:3002/api"
        if not url.startswith(("http://", "https://")):
            msg = f"Remote store URL must start with http:// or https://: {url}"
            raise ValueError(msg)
        return url.rstrip("/")

    @field_validator("timeout_sec", mode="before")
    @classmethod
    def _validate_timeout(cls, value: Any) -> float:
        try:
            parsed = float(str(value if value not in (None, "") else 10.0))
        except ValueError as exc:
            msg = "Remote store timeout must be a valid number"
            raise ValueError(msg) from exc
        if parsed <= 0 or parsed > 600:
            msg = "Remote store timeout must be between 0 and 600 seconds"
            raise ValueError(msg)
        return parsed


class SyncPolicyConfig(BaseModel):
    """Per item type retry policy for the sync engine.

    Documents are retried by default while interviews and question banks get a
    single best-effort attempt.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    document_max_attempts: int = Field(default=3, validation_alias="SYNC_DOCUMENT_MAX_ATTEMPTS")
    interview_max_attempts: int = Field(default=1, validation_alias="SYNC_INTERVIEW_MAX_ATTEMPTS")
    question_bank_max_attempts: int = Field(
        default=1, validation_alias="SYNC_QUESTION_BANK_MAX_ATTEMPTS"
    )
    base_delay_sec: float = Field(default=1.0, validation_alias="SYNC_BASE_DELAY_SEC")
    max_jitter_sec: float = Field(default=1.0, validation_alias="SYNC_MAX_JITTER_SEC")
    reuse_remote_listing: bool = Field(
        default=False,
        validation_alias="SYNC_REUSE_REMOTE_LISTING",
        description="List each remote resource once per run instead of once per item",
    )

    @field_validator(
        "document_max_attempts",
        "interview_max_attempts",
        "question_bank_max_attempts",
        mode="before",
    )
    @classmethod
    def _validate_attempts(cls, value: Any, info: ValidationInfo) -> int:
        default = cls.model_fields[info.field_name].default
        try:
            parsed = int(str(value if value not in (None, "") else default))
        except ValueError as exc:
            msg = f"{info.field_name.replace('_', ' ')} must be a valid integer"
            raise ValueError(msg) from exc
        if parsed < 1 or parsed > 10:
            msg = f"{info.field_name.replace('_', ' ').capitalize()} must be between 1 and 10"
            raise ValueError(msg)
        return parsed

    @field_validator("base_delay_sec", "max_jitter_sec", mode="before")
    @classmethod
    def _validate_delay(cls, value: Any, info: ValidationInfo) -> float:
        default = cls.model_fields[info.field_name].default
        try:
            parsed = float(str(value if value not in (None, "") else default))
        except ValueError as exc:
            msg = f"{info.field_name.replace('_', ' ')} must be a valid number"
            raise ValueError(msg) from exc
        if parsed < 0 or parsed > 60:
            msg = f"{info.field_name.replace('_', ' ').capitalize()} must be between 0 and 60"
            raise ValueError(msg)
        return parsed
