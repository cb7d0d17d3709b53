from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


def _validate_db_path(value: Any, default: str) -> str:
    path = str(value or "").strip()
    if not path:
        return default
    if "\x00" in path:
        msg = "Database path contains invalid characters"
        raise ValueError(msg)
    return path


class LocalStoreConfig(BaseModel):
    """Offline copy of the user's history kept on this machine."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    db_path: str = Field(default="studysync_local.db", validation_alias="LOCAL_DB_PATH")
    history_limit: int = Field(
        default=100,
        validation_alias="LOCAL_HISTORY_LIMIT",
        description="Maximum number of history items kept after a merge",
    )

    @field_validator("db_path", mode="before")
    @classmethod
    def _validate_path(cls, value: Any) -> str:
        return _validate_db_path(value, "studysync_local.db")

    @field_validator("history_limit", mode="before")
    @classmethod
    def _validate_limit(cls, value: Any) -> int:
        try:
            parsed = int(str(value if value not in (None, "") else 100))
        except ValueError as exc:
            msg = "History limit must be a valid integer"
            raise ValueError(msg) from exc
        if parsed < 1 or parsed > 10_000:
            msg = "History limit must be between 1 and 10000"
            raise ValueError(msg)
        return parsed


class ServerConfig(BaseModel):
    """Remote store server settings."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    db_path: str = Field(default="studysync_remote.db", validation_alias="SERVER_DB_PATH")
    host: str = Field(default="127.0.0.1", validation_alias="SERVER_HOST")
    port: int = Field(default=3002, validation_alias="SERVER_PORT")

    @field_validator("db_path", mode="before")
    @classmethod
    def _validate_path(cls, value: Any) -> str:
        return _validate_db_path(value, "studysync_remote.db")

    @field_validator("port", mode="before")
    @classmethod
    def _validate_port(cls, value: Any) -> int:
        try:
            parsed = int(str(value if value not in (None, "") else 3002))
        except ValueError as exc:
            msg = "Server port must be a valid integer"
            raise ValueError(msg) from exc
        if parsed < 1 or parsed > 65535:
            msg = "Server port must be between 1 and 65535"
            raise ValueError(msg)
        return parsed


class CacheConfig(BaseModel):
    """Generation result cache limits."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    max_entries: int = Field(default=256, validation_alias="GENERATION_CACHE_MAX_ENTRIES")
    ttl_sec: int = Field(default=3600, validation_alias="GENERATION_CACHE_TTL_SEC")

    @field_validator("max_entries", "ttl_sec", mode="before")
    @classmethod
    def _validate_positive_int(cls, value: Any, info: ValidationInfo) -> int:
        default = cls.model_fields[info.field_name].default
        try:
            parsed = int(str(value if value not in (None, "") else default))
        except ValueError as exc:
            msg = f"{info.field_name.replace('_', ' ')} must be a valid integer"
            raise ValueError(msg) from exc
        if parsed <= 0:
            msg = f"{info.field_name.replace('_', ' ').capitalize()} must be positive"
            raise ValueError(msg)
        return parsed
