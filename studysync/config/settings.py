from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from .remote_store import RemoteStoreConfig, SyncPolicyConfig
from .storage import CacheConfig, LocalStoreConfig, ServerConfig

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pydantic.fields import FieldInfo

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class RuntimeConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(default=True, validation_alias="LOG_JSON")

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: Any) -> str:
        level = str(value or "INFO").strip().upper()
        if level not in _LOG_LEVELS:
            msg = f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {value!r}"
            raise ValueError(msg)
        return level


@dataclass(frozen=True)
class AppConfig:
    runtime: RuntimeConfig
    remote_store: RemoteStoreConfig
    sync_policy: SyncPolicyConfig
    local_store: LocalStoreConfig
    server: ServerConfig
    cache: CacheConfig


_SECTIONS: dict[str, type[BaseModel]] = {
    "runtime": RuntimeConfig,
    "remote_store": RemoteStoreConfig,
    "sync_policy": SyncPolicyConfig,
    "local_store": LocalStoreConfig,
    "server": ServerConfig,
    "cache": CacheConfig,
}


def _env_names(field: FieldInfo) -> list[str]:
    alias = field.validation_alias
    if isinstance(alias, AliasChoices):
        return [choice for choice in alias.choices if isinstance(choice, str)]
    if isinstance(alias, str):
        return [alias]
    return []


def _section_from_env(section: type[BaseModel], source: Mapping[str, Any]) -> dict[str, Any]:
    """Values for one section keyed by field name, read from flat variable names."""
    values: dict[str, Any] = {}
    for name, field in section.model_fields.items():
        for env_name in _env_names(field):
            if env_name in source:
                values[name] = source[env_name]
                break
    return values


class Settings(BaseSettings):
    """Settings read from environment variables and ``.env``.

    Each section is a flat group of variables (``REMOTE_STORE_URL``,
    ``SYNC_DOCUMENT_MAX_ATTEMPTS``, ...) named by the ``validation_alias`` of
    its fields.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    remote_store: RemoteStoreConfig = Field(default_factory=RemoteStoreConfig)
    sync_policy: SyncPolicyConfig = Field(default_factory=SyncPolicyConfig)
    local_store: LocalStoreConfig = Field(default_factory=LocalStoreConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @model_validator(mode="before")
    @classmethod
    def _sections_from_env(cls, data: Any) -> Any:
        """Fill each section from its flat variables; explicit section values win."""
        if not isinstance(data, dict):
            return data

        source = {**os.environ, **data}
        merged = dict(data)
        for name, section in _SECTIONS.items():
            from_env = _section_from_env(section, source)
            explicit = data.get(name)
            if isinstance(explicit, dict):
                merged[name] = {**from_env, **explicit}
            elif explicit is None and from_env:
                merged[name] = from_env
        return merged

    def as_app_config(self) -> AppConfig:
        return AppConfig(**{name: getattr(self, name) for name in _SECTIONS})


def load_config(**overrides: Any) -> AppConfig:
    """Load configuration from the environment and ``.env``.

    Keyword overrides are section dicts (``remote_store={"api_url": ...}``) and
    win over environment values.

    Raises:
        RuntimeError: If a value fails validation.
    """
    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        msg = f"Configuration validation failed: {exc}"
        raise RuntimeError(msg) from exc

    logger.debug(
        "config_loaded",
        extra={
            "remote_store_url": settings.remote_store.api_url,
            "reuse_remote_listing": settings.sync_policy.reuse_remote_listing,
        },
    )
    return settings.as_app_config()
