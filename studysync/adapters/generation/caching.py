"""Content generator wrapper that memoizes results in a ``ResultCache``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

from studysync.domain.models import AnalysisResult
from studysync.infrastructure.cache.result_cache import make_cache_key

if TYPE_CHECKING:
    from studysync.infrastructure.cache.result_cache import ResultCache

logger = logging.getLogger(__name__)


class ContentGenerator(Protocol):
    """AI-backed generator of study material. Prompts and schemas live behind it."""

    async def analyze_document(self, text: str) -> AnalysisResult: ...

    async def generate_questions(
        self, text: str, *, count: int = 5, difficulty: str = "medium"
    ) -> list[dict[str, Any]]: ...


class CachingContentGenerator:
    def __init__(
        self,
        generator: ContentGenerator,
        cache: ResultCache,
        *,
        provider: str = "default",
        ttl: float | None = None,
    ) -> None:
        self._generator = generator
        self._cache = cache
        self._provider = provider
        self._ttl = ttl

    async def analyze_document(self, text: str) -> AnalysisResult:
        key = make_cache_key(self._provider, "analyze_document", text)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("generation_cache_hit", extra={"operation": "analyze_document"})
            return AnalysisResult.model_validate(cached)

        result = await self._generator.analyze_document(text)
        self._cache.set(key, result.model_dump(mode="json", by_alias=True), ttl=self._ttl)
        return result

    async def generate_questions(
        self, text: str, *, count: int = 5, difficulty: str = "medium"
    ) -> list[dict[str, Any]]:
        params = {"count": count, "difficulty": difficulty}
        key = make_cache_key(self._provider, "generate_questions", text, params)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("generation_cache_hit", extra={"operation": "generate_questions"})
            return [dict(question) for question in cached]

        questions = await self._generator.generate_questions(
            text, count=count, difficulty=difficulty
        )
        self._cache.set(key, [dict(question) for question in questions], ttl=self._ttl)
        return questions
