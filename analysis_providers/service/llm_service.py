"""High-level analysis service.

``LLMService`` binds one provider (plus its resolved key, model and base URL)
and exposes the operations a reading application needs: plain and
structured requests, chat streaming, streamed chapter analysis with progress
events, follow-up insight/quiz generation, chapter classification and
summaries.

Every call builds a fresh adapter and orchestrator, so a service instance can
serve concurrent calls. Streaming operations return a
:class:`~analysis_providers.base.streaming.StreamController`; iterate it with
``async for`` and call ``cancel()`` to abandon the stream. Cancelling or
leaving the task that iterates it also closes the stream.
"""
from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Callable, Dict, Optional, Sequence, Tuple, Type, TypeVar, Union

import httpx
from pydantic import BaseModel

from ..base.capture import CaptureSink
from ..base.dto import (
    AnnotationsResponse,
    ChapterAnalysis,
    ClassificationResponse,
    ProviderRequestConfig,
    QuizResponse,
    RequestPrompt,
    StructuredSchema,
    SummaryResponse,
    schemas,
)
from ..base.errors import ProviderError
from ..base.factory import LLMProvider, create_adapter
from ..base.log_support import LogContext
from ..base.logging import get_logger, log_event
from ..base.pricing import estimate_cost
from ..base.reasoning import ReasoningLevel
from ..base.streaming import (
    AnalysisEventKind,
    AnalysisStreamEvent,
    StreamController,
    StreamItem,
    StreamOrchestrator,
)
from ..base.structured import decode_structured
from ..base.tokens import UsageRecord
from ..config import get_provider_config
from ..config.defaults import (
    ANTHROPIC_CHEAP_MODEL,
    DEFAULT_TEMPERATURE,
    GEMINI_CHEAP_MODEL,
    HELPER_TEMPERATURE,
    OPENAI_CHEAP_MODEL,
    PROVIDER_CLI_DEFAULT_PROVIDER,
)
from . import prompts
from .prompts import DensityLevel

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")

UsageObserver = Callable[[str, UsageRecord], None]

CHEAP_MODELS: Dict[LLMProvider, str] = {
    LLMProvider.GEMINI: GEMINI_CHEAP_MODEL,
    LLMProvider.OPENAI: OPENAI_CHEAP_MODEL,
    LLMProvider.ANTHROPIC: ANTHROPIC_CHEAP_MODEL,
}

_logger = get_logger("analysis_providers.service")


class LLMService:
    """Provider-bound facade over the adapters and the stream orchestrator.

    Parameters:
        provider: Provider id (``gemini``/``google``, ``openai``, ``anthropic``).
        model, api_key, base_url: Overrides; unset values come from
            :func:`~analysis_providers.config.get_provider_config`.
        temperature: Sampling temperature for main requests.
        reasoning: Reasoning effort for analysis requests.
        chat_reasoning: Reasoning effort for chat streams.
        client: ``httpx.AsyncClient`` to use instead of the shared pool.
        capture: Record-mode sink observing raw payloads.
        usage_observer: Called with ``(model, usage)`` for every usage record.
        cheap_helpers: Run summaries and classification on the provider's
            cheapest model instead of ``model``.
    """

    def __init__(
        self,
        provider: Union[str, LLMProvider, None] = None,
        *,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = DEFAULT_TEMPERATURE,
        reasoning: ReasoningLevel = ReasoningLevel.MEDIUM,
        chat_reasoning: ReasoningLevel = ReasoningLevel.LOW,
        client: Optional[httpx.AsyncClient] = None,
        capture: Optional[CaptureSink] = None,
        usage_observer: Optional[UsageObserver] = None,
        cheap_helpers: bool = True,
    ) -> None:
        self.provider = LLMProvider.parse(provider or PROVIDER_CLI_DEFAULT_PROVIDER)
        cfg = get_provider_config(
            self.provider.value,
            {"model": model, "api_key": api_key, "base_url": base_url},
        )
        self.model: str = cfg.get("model") or ""
        self.api_key: str = cfg.get("api_key") or ""
        self.base_url: Optional[str] = cfg.get("base_url")
        self.temperature = temperature
        self.reasoning = reasoning
        self.chat_reasoning = chat_reasoning
        self.cheap_helpers = cheap_helpers
        self._client = client
        self._capture = capture
        self._usage_observer = usage_observer

    # Plumbing --------------------------------------------------------------
    @property
    def helper_model(self) -> str:
        """Model used for summaries and classification."""
        return CHEAP_MODELS[self.provider] if self.cheap_helpers else self.model

    def request_config(
        self,
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        reasoning: Optional[ReasoningLevel] = None,
        schema: Optional[StructuredSchema] = None,
    ) -> ProviderRequestConfig:
        return ProviderRequestConfig(
            model=model or self.model,
            api_key=self.api_key,
            temperature=self.temperature if temperature is None else temperature,
            reasoning=self.reasoning if reasoning is None else reasoning,
            output_schema=schema,
            base_url=self.base_url,
        )

    def _orchestrator(self, config: ProviderRequestConfig, name_hint: str) -> StreamOrchestrator:
        return StreamOrchestrator(
            create_adapter(self.provider),
            config,
            client=self._client,
            capture=self._capture,
            name_hint=name_hint,
        )

    def _observe(self, model: str, usage: Optional[UsageRecord], name_hint: str) -> None:
        if usage is None:
            return
        log_event(
            _logger,
            "usage.recorded",
            LogContext(provider=self.provider.value, model=model, stream=name_hint),
            level=logging.DEBUG,
            tokens=usage.to_dict(),
            estimated_cost_usd=estimate_cost(model, usage),
        )
        if self._usage_observer is not None:
            self._usage_observer(model, usage)

    async def _observed(self, source: AsyncIterator[T], model: str, name_hint: str) -> AsyncIterator[T]:
        try:
            async for item in source:
                usage = item if isinstance(item, UsageRecord) else getattr(item, "usage", None)
                self._observe(model, usage, name_hint)
                yield item
        finally:
            await source.aclose()  # type: ignore[attr-defined]

    # Non-streaming ------------------------------------------------------------
    async def request_text(
        self,
        prompt: Union[str, RequestPrompt],
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        reasoning: Optional[ReasoningLevel] = None,
        name_hint: str = "request_text",
    ) -> Tuple[str, Optional[UsageRecord]]:
        """Send one non-streaming request and return ``(text, usage)``."""
        if isinstance(prompt, str):
            prompt = RequestPrompt.plain(prompt)
        config = self.request_config(model=model, temperature=temperature, reasoning=reasoning)
        text, usage = await self._orchestrator(config, name_hint).request(prompt)
        self._observe(config.model, usage, name_hint)
        return text, usage

    async def request_structured(
        self,
        prompt: Union[str, RequestPrompt],
        payload_type: Type[M],
        schema: StructuredSchema,
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        reasoning: Optional[ReasoningLevel] = None,
        name_hint: str = "request_structured",
    ) -> Tuple[M, Optional[UsageRecord]]:
        """Request schema-constrained output and decode it into ``payload_type``."""
        if isinstance(prompt, str):
            prompt = RequestPrompt.plain(prompt)
        config = self.request_config(model=model, temperature=temperature, reasoning=reasoning, schema=schema)
        text, usage = await self._orchestrator(config, name_hint).request(prompt)
        self._observe(config.model, usage, name_hint)
        try:
            payload = decode_structured(text, payload_type)
        except ProviderError as err:
            raise err.bind(self.provider.value, config.model)
        return payload, usage

    # Streaming -----------------------------------------------------------------
    def stream_text(
        self,
        prompt: Union[str, RequestPrompt],
        *,
        reasoning: Optional[ReasoningLevel] = None,
        name_hint: str = "chat_stream",
    ) -> StreamController[StreamItem]:
        """Stream content/thinking chunks and one usage record."""
        if isinstance(prompt, str):
            prompt = RequestPrompt.plain(prompt)
        config = self.request_config(reasoning=self.chat_reasoning if reasoning is None else reasoning)
        source = self._orchestrator(config, name_hint).stream_chunks(prompt)
        return StreamController(self._observed(source, config.model, name_hint), name=name_hint)

    def chat_streaming(
        self,
        message: str,
        content_with_blocks: str,
        rolling_summary: Optional[str] = None,
    ) -> StreamController[StreamItem]:
        return self.stream_text(prompts.chat_prompt(message, content_with_blocks, rolling_summary))

    def _analysis_stream(
        self,
        prompt: RequestPrompt,
        payload_type: Type[M],
        schema: StructuredSchema,
        name_hint: str,
    ) -> StreamController[AnalysisStreamEvent]:
        config = self.request_config(schema=schema)
        source = self._orchestrator(config, name_hint).analysis_events(prompt, payload_type)
        return StreamController(self._observed(source, config.model, name_hint), name=name_hint)

    def analyze_chapter_streaming(
        self,
        content_with_blocks: str,
        rolling_summary: Optional[str] = None,
        *,
        book_title: Optional[str] = None,
        author: Optional[str] = None,
        insight_density: DensityLevel = DensityLevel.MEDIUM,
        image_density: Optional[DensityLevel] = None,
    ) -> StreamController[AnalysisStreamEvent]:
        """Stream a chapter analysis.

        Yields thinking text, one ``insight_found`` per annotation title and
        one ``quiz_question_found`` per question as they appear, the usage
        record, and finally ``completed`` carrying a :class:`ChapterAnalysis`.
        Image suggestions are requested only when ``image_density`` is set.
        """
        prompt = prompts.analysis_prompt(
            content_with_blocks,
            rolling_summary,
            book_title=book_title,
            author=author,
            insight_density=insight_density,
            image_density=image_density,
            word_count=len(content_with_blocks.split()),
        )
        return self._analysis_stream(
            prompt,
            ChapterAnalysis,
            schemas.chapter_analysis(images_enabled=image_density is not None),
            "chapter_analysis_stream",
        )

    async def analyze_chapter(
        self,
        content_with_blocks: str,
        rolling_summary: Optional[str] = None,
        **options: Any,
    ) -> ChapterAnalysis:
        """Run :meth:`analyze_chapter_streaming` to completion and return its payload."""
        stream = self.analyze_chapter_streaming(content_with_blocks, rolling_summary, **options)
        return await collect_completed(stream, ChapterAnalysis)

    def generate_more_insights_streaming(
        self,
        content_with_blocks: str,
        rolling_summary: Optional[str],
        existing_titles: Sequence[str],
        insight_density: DensityLevel = DensityLevel.MEDIUM,
    ) -> StreamController[AnalysisStreamEvent]:
        prompt = prompts.more_insights_prompt(content_with_blocks, rolling_summary, existing_titles, insight_density)
        return self._analysis_stream(prompt, AnnotationsResponse, schemas.ANNOTATIONS_ONLY, "more_insights_stream")

    def generate_more_questions_streaming(
        self,
        content_with_blocks: str,
        rolling_summary: Optional[str],
        existing_questions: Sequence[str],
    ) -> StreamController[AnalysisStreamEvent]:
        prompt = prompts.more_questions_prompt(content_with_blocks, rolling_summary, existing_questions)
        return self._analysis_stream(prompt, QuizResponse, schemas.QUIZ_ONLY, "more_questions_stream")

    # Helpers (cheap model) ------------------------------------------------------
    async def classify_chapters(self, chapters: Sequence[Tuple[int, str, str]]) -> Dict[int, bool]:
        """Map chapter index -> ``True`` when the chapter is front/back matter.

        ``chapters`` holds ``(index, title, preview)`` tuples. Indices the model
        skipped (``0..len(chapters)-1``) default to ``False`` (content).
        """
        response, _ = await self.request_structured(
            prompts.chapter_classification_prompt(chapters),
            ClassificationResponse,
            schemas.CHAPTER_CLASSIFICATION,
            model=self.helper_model,
            temperature=HELPER_TEMPERATURE,
            reasoning=ReasoningLevel.OFF,
            name_hint="chapter_classification",
        )
        result = {c.index: c.type == "garbage" for c in response.classifications}
        for i in range(len(chapters)):
            result.setdefault(i, False)
        return result

    async def generate_summary(
        self,
        content_with_blocks: str,
        rolling_summary: Optional[str] = None,
    ) -> Tuple[str, Optional[UsageRecord]]:
        response, usage = await self.request_structured(
            prompts.summary_prompt(content_with_blocks, rolling_summary),
            SummaryResponse,
            schemas.SUMMARY_ONLY,
            model=self.helper_model,
            temperature=HELPER_TEMPERATURE,
            reasoning=ReasoningLevel.OFF,
            name_hint="chapter_summary",
        )
        return response.summary, usage


async def collect_completed(stream: StreamController[AnalysisStreamEvent], payload_type: Type[M]) -> M:
    """Drain an analysis stream and return the ``completed`` payload.

    Raises ``INVALID_RESPONSE`` when the stream ends without one.
    """
    payload: Optional[M] = None
    async with stream:
        async for event in stream:
            if event.kind is AnalysisEventKind.COMPLETED:
                payload = event.payload
    if not isinstance(payload, payload_type):
        raise ProviderError.invalid_response()
    return payload


__all__ = ["LLMService", "UsageObserver", "CHEAP_MODELS", "collect_completed"]
