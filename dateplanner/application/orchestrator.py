"""Generation orchestrator.

One state machine serves all four generation kinds:

    cache check -> rate gate -> provider call -> extract -> build
        success -> cache store -> done
        failure -> backoff -> next attempt, up to ``max_retries`` retries
        exhausted (or no provider) -> deterministic fallback

``generate`` never raises for upstream problems. The only signal a caller
gets about the path taken is ``GenerationOutcome.source``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel

from dateplanner.application.kinds import HANDLERS, KindHandler
from dateplanner.config.settings import PipelineSettings
from dateplanner.domain.enums import GenerationKind, ResultSource
from dateplanner.domain.models import GenerationOutcome, GenerationRequest
from dateplanner.infrastructure.cache import TTLCache
from dateplanner.infrastructure.llm_factory import GenerationProvider
from dateplanner.infrastructure.logging import StructuredLogger, get_logger
from dateplanner.infrastructure.rate_gate import RateGate
from dateplanner.observability.generation_metrics import GenerationMetrics
from dateplanner.parsing.extractor import StructuredExtractor
from dateplanner.security.redact import redact_sensitive
from dateplanner.shared.exceptions import ExternalServiceError, ProviderRateLimited

_logger = logging.getLogger("date-planner.orchestrator")


class _AttemptFailed(Exception):
    def __init__(self, reason: str, retry_after: Optional[float] = None):
        super().__init__(reason)
        self.retry_after = retry_after


class GenerationOrchestrator:
    def __init__(
        self,
        provider: Optional[GenerationProvider],
        rate_gate: RateGate,
        cache: TTLCache,
        settings: Optional[PipelineSettings] = None,
        *,
        extractor: Optional[StructuredExtractor] = None,
        metrics: Optional[GenerationMetrics] = None,
        logger: Optional[StructuredLogger] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        handlers: Optional[dict[GenerationKind, KindHandler]] = None,
    ):
        settings = settings or PipelineSettings()
        self.provider = provider
        self.rate_gate = rate_gate
        self.cache = cache
        self.max_retries = settings.generation_max_retries
        self.base_delay = settings.generation_base_delay_seconds
        self.timeout = settings.llm_timeout_seconds
        self.extractor = extractor or StructuredExtractor()
        self.metrics = metrics or GenerationMetrics()
        self.logger = logger or get_logger()
        self._sleep = sleep
        self._handlers = handlers or HANDLERS

    def backoff_delay(self, retry: int, retry_after: Optional[float] = None) -> float:
        """Delay before retry number ``retry`` (1-based): base, 2*base, 4*base, ..."""
        delay = self.base_delay * (2 ** (retry - 1))
        if retry_after is not None:
            delay = max(delay, retry_after)
        return delay

    async def generate(
        self,
        kind: GenerationKind,
        payload: Any,
        *,
        preacquired: bool = False,
    ) -> GenerationOutcome:
        """Produce a validated artifact for ``payload``.

        ``preacquired`` tells the orchestrator the caller already holds the
        rate-gate slot (taken with ``try_acquire``) for the first attempt.
        """
        handler = self._handlers[kind]
        started = time.monotonic()
        self.logger.generation_start(kind.value)

        request = handler.request(payload)
        if request.cache_key:
            cached = self.cache.get(request.cache_key)
            if cached is not None:
                return self._finish(kind, cached, ResultSource.CACHE, 0, started)

        if self.provider is None:
            _logger.info("no generation provider configured, using fallback for %s", kind.value)
            return self._finish(kind, handler.fallback(payload), None, 0, started)

        attempts = 0
        retry_after: Optional[float] = None
        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                delay = self.backoff_delay(attempt, retry_after)
                _logger.info("retrying %s in %.1fs (attempt %d)", kind.value, delay, attempt + 1)
                await self._sleep(delay)
            if not (preacquired and attempt == 0):
                await self.rate_gate.await_acquire()

            attempts += 1
            try:
                value = await self._attempt(handler, request, payload)
            except _AttemptFailed as exc:
                retry_after = exc.retry_after
                self.logger.generation_attempt(kind.value, attempts, ok=False, reason=str(exc))
                continue

            self.logger.generation_attempt(kind.value, attempts, ok=True)
            if request.cache_key:
                self.cache.set(request.cache_key, value)
            return self._finish(kind, value, ResultSource.GROQ_API, attempts, started)

        self.logger.warning("orchestrator", f"{kind.value} exhausted {attempts} attempts, using fallback")
        return self._finish(kind, handler.fallback(payload), None, attempts, started)

    async def _attempt(self, handler: KindHandler, request: GenerationRequest, payload: Any) -> BaseModel:
        try:
            raw = await asyncio.wait_for(
                self.provider.complete(
                    request.system_prompt,
                    request.user_prompt,
                    request.temperature,
                    request.max_tokens,
                ),
                timeout=self.timeout,
            )
        except ProviderRateLimited as exc:
            self.metrics.observe_rate_limited(request.kind.value)
            raise _AttemptFailed("rate_limited", retry_after=exc.retry_after) from None
        except asyncio.TimeoutError:
            raise _AttemptFailed("timeout") from None
        except ExternalServiceError as exc:
            raise _AttemptFailed(redact_sensitive(str(exc))) from None
        except Exception as exc:
            _logger.warning("provider raised %s", type(exc).__name__)
            raise _AttemptFailed(redact_sensitive(f"{type(exc).__name__}: {exc}")) from None

        extracted = self.extractor.extract_with_strategy(raw, request.constraints)
        if extracted is None:
            raise _AttemptFailed("malformed_output")
        _logger.debug("%s extracted via %s", request.kind.value, extracted.strategy)
        try:
            return handler.build(extracted.value, payload)
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise _AttemptFailed(f"shape_violation: {exc}") from None

    def _finish(
        self,
        kind: GenerationKind,
        value: BaseModel,
        source: Optional[ResultSource],
        attempts: int,
        started: float,
    ) -> GenerationOutcome:
        # None means "whatever the fallback tagged itself with"
        resolved = source or getattr(value, "source", ResultSource.FALLBACK)
        if source is not None and "source" in type(value).model_fields:
            value = value.model_copy(update={"source": source})
        latency_ms = (time.monotonic() - started) * 1000
        self.metrics.observe_generation(kind.value, source=resolved.value, attempts=attempts, latency_ms=latency_ms)
        self.logger.generation_end(kind.value, source=resolved.value, attempts=attempts)
        return GenerationOutcome(kind=kind, value=value, source=resolved, attempts=attempts)


__all__ = ["GenerationOrchestrator"]
