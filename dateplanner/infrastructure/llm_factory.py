"""Generation provider factory.

Supported environment variables (in priority order):
  GROQ_API_KEY  -> Groq OpenAI-compatible endpoint
  LLM_API_KEY   -> any OpenAI-compatible endpoint (pair with LLM_BASE_URL)

Optional:
  LLM_MODEL     -- model name, defaults to llama-3.1-8b-instant
  LLM_BASE_URL  -- custom base_url

With no key configured ``get_provider`` returns None and every generation
request goes straight to deterministic fallback synthesis.
"""

from __future__ import annotations

import re
from typing import Optional, Protocol, runtime_checkable

import openai
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from dateplanner.config.settings import PipelineSettings, load_settings
from dateplanner.security.key_manager import get_key_manager
from dateplanner.shared.exceptions import ProviderRateLimited, ProviderUnavailable

_RETRY_IN_RE = re.compile(r"try again in\s+(?:(\d+)m)?\s*([\d.]+)\s*(ms|s)\b", re.IGNORECASE)


@runtime_checkable
class GenerationProvider(Protocol):
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str: ...


def parse_retry_after(headers: Optional[dict] = None, message: str = "") -> float | None:
    """Read a retry hint from a ``retry-after`` header or the provider's error text."""
    if headers:
        raw = headers.get("retry-after") or headers.get("Retry-After")
        if raw:
            try:
                return max(0.0, float(raw))
            except ValueError:
                pass
    m = _RETRY_IN_RE.search(message or "")
    if not m:
        return None
    minutes = int(m.group(1) or 0)
    value = float(m.group(2))
    if m.group(3).lower() == "ms":
        value /= 1000.0
    return minutes * 60 + value


class ChatCompletionProvider:
    """OpenAI-compatible chat completion through langchain."""

    def __init__(self, api_key: str, base_url: str, model: str, timeout: float):
        self.model = model
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._clients: dict[tuple[float, int], ChatOpenAI] = {}

    def _client(self, temperature: float, max_tokens: int) -> ChatOpenAI:
        key = (round(float(temperature), 3), int(max_tokens))
        client = self._clients.get(key)
        if client is None:
            client = ChatOpenAI(
                model=self.model,
                temperature=key[0],
                max_tokens=key[1],
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=self._timeout,
                max_retries=0,
            )
            self._clients[key] = client
        return client

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
        try:
            resp = await self._client(temperature, max_tokens).ainvoke(messages)
        except openai.RateLimitError as exc:
            headers = dict(exc.response.headers) if getattr(exc, "response", None) is not None else None
            raise ProviderRateLimited(str(exc), retry_after=parse_retry_after(headers, str(exc))) from None
        except openai.APIError as exc:
            raise ProviderUnavailable(f"{type(exc).__name__}: {exc}") from None
        content = resp.content if hasattr(resp, "content") else str(resp)
        return content if isinstance(content, str) else str(content)


_provider: Optional[GenerationProvider] = None
_provider_resolved: bool = False


def build_provider(settings: PipelineSettings) -> Optional[GenerationProvider]:
    api_key = get_key_manager().get_generation_key()
    if not api_key:
        return None
    return ChatCompletionProvider(
        api_key=api_key,
        base_url=settings.llm_base_url,
        model=settings.llm_model,
        timeout=settings.llm_timeout_seconds,
    )


def get_provider(settings: Optional[PipelineSettings] = None) -> Optional[GenerationProvider]:
    """Process singleton; None means template (fallback-only) mode."""
    global _provider, _provider_resolved
    if _provider_resolved:
        return _provider
    _provider = build_provider(settings or load_settings())
    _provider_resolved = True
    return _provider


def reset_provider() -> None:
    """Drop the singleton (tests, key rotation)."""
    global _provider, _provider_resolved
    _provider = None
    _provider_resolved = False


__all__ = [
    "ChatCompletionProvider",
    "GenerationProvider",
    "build_provider",
    "get_provider",
    "parse_retry_after",
    "reset_provider",
]
