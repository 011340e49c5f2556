"""Secure HTTP client: the single outbound path for catalog calls.

Responsibilities:
  1. scrub API keys out of every exception message
  2. uniform timeout and retry policy
  3. keep the httpx dependency in one place
"""

from __future__ import annotations

import asyncio
import os
from typing import Any, Optional

import httpx

from dateplanner.security.key_manager import get_key_manager
from dateplanner.shared.exceptions import ToolError


_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


class SecureHttpClient:
    """Async httpx wrapper that never leaks keys through errors."""

    def __init__(
        self,
        *,
        timeout: float = 15.0,
        max_retries: int = 1,
        tool_name: str = "http",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        cap = _float_env("CATALOG_HTTP_TIMEOUT_CAP_SECONDS", 30.0)
        self._timeout = max(1.0, min(float(timeout), cap))
        self._max_retries = max(0, int(max_retries))
        self._tool_name = tool_name
        self._transport = transport
        self._km = get_key_manager()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send with retries on 429/5xx and transport errors; raise a scrubbed ToolError."""
        failure = ToolError(self._tool_name, "request not attempted")
        for attempt in range(self._max_retries + 1):
            if attempt:
                await asyncio.sleep(0.5 * attempt)
            try:
                async with self._client() as client:
                    resp = await client.request(method, url, **kwargs)
                resp.raise_for_status()
                return resp
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                failure = ToolError(self._tool_name, f"HTTP {status}: {self._km.scrub_text(str(exc))}")
                if status not in _RETRYABLE_STATUS:
                    break
            except httpx.TimeoutException:
                failure = ToolError(self._tool_name, f"timed out after {self._timeout}s (attempt {attempt + 1})")
            except httpx.HTTPError as exc:
                failure = ToolError(self._tool_name, f"network error: {self._km.scrub_text(str(exc))}")
        raise failure

    async def get_json(
        self,
        url: str,
        *,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        resp = await self._request("GET", url, params=params, headers=headers)
        try:
            return resp.json()
        except ValueError:
            raise ToolError(self._tool_name, "response body is not JSON") from None


__all__ = ["SecureHttpClient"]
