from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)


class UpstreamError(RuntimeError):
    """Network error, timeout or non-success status from an upstream service."""


class HttpClient:
    def __init__(
        self,
        timeout: float = 10.0,
        attempts: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.attempts = max(1, attempts)
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception_type(httpx.HTTPError),
        )

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        logger.debug(f"HTTP GET {url} params={params}")
        return await self._send("GET", url, params=params, headers=headers)

    async def post(self, url: str, json: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        logger.debug(f"HTTP POST {url} json_keys={list(json.keys()) if json else None}")
        return await self._send("POST", url, json=json, headers=headers)

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            async for attempt in self._retrying():
                with attempt:
                    resp = await self._client.request(method, url, **kwargs)
                    resp.raise_for_status()
                    return resp
        except httpx.HTTPStatusError as e:
            raise UpstreamError(f"{method} {url} returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"{method} {url} failed: {e!r}") from e
        raise UpstreamError(f"{method} {url} failed without a response")

    async def aclose(self) -> None:
        await self._client.aclose()
