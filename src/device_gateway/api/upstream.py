"""Client for the upstream chat completion API.

One attempt per call, bounded by a hard timeout. Failures are raised as
UpstreamError subclasses; callers never see the credential or raw upstream
error text.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from ..core.exceptions import (
    UpstreamConnectionError,
    UpstreamError,
    UpstreamResponseError,
    UpstreamTimeoutError,
)


@dataclass(frozen=True)
class UpstreamResponse:
    """Raw upstream success body, relayed to the client unchanged."""

    content: bytes
    media_type: str


class UpstreamClient:
    """Forwards chat messages to the completion API."""

    def __init__(
        self,
        url: str,
        api_key: str | None,
        model: str,
        timeout_seconds: float = 15.0,
        http: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize upstream client.

        Args:
            url: Full completion endpoint URL
            api_key: Server-held bearer credential
            model: Model name sent with every request
            timeout_seconds: Hard limit for the whole request
            http: Optional pre-built client (tests inject a mock transport)
            transport: Transport for the default client when `http` is omitted
        """
        self.url = url
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._api_key = api_key
        self._http = http or httpx.AsyncClient(
            timeout=timeout_seconds, follow_redirects=True, transport=transport
        )

    async def complete(self, messages: list[Any]) -> UpstreamResponse:
        """Send one chat completion request.

        Args:
            messages: Chat messages, forwarded as-is

        Returns:
            The upstream success body

        Raises:
            UpstreamError: on missing credential, network failure, timeout,
                or any non-2xx status
        """
        if not self._api_key:
            raise UpstreamError("Upstream credential is not configured", context={"url": self.url})

        payload = {"model": self.model, "messages": messages}
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = await asyncio.wait_for(
                self._http.post(self.url, json=payload, headers=headers),
                timeout=self.timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise UpstreamTimeoutError(self.timeout_seconds, self.url) from e
        except httpx.HTTPError as e:
            raise UpstreamConnectionError(self.url, e) from e

        if not response.is_success:
            raise UpstreamResponseError(response.status_code, response.text, self.url)

        media_type = response.headers.get("content-type", "application/json")
        logger.debug(f"Upstream answered {response.status_code} ({len(response.content)} bytes)")
        return UpstreamResponse(content=response.content, media_type=media_type)

    async def aclose(self) -> None:
        await self._http.aclose()
