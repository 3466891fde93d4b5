"""Request pre-filters: body size cap and per-client rate limiting."""

import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int


class RateLimiter:
    """Sliding-window request counter keyed by client address."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> RateLimitDecision:
        """Record one request for `key` unless it is already over the limit."""
        now = self._clock()
        window_start = now - self.window_seconds

        with self._lock:
            dq = self._windows.setdefault(key, deque())
            # Drop timestamps outside the window
            while dq and dq[0] <= window_start:
                dq.popleft()

            allowed = len(dq) < self.max_requests
            if allowed:
                dq.append(now)

            reset = math.ceil(dq[0] + self.window_seconds - now) if dq else 0
            return RateLimitDecision(
                allowed=allowed,
                limit=self.max_requests,
                remaining=max(0, self.max_requests - len(dq)),
                reset_seconds=max(0, reset),
            )

    def prune(self) -> None:
        """Forget clients with no requests inside the current window."""
        window_start = self._clock() - self.window_seconds
        with self._lock:
            stale = [k for k, dq in self._windows.items() if not dq or dq[-1] <= window_start]
            for k in stale:
                del self._windows[k]

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)


def client_address(request: Request) -> str:
    """Client address as seen through one trusted reverse proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
        if hops:
            return hops[-1]
    if request.client is not None:
        return request.client.host
    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies a RateLimiter to every request under `path_prefix`."""

    def __init__(self, app, limiter: RateLimiter, path_prefix: str = "/api/"):
        super().__init__(app)
        self.limiter = limiter
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        key = client_address(request)
        decision = self.limiter.hit(key)
        headers = {
            "RateLimit-Limit": str(decision.limit),
            "RateLimit-Remaining": str(decision.remaining),
            "RateLimit-Reset": str(decision.reset_seconds),
        }

        if not decision.allowed:
            logger.warning(f"Rate limit exceeded for {key} on {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": "Too many requests"},
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response


class BodySizeLimitMiddleware:
    """Rejects requests whose body exceeds `max_bytes`.

    A declared Content-Length over the cap is refused up front. Otherwise the
    body is read here and counted as it arrives, so chunked uploads without a
    Content-Length are capped too; an accepted body is replayed to the app.
    """

    def __init__(self, app: ASGIApp, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        declared = Headers(scope=scope).get("content-length")
        if declared is not None:
            try:
                size = int(declared)
            except ValueError:
                response = JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={"error": "Invalid request"},
                )
                await response(scope, receive, send)
                return
            if size > self.max_bytes:
                await self._reject(size, path, scope, receive, send)
                return

        chunks: list[bytes] = []
        received = 0
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            chunk = message.get("body", b"")
            received += len(chunk)
            if received > self.max_bytes:
                await self._reject(received, path, scope, receive, send)
                return
            chunks.append(chunk)
            more_body = message.get("more_body", False)

        body = b"".join(chunks)
        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)

    async def _reject(self, size: int, path: str, scope: Scope, receive: Receive, send: Send) -> None:
        logger.warning(f"Rejected body of at least {size} bytes on {path}")
        response = JSONResponse(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            content={"error": "Request entity too large"},
        )
        await response(scope, receive, send)
