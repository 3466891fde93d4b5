"""Device Gateway API.

Endpoints:
- POST /checka    issue a short-lived token to an allow-listed device
- POST /api/chat  forward chat messages upstream for a valid token
- GET  /health    liveness probe
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Callable

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from loguru import logger

from .. import __version__
from ..config import Settings
from ..core.exceptions import GatewayException, ValidationError
from ..core.sweeper import TokenSweeper
from ..core.token_store import TokenStore
from .middleware import BodySizeLimitMiddleware, RateLimiter, RateLimitMiddleware
from .routes_chat import router as chat_router
from .routes_device import router as device_router
from .upstream import UpstreamClient


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    sweeper: TokenSweeper = app.state.sweeper
    sweeper.start()
    logger.info(f"Device gateway started ({len(app.state.settings.allowed_devices)} allowed devices)")
    try:
        yield
    finally:
        await sweeper.stop()
        await app.state.upstream.aclose()
        logger.info("Device gateway shutting down")


async def gateway_exception_handler(request: Request, exc: GatewayException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        # loc is ("body", <field>, ...)
        field = ".".join(str(part) for part in first.get("loc", ())[1:]) or None
        error = ValidationError(first.get("msg", "malformed body"), field=field)
    else:
        error = ValidationError("malformed body")
    logger.debug(f"Rejected request on {request.url.path}: {error}")
    return await gateway_exception_handler(request, error)


def create_app(
    settings: Settings | None = None,
    *,
    clock: Callable[[], float] | None = None,
    http: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Configuration (read from the environment when omitted)
        clock: Time source shared by the token store and rate limiter
        http: Pre-built HTTP client for upstream calls
    """
    settings = settings or Settings()

    for warning in settings.check_startup():
        logger.warning(warning)

    clock_kwargs = {"clock": clock} if clock is not None else {}
    store = TokenStore(ttl_seconds=settings.TOKEN_TTL_SECONDS, **clock_kwargs)
    limiter = RateLimiter(
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        **clock_kwargs,
    )
    upstream = UpstreamClient(
        url=settings.UPSTREAM_URL,
        api_key=settings.API_KEY,
        model=settings.UPSTREAM_MODEL,
        timeout_seconds=settings.UPSTREAM_TIMEOUT_SECONDS,
        http=http,
    )

    app = FastAPI(
        title="Device Gateway",
        description="Device token issuance and authenticated chat completion proxy",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.token_store = store
    app.state.rate_limiter = limiter
    app.state.upstream = upstream
    app.state.sweeper = TokenSweeper(
        store,
        interval_seconds=settings.SWEEP_INTERVAL_SECONDS,
        extra_pruners=[limiter.prune],
    )

    # Last added runs first: CORS, then body cap, then rate limit
    app.add_middleware(RateLimitMiddleware, limiter=limiter, path_prefix="/api/")
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.MAX_BODY_BYTES)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.add_exception_handler(GatewayException, gateway_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(device_router)
    app.include_router(chat_router, prefix="/api")

    @app.get("/health", response_class=PlainTextResponse, tags=["health"])
    async def health_check():
        """Health check endpoint."""
        return "ok"

    return app


def run():
    """Run the server."""
    import uvicorn

    settings = Settings()
    uvicorn.run(
        "device_gateway.api.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
    )


if __name__ == "__main__":
    run()
