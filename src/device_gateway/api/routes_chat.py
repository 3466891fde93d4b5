"""Chat router: forwards token-authenticated chat requests upstream."""

from fastapi import APIRouter, Depends, Response
from loguru import logger

from ..core.exceptions import InvalidTokenError, UpstreamError
from ..core.token_store import TokenStore
from .dependencies import get_token_store, get_upstream
from .schemas import ChatRequest, ErrorResponse
from .upstream import UpstreamClient

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post(
    "",
    responses={
        200: {"description": "Upstream completion body, passed through unchanged"},
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def chat(
    data: ChatRequest,
    store: TokenStore = Depends(get_token_store),
    upstream: UpstreamClient = Depends(get_upstream),
):
    """Validate the device token and relay the messages to the completion API."""
    if not store.validate(data.token):
        raise InvalidTokenError()

    try:
        result = await upstream.complete(data.messages)
    except UpstreamError as e:
        logger.error(f"Upstream error: {e}")
        raise

    return Response(content=result.content, media_type=result.media_type)
