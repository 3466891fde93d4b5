"""Device router: token issuance for allow-listed devices."""

from fastapi import APIRouter, Depends
from loguru import logger

from ..config import Settings
from ..core.exceptions import UnknownDeviceError
from ..core.token_store import TokenStore
from .dependencies import get_settings, get_token_store
from .schemas import DeviceTokenRequest, DeviceTokenResponse, ErrorResponse

router = APIRouter(tags=["device"])


@router.post(
    "/checka",
    response_model=DeviceTokenResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def issue_device_token(
    data: DeviceTokenRequest,
    settings: Settings = Depends(get_settings),
    store: TokenStore = Depends(get_token_store),
):
    """Issue a short-lived access token to an allow-listed device."""
    if data.aaa not in settings.allowed_devices:
        logger.warning(f"Token request from unknown device {data.aaa!r}")
        raise UnknownDeviceError(data.aaa)

    token = store.issue(data.aaa)
    logger.info(f"Issued token for device {data.aaa} ({len(store)} stored)")

    return DeviceTokenResponse(token=token, expires_in=int(store.ttl_seconds))
