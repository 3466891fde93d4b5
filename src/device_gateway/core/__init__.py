"""Token lifecycle core: store, background sweeper and exception hierarchy."""

from .exceptions import (
    AuthorizationError,
    GatewayException,
    InvalidTokenError,
    UnknownDeviceError,
    UpstreamError,
    ValidationError,
)
from .sweeper import TokenSweeper
from .token_store import TokenRecord, TokenStore

__all__ = [
    "AuthorizationError",
    "GatewayException",
    "InvalidTokenError",
    "TokenRecord",
    "TokenStore",
    "TokenSweeper",
    "UnknownDeviceError",
    "UpstreamError",
    "ValidationError",
]
