"""Pydantic schemas for API request/response models."""

from typing import Any

from pydantic import BaseModel, Field, StrictStr


# ============================================================================
# Device Token Schemas
# ============================================================================

class DeviceTokenRequest(BaseModel):
    """Schema for device token issuance. `aaa` carries the device identifier."""
    aaa: StrictStr = Field(..., min_length=1)


class DeviceTokenResponse(BaseModel):
    """Schema for an issued device token."""
    success: bool = True
    token: str
    expires_in: int = Field(..., serialization_alias="expiresIn")


# ============================================================================
# Chat Schemas
# ============================================================================

class ChatRequest(BaseModel):
    """Schema for a chat request; `messages` is forwarded upstream unchanged."""
    messages: list[Any]
    token: StrictStr = Field(..., min_length=1)


# ============================================================================
# Error Schemas
# ============================================================================

class ErrorResponse(BaseModel):
    """Generic client-facing error body."""
    error: str
