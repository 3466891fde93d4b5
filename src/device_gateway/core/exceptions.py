"""
Domain-specific exception hierarchy for the device gateway.

All custom exceptions inherit from GatewayException. Each request-level error
carries the HTTP status it maps to and a generic public message; the message
and context are for server-side logs only.
"""

from typing import Any


class GatewayException(Exception):
    """
    Base exception for all gateway errors.

    Attributes:
        message: Human-readable error message (server-side)
        context: Additional context for debugging
        status_code: HTTP status returned to the client
        public_message: The only text a client ever sees
    """

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


# ============================================================================
# Request Exceptions
# ============================================================================

class ValidationError(GatewayException):
    """Request body is missing a field or a field has the wrong type."""

    status_code = 400
    public_message = "Invalid request"

    def __init__(self, reason: str, field: str | None = None):
        super().__init__(
            f"Invalid request: {reason}",
            context={"field": field} if field else None
        )
        self.field = field


class AuthorizationError(GatewayException):
    """Base class for rejected credentials."""

    status_code = 403
    public_message = "Unauthorized"


class UnknownDeviceError(AuthorizationError):
    """Device identifier is well-formed but not on the allow-list."""

    def __init__(self, device_id: str):
        super().__init__(
            f"Device '{device_id}' is not allowed",
            context={"device": device_id}
        )
        self.device_id = device_id


class InvalidTokenError(AuthorizationError):
    """Access token was never issued or has expired."""

    public_message = "Invalid or expired token"

    def __init__(self):
        super().__init__("Invalid or expired token")


# ============================================================================
# Upstream Exceptions
# ============================================================================

class UpstreamError(GatewayException):
    """Base class for completion API failures."""

    status_code = 500
    public_message = "Upstream API error"


class UpstreamConnectionError(UpstreamError):
    """Cannot reach the completion API."""

    def __init__(self, url: str, original_error: Exception):
        super().__init__(
            f"Cannot connect to upstream at {url}",
            context={"url": url, "original": str(original_error)}
        )
        self.url = url
        self.original_error = original_error


class UpstreamTimeoutError(UpstreamError):
    """Upstream request exceeded its hard timeout."""

    def __init__(self, timeout_seconds: float, url: str):
        super().__init__(
            f"Upstream request to {url} exceeded {timeout_seconds}s timeout",
            context={"timeout": timeout_seconds, "url": url}
        )
        self.timeout_seconds = timeout_seconds
        self.url = url


class UpstreamResponseError(UpstreamError):
    """Upstream answered with a non-success status."""

    def __init__(self, status_code: int, response_text: str, url: str):
        # Truncate long responses
        truncated = response_text[:200] + "..." if len(response_text) > 200 else response_text
        super().__init__(
            f"Upstream HTTP {status_code} from {url}: {truncated}",
            context={"status_code": status_code, "url": url}
        )
        self.upstream_status = status_code
        self.response_text = response_text


# ============================================================================
# Configuration Exceptions
# ============================================================================

class ConfigurationException(GatewayException):
    """Base class for configuration errors."""
    pass


class ConfigValidationError(ConfigurationException):
    """Configuration validation failed."""

    def __init__(self, field: str, reason: str):
        super().__init__(
            f"Invalid configuration for '{field}': {reason}",
            context={"field": field}
        )
        self.field = field
