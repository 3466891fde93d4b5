"""Configuration for the device gateway.

Values come from the environment (or a local `.env`). The allow-list and token
TTL default to the values the gateway has always shipped with.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.exceptions import ConfigValidationError

DEFAULT_ALLOWED_DEVICES = "D85ED35351D2,60189512073D,08606E944B0C"


def _split_csv(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseSettings):
    """Gateway configuration settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Listener
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Upstream completion API
    API_KEY: str | None = None
    REQUIRE_API_KEY: bool = False
    UPSTREAM_URL: str = "https://api.openai.com/v1/chat/completions"
    UPSTREAM_MODEL: str = "gpt-3.5-turbo"
    UPSTREAM_TIMEOUT_SECONDS: float = Field(default=15.0, gt=0)

    # Device tokens
    ALLOWED_DEVICES: str = DEFAULT_ALLOWED_DEVICES
    TOKEN_TTL_SECONDS: int = Field(default=30 * 60, gt=0)
    SWEEP_INTERVAL_SECONDS: float = Field(default=5 * 60, gt=0)

    # Request pre-filters
    MAX_BODY_BYTES: int = Field(default=50 * 1024, gt=0)
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=30, gt=0)
    RATE_LIMIT_WINDOW_SECONDS: float = Field(default=60.0, gt=0)
    CORS_ORIGINS: str = "*"

    @property
    def allowed_devices(self) -> frozenset[str]:
        return frozenset(_split_csv(self.ALLOWED_DEVICES))

    @property
    def cors_origins(self) -> list[str]:
        return _split_csv(self.CORS_ORIGINS) or ["*"]

    def check_startup(self) -> list[str]:
        """Return startup warnings; raise if a required value is missing."""
        warnings = []
        if not self.API_KEY:
            if self.REQUIRE_API_KEY:
                raise ConfigValidationError("API_KEY", "not set and REQUIRE_API_KEY is enabled")
            warnings.append("API_KEY is not set; every chat request will fail upstream")
        if not self.allowed_devices:
            warnings.append("ALLOWED_DEVICES is empty; no device can obtain a token")
        return warnings
