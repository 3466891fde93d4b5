"""
Thread-safe in-memory registry of issued device tokens.

Tokens expire two ways that share one liveness predicate:
- lazily, when validate() finds an expired record and deletes it
- eagerly, when sweep() prunes every expired record on a timer
"""

import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable

from loguru import logger

DEFAULT_TOKEN_TTL_SECONDS = 30 * 60
TOKEN_BYTES = 32  # 256-bit tokens, 64 hex chars


@dataclass(frozen=True)
class TokenRecord:
    """
    Immutable token record.

    Attributes:
        device_id: Device identifier the token was issued to
        expires_at: Clock reading after which the token is dead
    """
    device_id: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """A record is live up to and including its expiry instant."""
        return now > self.expires_at


class TokenStore:
    """
    Keyed, time-bounded token registry.

    Provides:
    - Token issuance with a fixed TTL
    - Validation with delete-on-expiry
    - Bulk sweep of expired records

    Thread Safety:
        Every public method holds a single Lock for its whole
        read-modify-write, so issue/validate/sweep may run concurrently.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize token store.

        Args:
            ttl_seconds: Lifetime of every issued token
            clock: Zero-argument callable returning the current time in seconds
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        self._ttl = ttl_seconds
        self._clock = clock
        self._records: dict[str, TokenRecord] = {}
        self._lock = threading.Lock()

    # ========================================================================
    # Public API
    # ========================================================================

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def issue(self, device_id: str) -> str:
        """
        Issue a new token for a device.

        Args:
            device_id: Identifier of the requesting device

        Returns:
            64-character hex token
        """
        token = secrets.token_hex(TOKEN_BYTES)
        record = TokenRecord(device_id=device_id, expires_at=self._clock() + self._ttl)

        with self._lock:
            self._records[token] = record

        return token

    def validate(self, token: str) -> bool:
        """
        Check whether a token is live.

        An expired record is deleted before returning False. Validating a live
        token never changes its expiry.

        Args:
            token: Token presented by the client

        Returns:
            True if a record exists and has not expired
        """
        with self._lock:
            record = self._records.get(token)
            if record is None:
                return False

            if record.is_expired(self._clock()):
                del self._records[token]
                return False

            return True

    def sweep(self, now: float | None = None) -> None:
        """
        Delete every expired record.

        Args:
            now: Clock reading to expire against (defaults to the store clock)
        """
        with self._lock:
            if now is None:
                now = self._clock()
            expired = [t for t, r in self._records.items() if r.is_expired(now)]
            for token in expired:
                del self._records[token]
            remaining = len(self._records)

        if expired:
            logger.info(f"Token sweep reclaimed {len(expired)} expired token(s), {remaining} live")
        else:
            logger.debug(f"Token sweep found nothing to reclaim, {remaining} live")

    def __contains__(self, token: object) -> bool:
        """Raw presence check, no expiry evaluation."""
        with self._lock:
            return token in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __repr__(self) -> str:
        with self._lock:
            return f"TokenStore(records={len(self._records)}, ttl={self._ttl}s)"
