"""Signed, short-lived video access tokens.

A token authorizes reading one local file until an expiry instant::

    <hex HMAC-SHA256(secret, "<path>:<expires_ms>")>.<expires_ms>

The expiry is part of the signed material, so editing it in the
plaintext half invalidates the signature. Tokens are never stored;
validity is recomputed from the token, the path and the secret.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

logger = structlog.get_logger()

# Epoch milliseconds fit in 13 digits until the year 2286.
MAX_EXPIRY_DIGITS = 15


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass(frozen=True, slots=True)
class SignedToken:
    """Token string plus its expiry (epoch milliseconds)."""

    token: str
    expires_at_ms: int


class VideoTokenSigner:
    """Issue and verify path-scoped video tokens.

    Args:
        secret: HMAC key shared with nobody outside the server.
        ttl_ms: Token lifetime in milliseconds.
        clock: Returns the current time in epoch milliseconds.
    """

    def __init__(
        self,
        secret: str,
        ttl_ms: int,
        *,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        if not secret:
            msg = "Video signing secret must not be empty"
            raise ValueError(msg)
        self._secret = secret.encode()
        self._ttl_ms = ttl_ms
        self._clock = clock

    def issue(self, file_path: str) -> SignedToken:
        """Mint a token for ``file_path`` valid for the configured TTL."""
        expires_at_ms = self._clock() + self._ttl_ms
        signature = self._sign(file_path, expires_at_ms)
        return SignedToken(
            token=f"{signature}.{expires_at_ms}",
            expires_at_ms=expires_at_ms,
        )

    def verify(self, token: str, file_path: str) -> bool:
        """Check a token against the path it is presented for.

        Returns False (never raises) when the token is malformed,
        expired, or signed for another path or expiry.
        """
        parts = token.split(".")
        if len(parts) != 2:
            logger.warning("video_token_malformed", path=file_path)
            return False

        signature, expires_str = parts
        if (
            not expires_str.isascii()
            or not expires_str.isdigit()
            or len(expires_str) > MAX_EXPIRY_DIGITS
        ):
            logger.warning("video_token_malformed", path=file_path)
            return False
        expires_at_ms = int(expires_str)

        if self._clock() > expires_at_ms:
            logger.warning("video_token_expired", path=file_path)
            return False

        expected = self._sign(file_path, expires_at_ms)
        if not hmac.compare_digest(signature.encode(), expected.encode()):
            logger.warning("video_token_bad_signature", path=file_path)
            return False

        return True

    def _sign(self, file_path: str, expires_at_ms: int) -> str:
        data = f"{file_path}:{expires_at_ms}".encode()
        return hmac.new(self._secret, data, hashlib.sha256).hexdigest()
