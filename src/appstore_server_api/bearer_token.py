"""ES256 bearer tokens for the App Store Server API."""

from __future__ import annotations

import math
import time
from datetime import datetime, timezone

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

from .exceptions import ConfigurationError
from .security import load_signing_key

TOKEN_AUDIENCE = "appstoreconnect-v1"
TOKEN_TYPE = "JWT"
SIGNING_ALGORITHM = "ES256"
# Apple rejects tokens that live longer than an hour.
MAX_TOKEN_LIFETIME = 3600


def _timestamp(issued_at: datetime | float | None) -> int:
    if issued_at is None:
        return math.floor(time.time())
    if isinstance(issued_at, datetime):
        if issued_at.tzinfo is None:
            issued_at = issued_at.replace(tzinfo=timezone.utc)
        return math.floor(issued_at.timestamp())
    return math.floor(issued_at)


class TokenGenerator:
    """Signs App Store Connect API bearer tokens with an ES256 ``.p8`` key.

    Tokens are never cached; every call signs a new one.
    """

    def __init__(
        self,
        *,
        key_id: str,
        issuer_id: str,
        bundle_id: str,
        private_key: str | bytes | ec.EllipticCurvePrivateKey,
    ) -> None:
        self.key_id = key_id
        self.issuer_id = issuer_id
        self.bundle_id = bundle_id
        self._signing_key = load_signing_key(private_key)

    def generate(
        self,
        issued_at: datetime | float | None = None,
        expires_in: int = MAX_TOKEN_LIFETIME,
    ) -> str:
        """Return a signed compact JWT valid for ``expires_in`` seconds.

        Args:
            issued_at: Issue time as a datetime or POSIX timestamp; defaults to now.
            expires_in: Lifetime in seconds, at most ``MAX_TOKEN_LIFETIME``.

        Raises:
            ConfigurationError: If the lifetime is out of range.
        """
        if expires_in > MAX_TOKEN_LIFETIME:
            raise ConfigurationError(f"expires_in must be less than or equal to {MAX_TOKEN_LIFETIME}")
        if expires_in <= 0:
            raise ConfigurationError("expires_in must be greater than 0")

        iat = _timestamp(issued_at)
        payload = {
            "iss": self.issuer_id,
            "iat": iat,
            "exp": iat + int(expires_in),
            "aud": TOKEN_AUDIENCE,
            "bid": self.bundle_id,
        }
        headers = {
            "kid": self.key_id,
            "typ": TOKEN_TYPE,
        }
        return jwt.encode(payload, self._signing_key, algorithm=SIGNING_ALGORITHM, headers=headers)
