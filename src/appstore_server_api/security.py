"""Key handling and redaction helpers."""

from __future__ import annotations

from typing import Mapping

from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import load_pem_private_key
from cryptography.exceptions import UnsupportedAlgorithm

from .exceptions import ConfigurationError


SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "proxy-authorization",
}


def sanitize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return headers with sensitive values redacted for logging."""
    redacted: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = value
    return redacted


def load_signing_key(private_key: str | bytes | ec.EllipticCurvePrivateKey) -> ec.EllipticCurvePrivateKey:
    """Load the App Store Connect ``.p8`` key used to sign bearer tokens.

    Apple issues unencrypted PKCS#8 PEM keys on the P-256 curve; anything
    else cannot produce an ES256 signature the API accepts.
    """
    if isinstance(private_key, ec.EllipticCurvePrivateKey):
        key = private_key
    else:
        if isinstance(private_key, str):
            private_key = private_key.strip().encode()
        if not private_key:
            raise ConfigurationError("private_key is required")
        try:
            key = load_pem_private_key(private_key, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise ConfigurationError(f"private_key is not a valid PEM private key: {exc}") from exc

    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise ConfigurationError("private_key must be an elliptic curve key")
    if not isinstance(key.curve, ec.SECP256R1):
        raise ConfigurationError(f"private_key must use the P-256 curve, got {key.curve.name}")
    return key
