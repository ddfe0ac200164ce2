"""Decoding of compact signed envelopes (JWS) returned by the API.

Apple wraps transactions, renewal info and notifications in compact JWS
strings: ``base64url(header).base64url(payload).base64url(signature)``.
Only the header and payload are decoded here; the signature segment is
left untouched and is not verified.
"""

from __future__ import annotations

import binascii
import json
from typing import Any, Iterable

from jwt.utils import base64url_decode

from .exceptions import SignedDataDecodeError


def _decode_segment(segment: str, name: str) -> dict[str, Any]:
    try:
        raw = base64url_decode(segment)
    except (binascii.Error, ValueError) as exc:
        raise SignedDataDecodeError(f"Invalid {name} segment: {exc}") from exc
    try:
        decoded = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as exc:
        raise SignedDataDecodeError(f"Invalid {name} segment: not JSON") from exc
    if not isinstance(decoded, dict):
        raise SignedDataDecodeError(f"Invalid {name} segment: not a JSON object")
    return decoded


def decode_signed_envelope(envelope: str) -> tuple[dict[str, Any], dict[str, Any]]:
    """Decode a compact signed envelope into ``(payload, header)``."""
    if not isinstance(envelope, str):
        raise SignedDataDecodeError(f"Signed data must be a string, got {type(envelope).__name__}")
    segments = envelope.split(".")
    if len(segments) != 3:
        raise SignedDataDecodeError(f"Signed data must have 3 segments, got {len(segments)}")

    header_segment, payload_segment, _signature = segments
    header = _decode_segment(header_segment, "header")
    payload = _decode_segment(payload_segment, "payload")
    return payload, header


def decode_signed_envelopes(envelopes: Iterable[str]) -> list[dict[str, Any]]:
    """Decode each envelope and return only the payloads, in input order."""
    return [decode_signed_envelope(envelope)[0] for envelope in envelopes]
