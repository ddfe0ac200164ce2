from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from jwt.utils import base64url_encode

from appstore_server_api import AppStoreServerAPIClient, Transport

KEY_ID = "2X9R4HXF34"
ISSUER_ID = "57246542-96fe-1a63-e053-0824d011072a"
BUNDLE_ID = "com.example.testbundleid"


@pytest.fixture(scope="session")
def signing_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def private_key_pem(signing_key: ec.EllipticCurvePrivateKey) -> str:
    return signing_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def sleeps(monkeypatch) -> list[float]:
    recorded: list[float] = []
    monkeypatch.setattr("appstore_server_api.transport.time.sleep", recorded.append)
    return recorded


@pytest.fixture
def make_envelope() -> Callable[..., str]:
    def build(payload: Any, header: Any = None) -> str:
        header = {"alg": "ES256", "x5c": ["MIIB"]} if header is None else header
        segments = [
            base64url_encode(json.dumps(header).encode()),
            base64url_encode(json.dumps(payload).encode()),
            base64url_encode(b"not-a-real-signature"),
        ]
        return b".".join(segments).decode()

    return build


@pytest.fixture
def make_client(private_key_pem: str):
    clients: list[AppStoreServerAPIClient] = []

    def build(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any) -> AppStoreServerAPIClient:
        kwargs.setdefault("environment", "sandbox")
        transport = Transport(httpx_client=httpx.Client(transport=httpx.MockTransport(handler)))
        client = AppStoreServerAPIClient(
            private_key=private_key_pem,
            key_id=KEY_ID,
            issuer_id=ISSUER_ID,
            bundle_id=BUNDLE_ID,
            transport=transport,
            **kwargs,
        )
        clients.append(client)
        return client

    yield build
    for client in clients:
        client.close()
