from __future__ import annotations

import pytest
from pydantic import ValidationError

from appstore_server_api import ClientConfig, Environment
from appstore_server_api.models import CheckTestNotificationResponse, HistoryResponse


def _config(private_key_pem, **overrides) -> ClientConfig:
    values = {
        "private_key": private_key_pem,
        "key_id": "2X9R4HXF34",
        "issuer_id": "57246542-96fe-1a63-e053-0824d011072a",
        "bundle_id": "com.example.testbundleid",
    }
    values.update(overrides)
    return ClientConfig(**values)


def test_environment_defaults_to_production(private_key_pem) -> None:
    config = _config(private_key_pem)

    assert config.environment is Environment.PRODUCTION
    assert config.api_base_url == "https://api.storekit.itunes.apple.com"


@pytest.mark.parametrize("value", ["sandbox", "SANDBOX", " Sandbox ", Environment.SANDBOX])
def test_environment_parsing(private_key_pem, value) -> None:
    config = _config(private_key_pem, environment=value)

    assert config.environment is Environment.SANDBOX
    assert config.api_base_url == "https://api.storekit-sandbox.itunes.apple.com"


@pytest.mark.parametrize("value", ["staging", "", None, 1])
def test_invalid_environment_is_rejected(private_key_pem, value) -> None:
    with pytest.raises(ValidationError, match="production' or 'sandbox"):
        _config(private_key_pem, environment=value)


def test_environment_can_be_reassigned_with_validation(private_key_pem) -> None:
    config = _config(private_key_pem)
    config.environment = "sandbox"
    assert config.environment is Environment.SANDBOX

    with pytest.raises(ValidationError):
        config.environment = "staging"
    assert config.environment is Environment.SANDBOX


def test_credentials_are_frozen(private_key_pem) -> None:
    config = _config(private_key_pem)

    with pytest.raises(ValidationError):
        config.key_id = "OTHER"


def test_private_key_is_validated_and_hidden(private_key_pem) -> None:
    with pytest.raises(ValidationError):
        _config(private_key_pem, private_key="not a key")

    assert "PRIVATE KEY" not in repr(_config(private_key_pem))


def test_empty_identifiers_are_rejected(private_key_pem) -> None:
    with pytest.raises(ValidationError):
        _config(private_key_pem, bundle_id="")


def test_history_response_model() -> None:
    history = HistoryResponse.model_validate(
        {
            "revision": "rev-1",
            "hasMore": True,
            "bundleId": "com.example.testbundleid",
            "environment": "Sandbox",
            "signedTransactions": ["a.b.c"],
        }
    )

    assert history.has_more is True
    assert history.signed_transactions == ["a.b.c"]


def test_check_test_notification_response_model() -> None:
    status = CheckTestNotificationResponse.model_validate(
        {
            "signedPayload": "a.b.c",
            "firstSendAttemptResult": "SUCCESS",
            "sendAttempts": [{"attemptDate": 1739179888814, "sendAttemptResult": "SUCCESS"}],
        }
    )

    assert status.send_attempts[0].send_attempt_result == "SUCCESS"
