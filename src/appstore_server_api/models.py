"""Client configuration and typed views of API responses."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from .exceptions import ConfigurationError
from .security import load_signing_key


class Environment(str, enum.Enum):
    PRODUCTION = "production"
    SANDBOX = "sandbox"

    @property
    def base_url(self) -> str:
        return API_BASE_URLS[self]

    @classmethod
    def parse(cls, value: "Environment | str") -> "Environment":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ConfigurationError("environment must be 'production' or 'sandbox'")


API_BASE_URLS = {
    Environment.PRODUCTION: "https://api.storekit.itunes.apple.com",
    Environment.SANDBOX: "https://api.storekit-sandbox.itunes.apple.com",
}


class ClientConfig(BaseModel):
    """Credentials from App Store Connect plus the target environment.

    Only ``environment`` may change after construction; it is validated
    again on every assignment.
    """

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    private_key: SecretStr = Field(frozen=True)
    key_id: str = Field(frozen=True, min_length=1)
    issuer_id: str = Field(frozen=True, min_length=1)
    bundle_id: str = Field(frozen=True, min_length=1)
    environment: Environment = Environment.PRODUCTION

    @field_validator("private_key")
    @classmethod
    def _validate_private_key(cls, value: SecretStr) -> SecretStr:
        load_signing_key(value.get_secret_value())
        return value

    @field_validator("environment", mode="before")
    @classmethod
    def _validate_environment(cls, value: Any) -> Environment:
        return Environment.parse(value)

    @property
    def api_base_url(self) -> str:
        return self.environment.base_url


class AppStoreModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class TransactionInfoResponse(AppStoreModel):
    signed_transaction_info: str = Field(alias="signedTransactionInfo")


class HistoryResponse(AppStoreModel):
    revision: str | None = None
    has_more: bool = Field(default=False, alias="hasMore")
    bundle_id: str | None = Field(default=None, alias="bundleId")
    app_apple_id: int | None = Field(default=None, alias="appAppleId")
    environment: str | None = None
    signed_transactions: list[str] = Field(default_factory=list, alias="signedTransactions")


class LastTransactionsItem(AppStoreModel):
    original_transaction_id: str | None = Field(default=None, alias="originalTransactionId")
    status: int | None = None
    signed_transaction_info: str | None = Field(default=None, alias="signedTransactionInfo")
    signed_renewal_info: str | None = Field(default=None, alias="signedRenewalInfo")


class SubscriptionGroupIdentifierItem(AppStoreModel):
    subscription_group_identifier: str | None = Field(default=None, alias="subscriptionGroupIdentifier")
    last_transactions: list[LastTransactionsItem] = Field(default_factory=list, alias="lastTransactions")


class StatusResponse(AppStoreModel):
    environment: str | None = None
    bundle_id: str | None = Field(default=None, alias="bundleId")
    app_apple_id: int | None = Field(default=None, alias="appAppleId")
    data: list[SubscriptionGroupIdentifierItem] = Field(default_factory=list)


class SendTestNotificationResponse(AppStoreModel):
    test_notification_token: str = Field(alias="testNotificationToken")


class SendAttempt(AppStoreModel):
    attempt_date: int | None = Field(default=None, alias="attemptDate")
    send_attempt_result: str | None = Field(default=None, alias="sendAttemptResult")


class CheckTestNotificationResponse(AppStoreModel):
    signed_payload: str | None = Field(default=None, alias="signedPayload")
    first_send_attempt_result: str | None = Field(default=None, alias="firstSendAttemptResult")
    send_attempts: list[SendAttempt] = Field(default_factory=list, alias="sendAttempts")
