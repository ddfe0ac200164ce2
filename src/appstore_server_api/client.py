"""Synchronous client for the App Store Server API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping
from urllib.parse import quote

import httpx
import structlog
from pydantic import ValidationError

from .bearer_token import MAX_TOKEN_LIFETIME, TokenGenerator
from .exceptions import ConfigurationError, InvalidResponseError, raise_for_status
from .models import ClientConfig, Environment
from .request_options import RequestOptions
from .retry import RetryPolicy
from .signed_data import decode_signed_envelope
from .transport import Transport

logger = structlog.get_logger(__name__)

SUBSCRIPTION_STATUSES = frozenset({1, 2, 3, 4, 5})


def _segment(value: str) -> str:
    value = str(value)
    if not value:
        raise ConfigurationError("Path parameters must not be empty")
    return quote(value, safe="")


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}" for err in exc.errors())


def _coerce_statuses(status: Any) -> list[int]:
    values: Iterable[Any] = status if isinstance(status, (list, tuple, set, frozenset)) else [status]
    statuses: list[int] = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int) or value not in SUBSCRIPTION_STATUSES:
            raise ConfigurationError(f"status must be an integer between 1 and 5, got {value!r}")
        statuses.append(value)
    return sorted(statuses)


class AppStoreServerAPIClient:
    """Client for Apple's App Store Server API.

    Each call signs a fresh bearer token, sends the request through a shared
    :class:`Transport` (retrying transient failures) and raises a typed
    :class:`~appstore_server_api.exceptions.ApiError` for failed responses.
    """

    def __init__(
        self,
        *,
        private_key: str,
        key_id: str,
        issuer_id: str,
        bundle_id: str,
        environment: Environment | str = Environment.PRODUCTION,
        open_timeout: float = Transport.default_open_timeout,
        read_timeout: float = Transport.default_read_timeout,
        retry_policy: RetryPolicy | None = None,
        transport: Transport | None = None,
    ) -> None:
        try:
            self._config = ClientConfig(
                private_key=private_key,
                key_id=key_id,
                issuer_id=issuer_id,
                bundle_id=bundle_id,
                environment=environment,
            )
        except ValidationError as exc:
            raise ConfigurationError(_validation_message(exc)) from exc

        self._token_generator = TokenGenerator(
            key_id=self._config.key_id,
            issuer_id=self._config.issuer_id,
            bundle_id=self._config.bundle_id,
            private_key=self._config.private_key.get_secret_value(),
        )
        self._transport = transport or Transport(
            open_timeout=open_timeout,
            read_timeout=read_timeout,
            retry_policy=retry_policy,
        )
        self._owns_transport = transport is None
        self._retry_policy = retry_policy

        logger.debug(
            "app_store_client_initialized",
            bundle_id=self._config.bundle_id,
            environment=self._config.environment.value,
        )

    def __enter__(self) -> "AppStoreServerAPIClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_transport:
            self._transport.close()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def environment(self) -> Environment:
        return self._config.environment

    @environment.setter
    def environment(self, value: Environment | str) -> None:
        try:
            self._config.environment = value
        except ValidationError as exc:
            raise ConfigurationError(_validation_message(exc)) from exc

    @property
    def api_base_url(self) -> str:
        return self._config.api_base_url

    @property
    def bundle_id(self) -> str:
        return self._config.bundle_id

    @property
    def key_id(self) -> str:
        return self._config.key_id

    @property
    def issuer_id(self) -> str:
        return self._config.issuer_id

    def generate_bearer_token(
        self,
        issued_at: datetime | float | None = None,
        expires_in: int = MAX_TOKEN_LIFETIME,
    ) -> str:
        return self._token_generator.generate(issued_at=issued_at, expires_in=expires_in)

    @staticmethod
    def _path(path: str) -> str:
        if "://" in path:
            raise ConfigurationError("Full URLs are not allowed in path for request method")
        if not path.startswith("/"):
            raise ConfigurationError("Path must be absolute and start with '/'")
        return path

    def _headers(self, bearer_token: str, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {bearer_token}",
        }
        if extra:
            headers.update({str(key): str(value) for key, value in extra.items()})
        return headers

    def request(
        self,
        path: str,
        *,
        method: str = "GET",
        params: Any = None,
        options: RequestOptions | None = None,
    ) -> httpx.Response:
        """Send an authenticated request and return the successful response.

        Raises:
            ConfigurationError: For an unsupported method, before any I/O.
            ApiError: A subclass matching the failed response.
            httpx.TransportError: When connection failures or timeouts
                outlast the retry policy.
        """
        options = options or RequestOptions()
        url = self.api_base_url + self._path(path)
        headers = self._headers(self.generate_bearer_token(), options.headers)
        response = self._transport.send_with_retry(
            url,
            method=method,
            params=params,
            headers=headers,
            retry_policy=options.retry_policy or self._retry_policy,
        )
        raise_for_status(response)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise InvalidResponseError(response=response, message="response body is not JSON") from exc
        if not isinstance(payload, dict):
            raise InvalidResponseError(response=response, message="response body is not a JSON object")
        return payload

    def get_transaction_info(
        self,
        transaction_id: str,
        *,
        options: RequestOptions | None = None,
    ) -> dict[str, Any]:
        """Look up one transaction and return its decoded ``signedTransactionInfo`` payload."""
        response = self.request(f"/inApps/v1/transactions/{_segment(transaction_id)}", options=options)
        body = self._json(response)
        signed_transaction_info = body.get("signedTransactionInfo")
        if not isinstance(signed_transaction_info, str):
            raise InvalidResponseError(response=response, message="signedTransactionInfo is missing")
        payload, _header = decode_signed_envelope(signed_transaction_info)
        return payload

    def request_test_notification(self, *, options: RequestOptions | None = None) -> dict[str, Any]:
        """Ask Apple to send a test notification to the configured server URL."""
        response = self.request("/inApps/v1/notifications/test", method="POST", params="{}", options=options)
        return self._json(response)

    def get_test_notification_status(
        self,
        test_notification_token: str,
        *,
        options: RequestOptions | None = None,
    ) -> dict[str, Any]:
        response = self.request(
            f"/inApps/v1/notifications/test/{_segment(test_notification_token)}",
            options=options,
        )
        return self._json(response)

    def get_transaction_history(
        self,
        transaction_id: str,
        params: Mapping[str, Any] | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> dict[str, Any]:
        """Fetch one page of transaction history.

        ``signedTransactions`` in the result are left encoded; pass them to
        :func:`~appstore_server_api.signed_data.decode_signed_envelopes`.
        """
        response = self.request(
            f"/inApps/v2/history/{_segment(transaction_id)}",
            params=dict(params) if params else None,
            options=options,
        )
        return self._json(response)

    def get_all_subscription_statuses(
        self,
        transaction_id: str,
        params: Mapping[str, Any] | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> dict[str, Any]:
        query = dict(params) if params else None
        if query and query.get("status") is not None:
            query["status"] = _coerce_statuses(query["status"])
        response = self.request(
            f"/inApps/v1/subscriptions/{_segment(transaction_id)}",
            params=query,
            options=options,
        )
        return self._json(response)
