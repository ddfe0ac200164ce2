"""SDK-specific exceptions and classification of failed API responses."""

from __future__ import annotations

import json
from types import MappingProxyType
from typing import Any, Mapping

import httpx


class AppStoreServerAPIError(Exception):
    """Base exception for all App Store Server API SDK failures."""


class ConfigurationError(AppStoreServerAPIError, ValueError):
    """Raised for caller mistakes detected before any network I/O."""


class SignedDataDecodeError(AppStoreServerAPIError, ValueError):
    """Raised when a compact signed envelope cannot be decoded."""


class ApiError(AppStoreServerAPIError):
    """Raised for non-success responses from the App Store Server API.

    Every instance carries the numeric ``code`` reported by Apple (or a
    synthetic one for status-only failures), a human-readable ``message`` and
    the raw ``response`` for diagnostics.
    """

    default_code: int | None = None
    default_message: str | None = None

    def __init__(
        self,
        *,
        response: httpx.Response,
        code: int | None = None,
        message: str | None = None,
    ) -> None:
        code = self.default_code if code is None else code
        message = self.default_message if message is None else message
        if code is None or message is None:
            raise TypeError(f"{type(self).__name__} requires both code and message")
        super().__init__(message)
        self.code = code
        self.message = message
        self.response = response

    @property
    def status_code(self) -> int:
        return self.response.status_code

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "status_code": self.status_code,
        }

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: {json.dumps(self.to_dict())}>"


class UnauthorizedError(ApiError):
    """The bearer token was rejected.

    Apple also answers 401 when a token is presented to the wrong environment,
    e.g. a sandbox transaction looked up against production.
    """

    default_code = 4010000
    default_message = "unauthorized error"


class ServerError(ApiError):
    default_code = 5000000
    default_message = "Internal Server Error"


class InvalidResponseError(ApiError):
    """The error body is not a JSON object with ``errorCode`` and ``errorMessage``."""

    default_code = 5000002
    default_message = "response body is invalid"


class TransactionIdNotFoundError(ApiError):
    pass


class InvalidTransactionIdError(ApiError):
    pass


class RateLimitExceededError(ApiError):
    pass


class ServerNotificationURLNotFoundError(ApiError):
    pass


class InvalidTestNotificationTokenError(ApiError):
    pass


class TestNotificationNotFoundError(ApiError):
    pass


class GenericError(ApiError):
    """An error code this SDK does not know; code and message are kept verbatim."""


ERROR_CODE_MAP: Mapping[int, type[ApiError]] = MappingProxyType(
    {
        4040010: TransactionIdNotFoundError,
        4000020: InvalidTestNotificationTokenError,
        4000006: InvalidTransactionIdError,
        4290000: RateLimitExceededError,
        4040007: ServerNotificationURLNotFoundError,
        4040008: TestNotificationNotFoundError,
    }
)


def _error_body(response: httpx.Response) -> Mapping[str, Any] | None:
    try:
        parsed = response.json()
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(parsed, Mapping):
        return None
    if parsed.get("errorCode") is None or parsed.get("errorMessage") is None:
        return None
    return parsed


def classify_error_response(response: httpx.Response) -> ApiError:
    """Map a non-success response to one member of the error taxonomy.

    The status code is checked before the body: 401 and 500 never look at
    the payload.
    """
    if response.status_code == 401:
        return UnauthorizedError(response=response)
    if response.status_code == 500:
        return ServerError(response=response)

    body = _error_body(response)
    if body is None:
        return InvalidResponseError(response=response)

    error_code = body["errorCode"]
    error_cls = ERROR_CODE_MAP.get(error_code, GenericError) if isinstance(error_code, int) else GenericError
    return error_cls(code=error_code, message=body["errorMessage"], response=response)


def raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    raise classify_error_response(response)
