"""Python client for Apple's App Store Server API."""

from .bearer_token import MAX_TOKEN_LIFETIME, TokenGenerator
from .client import AppStoreServerAPIClient
from .exceptions import (
    ERROR_CODE_MAP,
    ApiError,
    AppStoreServerAPIError,
    ConfigurationError,
    GenericError,
    InvalidResponseError,
    InvalidTestNotificationTokenError,
    InvalidTransactionIdError,
    RateLimitExceededError,
    ServerError,
    ServerNotificationURLNotFoundError,
    SignedDataDecodeError,
    TestNotificationNotFoundError,
    TransactionIdNotFoundError,
    UnauthorizedError,
    classify_error_response,
    raise_for_status,
)
from .models import ClientConfig, Environment
from .request_options import RequestOptions
from .retry import RetryDecision, RetryPolicy, TransientErrorKind
from .signed_data import decode_signed_envelope, decode_signed_envelopes
from .transport import Transport

__version__ = "0.1.0"

__all__ = [
    "ERROR_CODE_MAP",
    "MAX_TOKEN_LIFETIME",
    "ApiError",
    "AppStoreServerAPIClient",
    "AppStoreServerAPIError",
    "ClientConfig",
    "ConfigurationError",
    "Environment",
    "GenericError",
    "InvalidResponseError",
    "InvalidTestNotificationTokenError",
    "InvalidTransactionIdError",
    "RateLimitExceededError",
    "RequestOptions",
    "RetryDecision",
    "RetryPolicy",
    "ServerError",
    "ServerNotificationURLNotFoundError",
    "SignedDataDecodeError",
    "TestNotificationNotFoundError",
    "TokenGenerator",
    "TransactionIdNotFoundError",
    "Transport",
    "TransientErrorKind",
    "UnauthorizedError",
    "classify_error_response",
    "decode_signed_envelope",
    "decode_signed_envelopes",
    "raise_for_status",
]
