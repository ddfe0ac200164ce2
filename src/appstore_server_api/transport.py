"""HTTP transport with bounded retry of transient failures."""

from __future__ import annotations

import json
import time
from typing import Any, Mapping

import httpx
import structlog

from .exceptions import ConfigurationError
from .retry import RetryPolicy, TransientErrorKind
from .security import sanitize_headers

logger = structlog.get_logger(__name__)

QUERY_METHODS = frozenset({"GET", "DELETE"})
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


def _coerce_query_params(params: Any) -> dict[str, Any] | None:
    if not isinstance(params, Mapping):
        return None
    return {str(key): value for key, value in params.items() if value is not None}


def _coerce_body(params: Any) -> bytes | None:
    if params is None:
        return None
    if isinstance(params, bytes):
        return params
    if isinstance(params, str):
        return params.encode()
    return json.dumps(params).encode()


def _normalize_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    if not headers:
        return {}
    return {str(key): str(value) for key, value in headers.items()}


class Transport:
    """One long-lived ``httpx.Client`` shared by every call of a client.

    ``httpx.Client`` pools connections and is safe to use from several
    threads; no per-request state is kept on the transport itself.
    """

    default_open_timeout = 10.0
    default_read_timeout = 30.0

    def __init__(
        self,
        open_timeout: float = default_open_timeout,
        read_timeout: float = default_read_timeout,
        *,
        retry_policy: RetryPolicy | None = None,
        httpx_client: httpx.Client | None = None,
    ) -> None:
        if open_timeout <= 0 or read_timeout <= 0:
            raise ConfigurationError("timeouts must be greater than 0")
        self.open_timeout = float(open_timeout)
        self.read_timeout = float(read_timeout)
        self.retry_policy = retry_policy or RetryPolicy()
        self._owns_client = httpx_client is None
        self._httpx = httpx_client or httpx.Client(
            timeout=httpx.Timeout(self.read_timeout, connect=self.open_timeout),
            trust_env=False,
        )

    def __enter__(self) -> "Transport":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._httpx.close()

    def send(
        self,
        url: str,
        method: str = "GET",
        params: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """Send a single request; GET/DELETE put ``params`` in the query string."""
        method = method.upper()
        headers = _normalize_headers(headers)
        if method in QUERY_METHODS:
            return self._httpx.request(method, url, params=_coerce_query_params(params), headers=headers)
        if method in BODY_METHODS:
            return self._httpx.request(method, url, content=_coerce_body(params), headers=headers)
        raise ConfigurationError(f"Unsupported HTTP method: {method}")

    def send_with_retry(
        self,
        url: str,
        method: str = "GET",
        params: Any = None,
        headers: Mapping[str, str] | None = None,
        *,
        retry_policy: RetryPolicy | None = None,
    ) -> httpx.Response:
        """Send a request, retrying connection failures, timeouts and 5xx responses.

        When retries run out, the last transport exception propagates as is
        and the last 5xx response is returned to the caller for classification.
        """
        policy = retry_policy or self.retry_policy
        method = method.upper()
        if method not in QUERY_METHODS | BODY_METHODS:
            raise ConfigurationError(f"Unsupported HTTP method: {method}")

        started = time.monotonic()
        attempt = 0
        while True:
            attempt += 1
            logger.debug(
                "app_store_request_sent",
                method=method,
                url=url,
                attempt=attempt,
                headers=sanitize_headers(_normalize_headers(headers)),
            )
            try:
                response = self.send(url, method=method, params=params, headers=headers)
            except httpx.TimeoutException as exc:
                if not self._retry_transport_error(policy, attempt, started, TransientErrorKind.TIMEOUT, url, exc):
                    raise
                continue
            except httpx.NetworkError as exc:
                if not self._retry_transport_error(policy, attempt, started, TransientErrorKind.CONNECTION_FAILED, url, exc):
                    raise
                continue

            if response.status_code < 500:
                return response

            decision = policy.should_retry(attempt, time.monotonic() - started, TransientErrorKind.SERVER_ERROR)
            if not decision.retry:
                logger.error(
                    "app_store_request_retries_exhausted",
                    url=url,
                    attempt=attempt,
                    status_code=response.status_code,
                )
                return response
            logger.warning(
                "app_store_request_retrying",
                url=url,
                attempt=attempt,
                wait=decision.wait_for,
                reason=TransientErrorKind.SERVER_ERROR.value,
                status_code=response.status_code,
            )
            response.close()
            time.sleep(decision.wait_for)

    @staticmethod
    def _retry_transport_error(
        policy: RetryPolicy,
        attempt: int,
        started: float,
        kind: TransientErrorKind,
        url: str,
        exc: httpx.TransportError,
    ) -> bool:
        decision = policy.should_retry(attempt, time.monotonic() - started, kind)
        if not decision.retry:
            logger.error(
                "app_store_request_retries_exhausted",
                url=url,
                attempt=attempt,
                reason=kind.value,
                error=str(exc),
            )
            return False
        logger.warning(
            "app_store_request_retrying",
            url=url,
            attempt=attempt,
            wait=decision.wait_for,
            reason=kind.value,
            error=str(exc),
        )
        time.sleep(decision.wait_for)
        return True
