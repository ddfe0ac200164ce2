from __future__ import annotations

import pytest
import httpx

from appstore_server_api import (
    ERROR_CODE_MAP,
    ApiError,
    GenericError,
    InvalidResponseError,
    InvalidTestNotificationTokenError,
    InvalidTransactionIdError,
    RateLimitExceededError,
    ServerError,
    ServerNotificationURLNotFoundError,
    TransactionIdNotFoundError,
    UnauthorizedError,
    classify_error_response,
    raise_for_status,
)
from appstore_server_api import TestNotificationNotFoundError as NotificationNotFoundError


def test_401_is_unauthorized_regardless_of_body() -> None:
    error = classify_error_response(
        httpx.Response(401, json={"errorCode": 4040010, "errorMessage": "Transaction id not found."})
    )

    assert type(error) is UnauthorizedError
    assert error.code == 4010000
    assert error.message == "unauthorized error"


def test_500_is_server_error() -> None:
    error = classify_error_response(httpx.Response(500, text="<html>boom</html>"))

    assert type(error) is ServerError
    assert error.code == 5000000
    assert error.message == "Internal Server Error"


@pytest.mark.parametrize(
    ("status", "code", "message", "expected"),
    [
        (404, 4040010, "Transaction id not found.", TransactionIdNotFoundError),
        (400, 4000006, "Invalid transaction id.", InvalidTransactionIdError),
        (400, 4000020, "Invalid request. The test notification token is invalid.", InvalidTestNotificationTokenError),
        (429, 4290000, "Rate limit exceeded.", RateLimitExceededError),
        (404, 4040007, "Server notification URL not found.", ServerNotificationURLNotFoundError),
        (
            404,
            4040008,
            "The test notification token is expired or the notification and status are not yet available.",
            NotificationNotFoundError,
        ),
    ],
)
def test_known_error_codes(status, code, message, expected) -> None:
    response = httpx.Response(status, json={"errorCode": code, "errorMessage": message})
    error = classify_error_response(response)

    assert type(error) is expected
    assert error.code == code
    assert error.message == message
    assert error.response is response


def test_unknown_error_code_keeps_server_values() -> None:
    error = classify_error_response(
        httpx.Response(400, json={"errorCode": 4000099, "errorMessage": "Something new."})
    )

    assert type(error) is GenericError
    assert error.code == 4000099
    assert error.message == "Something new."


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(404, json={"errorMessage": "missing code"}),
        httpx.Response(404, json={"errorCode": 4040010}),
        httpx.Response(400, json=["errorCode", "errorMessage"]),
        httpx.Response(503, text="Service Unavailable"),
        httpx.Response(400, content=b""),
        httpx.Response(400, json={"errorCode": None, "errorMessage": "Invalid request."}),
        httpx.Response(404, json={"errorCode": 4040010, "errorMessage": None}),
        httpx.Response(400, json={"errorCode": None, "errorMessage": None}),
    ],
)
def test_malformed_bodies_are_invalid_responses(response) -> None:
    error = classify_error_response(response)

    assert type(error) is InvalidResponseError
    assert error.code == 5000002


def test_raise_for_status() -> None:
    raise_for_status(httpx.Response(200, json={}))

    with pytest.raises(TransactionIdNotFoundError) as exc_info:
        raise_for_status(httpx.Response(404, json={"errorCode": 4040010, "errorMessage": "Transaction id not found."}))

    assert isinstance(exc_info.value, ApiError)
    assert exc_info.value.status_code == 404


def test_error_to_dict_and_repr() -> None:
    error = classify_error_response(httpx.Response(401))

    assert error.to_dict() == {"code": 4010000, "message": "unauthorized error", "status_code": 401}
    assert repr(error).startswith("<UnauthorizedError: ")
    assert str(error) == "4010000: unauthorized error"


def test_error_code_map_is_read_only() -> None:
    with pytest.raises(TypeError):
        ERROR_CODE_MAP[4000000] = GenericError  # type: ignore[index]


def test_api_error_requires_code_and_message() -> None:
    with pytest.raises(TypeError):
        GenericError(response=httpx.Response(400))
