"""Tests for the error classifier."""

import httpx
import pytest
import requests

from ledgerflow.errors import (
    ErrorKind,
    StepTimeoutError,
    TransportError,
    UnexpectedStateError,
    ValidationError,
    as_transport_error,
    classify,
    is_fatal,
)


@pytest.mark.parametrize(
    "exc, kind",
    [
        (TransportError("boom", status=500), ErrorKind.TRANSPORT),
        (StepTimeoutError("slow"), ErrorKind.TIMEOUT),
        (UnexpectedStateError("failed", state="failed"), ErrorKind.UNEXPECTED_STATE),
        (ValidationError("balance"), ErrorKind.VALIDATION),
        (httpx.ConnectError("refused"), ErrorKind.TRANSPORT),
        (requests.ConnectionError("refused"), ErrorKind.TRANSPORT),
        (RuntimeError("unknown"), ErrorKind.TRANSPORT),
    ],
)
def test_classify(exc, kind):
    assert classify(exc) is kind


def test_only_timeouts_are_not_fatal():
    assert not is_fatal(ErrorKind.TIMEOUT)
    assert all(is_fatal(k) for k in ErrorKind if k is not ErrorKind.TIMEOUT)


def test_kind_renders_as_its_name():
    assert str(ErrorKind.UNEXPECTED_STATE) == "UnexpectedStateError"


def test_transport_error_from_http_status():
    request = httpx.Request("POST", "https://bank.example.com/api/customers")
    response = httpx.Response(
        422, json={"message_code": "invalid_parameter", "message": "name is missing"}, request=request
    )
    exc = httpx.HTTPStatusError("422", request=request, response=response)

    error = as_transport_error(exc)

    assert error.status == 422
    assert error.message == "name is missing"
    assert str(error) == "[422] name is missing"


def test_transport_error_from_connection_failure():
    error = as_transport_error(httpx.ConnectError("connection refused"))

    assert error.status is None
    assert str(error) == "connection refused"
