"""Error taxonomy and classifier for workflow failures."""

from __future__ import annotations

import enum
from typing import Optional

import httpx
import requests


class ErrorKind(str, enum.Enum):
    """The fixed set of failure categories a step can end in."""

    TRANSPORT = "TransportError"
    TIMEOUT = "TimeoutError"
    UNEXPECTED_STATE = "UnexpectedStateError"
    VALIDATION = "ValidationError"

    def __str__(self) -> str:
        return self.value


class LedgerflowError(Exception):
    """Base class for errors raised while driving a workflow."""

    kind: ErrorKind = ErrorKind.TRANSPORT


class TransportError(LedgerflowError):
    """A collaborator request failed, either on the wire or by API rejection."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"[{self.status}] {self.message}"


class StepTimeoutError(LedgerflowError):
    """A resource did not reach a terminal state before the deadline."""

    kind = ErrorKind.TIMEOUT


class UnexpectedStateError(LedgerflowError):
    """A resource converged to a terminal state other than the success state."""

    kind = ErrorKind.UNEXPECTED_STATE

    def __init__(self, message: str, state: Optional[str] = None) -> None:
        super().__init__(message)
        self.state = state


class ValidationError(LedgerflowError):
    """A post-condition such as a balance check failed."""

    kind = ErrorKind.VALIDATION


def classify(exc: BaseException) -> ErrorKind:
    """Return the :class:`ErrorKind` that ``exc`` belongs to.

    Errors raised by ledgerflow carry their own kind. Failures coming straight
    out of the HTTP libraries, and anything unrecognised, are treated as
    transport failures of the collaborator call that raised them.
    """

    if isinstance(exc, LedgerflowError):
        return exc.kind
    return ErrorKind.TRANSPORT


def as_transport_error(exc: Exception) -> TransportError:
    """Wrap an HTTP library failure into a :class:`TransportError`."""

    if isinstance(exc, TransportError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        return TransportError(_response_message(response), status=response.status_code)
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        response = exc.response
        return TransportError(_response_message(response), status=response.status_code)
    return TransportError(str(exc) or exc.__class__.__name__)


def _response_message(response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or "no response body"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error_message") or body)
    return str(body)


def is_fatal(kind: ErrorKind) -> bool:
    """Whether a failure of ``kind`` should end the process with an error code."""
    return kind is not ErrorKind.TIMEOUT
