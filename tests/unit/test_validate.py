"""Tests for step outcome validation."""

import pytest

from ledgerflow.contracts import PollResult, ResourceKind, ResourceSnapshot
from ledgerflow.errors import ErrorKind, StepTimeoutError, UnexpectedStateError
from ledgerflow.utils.lazy import LazyMessage
from ledgerflow.validate import validate


def _snapshot(state: str) -> ResourceSnapshot:
    return ResourceSnapshot(
        id="iv-1", kind=ResourceKind.IDENTITY_VERIFICATION, state=state
    )


def test_success_state_returns_snapshot_unchanged():
    snapshot = _snapshot("completed")
    result = PollResult(final_snapshot=snapshot, elapsed=2.0)

    assert validate(result, "completed") is snapshot


def test_terminal_but_wrong_state_is_unexpected_state():
    result = PollResult(final_snapshot=_snapshot("failed"), elapsed=3.0)

    with pytest.raises(UnexpectedStateError) as exc_info:
        validate(result, "completed")

    assert exc_info.value.state == "failed"
    assert exc_info.value.kind is ErrorKind.UNEXPECTED_STATE
    assert "failed" in str(exc_info.value)


def test_timed_out_result_raises_timeout_with_elapsed_and_state():
    snapshot = _snapshot("waiting")
    result = PollResult(
        final_snapshot=snapshot,
        elapsed=30.0,
        timed_out=True,
        diagnostic=LazyMessage(lambda: f"Identity verification stuck. State: {snapshot.state}"),
    )

    with pytest.raises(StepTimeoutError) as exc_info:
        validate(result, "completed")

    message = str(exc_info.value)
    assert "waiting" in message
    assert "30.0s" in message
    assert exc_info.value.kind is ErrorKind.TIMEOUT


def test_timeout_wins_over_state_comparison():
    # A timed-out result never reached a terminal state, whatever it carries.
    result = PollResult(final_snapshot=_snapshot("completed"), elapsed=5.0, timed_out=True)

    with pytest.raises(StepTimeoutError):
        validate(result, "completed")
