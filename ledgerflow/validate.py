"""Step outcome validation."""

from __future__ import annotations

from .contracts import PollResult, ResourceSnapshot
from .errors import StepTimeoutError, UnexpectedStateError


def validate(result: PollResult, success_state: str) -> ResourceSnapshot:
    """Return the converged snapshot if it reached ``success_state``.

    Raises:
        StepTimeoutError: The resource never reached a terminal state.
        UnexpectedStateError: The resource settled in another terminal state,
            such as a failure state of the remote resource.
    """

    snapshot = result.final_snapshot
    if result.timed_out:
        raise StepTimeoutError(
            f"{result.describe()} (waited {result.elapsed:.1f}s)"
        )
    if snapshot.state != success_state:
        raise UnexpectedStateError(
            f"{snapshot.kind.label.capitalize()} {snapshot.id} has invalid "
            f"state: {snapshot.state} (expected {success_state})",
            state=snapshot.state,
        )
    return snapshot
