from __future__ import annotations

from typing import List, Sequence

import pytest

from ledgerflow.contracts import ResourceKind, ResourceSnapshot
from ledgerflow.waiter import ConvergenceWaiter


class FakeClock:
    """Monotonic clock that only moves when ``sleep`` is awaited."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


class ScriptedRefresh:
    """Refresh function returning a fixed sequence of states."""

    def __init__(
        self,
        states: Sequence[str],
        resource_id: str = "res-1",
        kind: ResourceKind = ResourceKind.ACCOUNT,
    ) -> None:
        self.states = list(states)
        self.resource_id = resource_id
        self.kind = kind
        self.calls: List[str] = []

    async def __call__(self, resource_id: str) -> ResourceSnapshot:
        self.calls.append(resource_id)
        index = min(len(self.calls), len(self.states)) - 1
        return ResourceSnapshot(
            id=self.resource_id, kind=self.kind, state=self.states[index]
        )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def waiter(clock: FakeClock) -> ConvergenceWaiter:
    return ConvergenceWaiter(sleep=clock.sleep, clock=clock)


@pytest.fixture
def scripted_refresh():
    return ScriptedRefresh
