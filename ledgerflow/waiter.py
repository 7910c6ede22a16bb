"""Convergence waiter: poll a resource until it reaches a terminal state."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Collection, Optional

from .contracts import PollResult, RefreshFn, ResourceSnapshot
from .errors import ValidationError
from .utils.lazy import LazyMessage

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], float]
DescribeFn = Callable[[ResourceSnapshot], str]


def describe_unconverged(snapshot: ResourceSnapshot) -> str:
    """Default diagnostic for a resource that missed its deadline."""
    return (
        f"{snapshot.kind.label.capitalize()} {snapshot.id} did not reach a "
        f"terminal state in time. State: {snapshot.state}"
    )


class ConvergenceWaiter:
    """Re-fetch a resource at a fixed interval until it settles or time runs out.

    The deadline is measured from the start of :meth:`wait` on ``clock`` and
    bounds each individual fetch too, so a slow fetch cannot push the wait
    past ``timeout``. Errors raised by ``refresh`` are not retried.
    """

    def __init__(
        self,
        sleep: SleepFn = asyncio.sleep,
        clock: ClockFn = time.monotonic,
        describe: Optional[DescribeFn] = None,
    ) -> None:
        self._sleep = sleep
        self._clock = clock
        self._describe = describe or describe_unconverged

    async def wait(
        self,
        initial: ResourceSnapshot,
        refresh: RefreshFn,
        terminal_states: Collection[str],
        timeout: float,
        poll_interval: float,
    ) -> PollResult:
        """Wait for ``initial`` to reach one of ``terminal_states``.

        Args:
            initial: Snapshot returned when the resource was created.
            refresh: Coroutine function fetching a fresh snapshot by id.
            terminal_states: States the resource will not leave on its own.
            timeout: Overall deadline in seconds.
            poll_interval: Fixed delay in seconds before each re-fetch.

        Returns:
            A :class:`PollResult`. ``timed_out`` is set when the deadline
            passed first; ``final_snapshot`` is then the last one observed.
        """
        start = self._clock()
        if initial.state in terminal_states:
            return PollResult(final_snapshot=initial, elapsed=0.0)

        latest = initial
        attempts = 0
        while True:
            remaining = timeout - (self._clock() - start)
            if remaining <= 0:
                break
            await self._sleep(min(poll_interval, remaining))

            remaining = timeout - (self._clock() - start)
            if remaining <= 0:
                break
            fetch = asyncio.ensure_future(refresh(initial.id))
            done, _ = await asyncio.wait({fetch}, timeout=remaining)
            if not done:
                fetch.cancel()
                logger.debug(f"Fetch of {initial.describe()} overran the deadline")
                break
            # re-raises anything the fetch itself raised, TimeoutError included
            snapshot = fetch.result()
            attempts += 1

            if snapshot.id != initial.id:
                raise ValidationError(
                    f"Re-fetching {initial.kind.label} {initial.id} returned "
                    f"a different resource: {snapshot.id}"
                )
            latest = snapshot
            logger.debug(
                f"Poll {attempts} of {latest.kind.label} {latest.id}: {latest.state}"
            )
            if latest.state in terminal_states:
                return PollResult(
                    final_snapshot=latest, elapsed=self._clock() - start
                )

        describe = self._describe
        return PollResult(
            final_snapshot=latest,
            elapsed=self._clock() - start,
            timed_out=True,
            diagnostic=LazyMessage(lambda snapshot=latest: describe(snapshot)),
        )
