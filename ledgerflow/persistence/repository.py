"""Run journal interface."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .models import RunRecord


class RunRepository(Protocol):
    """Where workflow runs and their step outcomes are recorded.

    Steps are identified by name within a run; a workflow never repeats a
    step name, so ``(run_id, step_name)`` is unique.
    """

    async def create_run(
        self, run_id: str, variant: str, planned_steps: Sequence[str]
    ) -> None:
        ...

    async def start_step(self, run_id: str, step_name: str) -> None:
        ...

    async def finish_step(
        self,
        run_id: str,
        step_name: str,
        status: str,
        *,
        resource_id: Optional[str] = None,
        resource_kind: Optional[str] = None,
        state: Optional[str] = None,
        error_kind: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        """Record the outcome of a started step. Later calls do not overwrite it."""

    async def finish_run(self, run_id: str, status: str) -> None:
        ...

    async def get_run(self, run_id: str) -> Optional[RunRecord]:
        ...

    async def list_runs(self) -> list[RunRecord]:
        """Runs in the order they were started, without their steps."""
