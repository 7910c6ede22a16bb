"""Run journal kept in process memory."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional, Sequence

from .models import STEP_RUNNING, RunRecord, StepRecord


class InMemoryRunRepository:
    """Keeps runs for the life of the process. Used when no database is set."""

    def __init__(self) -> None:
        self._runs: Dict[str, RunRecord] = {}

    async def create_run(
        self, run_id: str, variant: str, planned_steps: Sequence[str]
    ) -> None:
        self._runs[run_id] = RunRecord(
            run_id=run_id,
            variant=variant,
            planned_steps=list(planned_steps),
            started_at=datetime.now(timezone.utc),
        )

    async def start_step(self, run_id: str, step_name: str) -> None:
        self._runs[run_id].steps.append(
            StepRecord(step_name=step_name, started_at=datetime.now(timezone.utc))
        )

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
        step = next(
            (
                s
                for s in self._runs[run_id].steps
                if s.step_name == step_name and s.status == STEP_RUNNING
            ),
            None,
        )
        if step is None:
            return
        step.status = status
        step.resource_id = resource_id
        step.resource_kind = resource_kind
        step.state = state
        step.error_kind = error_kind
        step.error = error
        step.finished_at = datetime.now(timezone.utc)

    async def finish_run(self, run_id: str, status: str) -> None:
        run = self._runs[run_id]
        run.status = status
        run.finished_at = datetime.now(timezone.utc)

    async def get_run(self, run_id: str) -> Optional[RunRecord]:
        return self._runs.get(run_id)

    async def list_runs(self) -> list[RunRecord]:
        return [run.model_copy(update={"steps": []}) for run in self._runs.values()]
