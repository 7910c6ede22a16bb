"""Records kept in the run journal."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

STEP_RUNNING = "running"
RUN_IN_PROGRESS = "in_progress"


class StepRecord(BaseModel):
    """How one step of a run ended, or that it is still running."""

    step_name: str
    status: str = STEP_RUNNING
    resource_id: Optional[str] = None
    resource_kind: Optional[str] = None
    state: Optional[str] = None
    error_kind: Optional[str] = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def detail(self) -> str:
        if self.error_kind:
            return f"{self.error_kind}: {self.error}"
        return self.state or ""


class RunRecord(BaseModel):
    """One workflow run and the steps it got through."""

    run_id: str
    variant: str
    planned_steps: list[str] = Field(default_factory=list)
    status: str = RUN_IN_PROGRESS
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    steps: list[StepRecord] = Field(default_factory=list)

    def not_started(self) -> list[str]:
        """Planned steps the run never reached."""
        seen = {step.step_name for step in self.steps}
        return [name for name in self.planned_steps if name not in seen]
