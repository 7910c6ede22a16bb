"""Workflow orchestrator: run steps in order, waiting for each to settle."""

from __future__ import annotations

import asyncio
import uuid
from functools import partial
from typing import Dict, Mapping, Optional, Sequence

from .contracts import ResourceSnapshot, RunContext, Workflow, WorkflowStep
from .errors import ErrorKind, classify, is_fatal
from .persistence import RunRepository
from .validate import validate
from .waiter import ConvergenceWaiter


def _failure_status(kind: ErrorKind) -> str:
    return "timed_out" if kind is ErrorKind.TIMEOUT else "failed"


class WorkflowOrchestrator:
    """Executes workflow steps strictly in order and aborts on first failure.

    Each step creates a resource through the run's client, waits for it to
    converge, validates the final state and runs its post-condition. Failures
    are classified, logged, recorded and re-raised; resources already created
    on the ledger are left as they are.
    """

    def __init__(
        self,
        context: RunContext,
        waiter: Optional[ConvergenceWaiter] = None,
        repository: RunRepository | None = None,
    ) -> None:
        self._context = context
        self._waiter = waiter or ConvergenceWaiter()
        self._repository = repository
        self.run_id = context.run_id or str(uuid.uuid4())

    @property
    def context(self) -> RunContext:
        return self._context

    async def run_step(
        self, step: WorkflowStep, results: Mapping[str, ResourceSnapshot]
    ) -> ResourceSnapshot:
        """Create, wait for, validate and check the resource of one step."""
        ctx = self._context
        log = ctx.logger
        log.info(f"{step.name}...")
        if self._repository is not None:
            await self._repository.start_step(self.run_id, step.name)

        try:
            initial = await step.create(ctx, results)
            refresh = step.refresh or partial(ctx.client.get, initial.kind)
            result = await self._waiter.wait(
                initial,
                refresh,
                step.terminal_states,
                timeout=step.timeout,
                poll_interval=step.poll_interval,
            )
            snapshot = validate(result, step.success_state)
            if step.check is not None:
                await step.check(ctx, snapshot, results)
        except Exception as e:
            kind = classify(e)
            log.error(f"{step.name} failed due to {kind}: {e}")
            if self._repository is not None:
                await self._repository.finish_step(
                    self.run_id,
                    step.name,
                    _failure_status(kind),
                    error_kind=kind.value,
                    error=str(e),
                )
            raise

        log.info(
            f"{snapshot.kind.label.capitalize()} successfully created with state: "
            f"{snapshot.state} ({result.elapsed:.1f}s)"
        )
        if self._repository is not None:
            await self._repository.finish_step(
                self.run_id,
                step.name,
                "completed",
                resource_id=snapshot.id,
                resource_kind=snapshot.kind.value,
                state=snapshot.state,
            )
        return snapshot

    async def run(
        self,
        steps: Sequence[WorkflowStep],
        results: Optional[Mapping[str, ResourceSnapshot]] = None,
    ) -> Dict[str, ResourceSnapshot]:
        """Run ``steps`` in order, threading resolved snapshots forward.

        Returns the snapshots of ``results`` plus one per step, keyed by
        step name.
        """
        resolved: Dict[str, ResourceSnapshot] = dict(results or {})
        for step in steps:
            resolved[step.name] = await self.run_step(step, dict(resolved))
        return resolved

    async def run_groups(
        self,
        groups: Mapping[str, Sequence[WorkflowStep]],
        results: Mapping[str, ResourceSnapshot],
        concurrent: bool = False,
    ) -> Dict[str, ResourceSnapshot]:
        """Run independent groups of steps, each in its own order.

        Every group starts from its own copy of ``results``. With
        ``concurrent`` the groups are awaited together and, once all of them
        have finished, the first fatal failure in group order is raised. A
        timeout is raised only when no group failed any other way.
        """
        merged: Dict[str, ResourceSnapshot] = dict(results)
        if not concurrent:
            for steps in groups.values():
                merged.update(await self.run(steps, results))
            return merged

        outcomes = await asyncio.gather(
            *(self.run(steps, results) for steps in groups.values()),
            return_exceptions=True,
        )
        failures = [o for o in outcomes if isinstance(o, BaseException)]
        if failures:
            fatal = [e for e in failures if is_fatal(classify(e))]
            raise (fatal or failures)[0]
        for outcome in outcomes:
            merged.update(outcome)
        return merged

    async def execute(
        self, workflow: Workflow, concurrent: bool = False
    ) -> Dict[str, ResourceSnapshot]:
        """Run a whole workflow and record its outcome."""
        log = self._context.logger
        if self._repository is not None:
            await self._repository.create_run(
                self.run_id, workflow.name, workflow.step_names()
            )

        try:
            results = await self.run(workflow.steps)
            if workflow.groups:
                results = await self.run_groups(
                    workflow.groups, results, concurrent=concurrent
                )
        except Exception as e:
            if self._repository is not None:
                await self._repository.finish_run(
                    self.run_id, _failure_status(classify(e))
                )
            raise

        if self._repository is not None:
            await self._repository.finish_run(self.run_id, "completed")
        log.info(f"Workflow {workflow.name} has completed successfully!")
        return results
