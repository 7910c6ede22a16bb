"""Tests for the core data contracts."""

import pydantic
import pytest

from ledgerflow.clients import InMemoryResourceClient
from ledgerflow.config import LedgerflowConfig
from ledgerflow.contracts import ResourceKind, ResourceSnapshot, RunContext, Workflow, WorkflowStep


async def _create(ctx, results):
    return ResourceSnapshot(id="x", kind=ResourceKind.CUSTOMER, state="storing")


def test_success_state_must_be_terminal():
    with pytest.raises(ValueError):
        WorkflowStep(
            name="Create customer",
            create=_create,
            terminal_states={"unverified"},
            success_state="verified",
        )


def test_step_is_immutable_and_freezes_terminal_states():
    step = WorkflowStep(
        name="Buy BTC",
        create=_create,
        terminal_states=["settling", "completed", "failed"],
        success_state="settling",
    )

    assert step.terminal_states == frozenset({"settling", "completed", "failed"})
    with pytest.raises(AttributeError):
        step.name = "Sell BTC"


def test_with_timing_copies_step():
    step = WorkflowStep(
        name="Create customer",
        create=_create,
        terminal_states={"unverified"},
        success_state="unverified",
    )

    faster = step.with_timing(timeout=5, poll_interval=0.5)

    assert (faster.timeout, faster.poll_interval) == (5, 0.5)
    assert (step.timeout, step.poll_interval) == (30, 1.0)
    assert faster.create is step.create


def test_non_positive_timing_is_rejected():
    with pytest.raises(ValueError):
        WorkflowStep(
            name="Create customer",
            create=_create,
            terminal_states={"unverified"},
            success_state="unverified",
            poll_interval=0,
        )


def test_snapshot_is_frozen():
    snapshot = ResourceSnapshot(
        id="acc-1",
        kind="account",
        state="created",
        attributes={"platform_balance": 0},
    )

    assert snapshot.kind is ResourceKind.ACCOUNT
    assert snapshot.attribute("platform_balance") == 0
    assert snapshot.attribute("missing", "n/a") == "n/a"
    with pytest.raises(pydantic.ValidationError):
        snapshot.state = "storing"


def test_workflow_step_names_include_groups():
    def step(name):
        return WorkflowStep(
            name=name, create=_create, terminal_states={"done"}, success_state="done"
        )

    workflow = Workflow(
        name="demo",
        steps=(step("a"), step("b")),
        groups={"BTC": (step("c"),), "ETH": (step("d"),)},
    )

    assert workflow.step_names() == ["a", "b", "c", "d"]


def test_run_context_logs_under_package_logger():
    context = RunContext(config=LedgerflowConfig(), client=InMemoryResourceClient())

    assert context.logger.name == "ledgerflow"
    assert context.run_id is None
