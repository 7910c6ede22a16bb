"""End-to-end workflow runs against the in-memory ledger."""

from decimal import Decimal

import pytest

from ledgerflow.clients import InMemoryResourceClient
from ledgerflow.config import LedgerflowConfig, WorkflowConfig
from ledgerflow.contracts import ResourceKind, RunContext
from ledgerflow.errors import UnexpectedStateError, ValidationError
from ledgerflow.orchestrator import WorkflowOrchestrator
from ledgerflow.persistence import InMemoryRunRepository
from ledgerflow.workflows import build_workflow, variant_name


def _config(**workflow) -> LedgerflowConfig:
    return LedgerflowConfig(backend="inmemory", workflow=WorkflowConfig(**workflow))


async def _execute(config, client, waiter, concurrent=False, repository=None):
    context = RunContext(config=config, client=client)
    orchestrator = WorkflowOrchestrator(context, waiter=waiter, repository=repository)
    return await orchestrator.execute(build_workflow(config), concurrent=concurrent)


def test_workflow_shape():
    workflow = build_workflow(_config(crypto_assets=["BTC", "ETH"]))

    assert workflow.name == "attested-multi-asset"
    assert [s.name for s in workflow.steps] == [
        "Create customer",
        "Create identity verification",
        "Create USD fiat account",
        "Deposit USD by book transfer",
        "Check USD balance after deposit",
    ]
    assert list(workflow.groups) == ["BTC", "ETH"]
    assert [s.name for s in workflow.groups["BTC"]] == [
        "Create BTC trading account",
        "Create BTC external wallet",
        "Buy BTC",
        "Check BTC balance after trade",
        "Withdraw BTC to external wallet",
        "Check BTC balance after withdrawal",
    ]
    for step in workflow.steps:
        assert step.success_state in step.terminal_states


def test_variant_names():
    assert variant_name(_config()) == "attested-single-asset"
    assert (
        variant_name(_config(identity_method="document_submission", crypto_assets="BTC,ETH"))
        == "document-submission-multi-asset"
    )


def test_step_timing_follows_config():
    config = LedgerflowConfig(timeout=12, poll_interval=0.5)
    workflow = build_workflow(config)

    assert {(s.timeout, s.poll_interval) for s in workflow.steps} == {(12, 0.5)}


@pytest.mark.asyncio
async def test_single_asset_workflow_completes(waiter):
    client = InMemoryResourceClient()
    repository = InMemoryRunRepository()

    results = await _execute(_config(), client, waiter, repository=repository)

    assert results["Check USD balance after deposit"].attribute("platform_balance") == 100000
    assert results["Check BTC balance after trade"].attribute("platform_balance") == 10**8
    assert results["Check BTC balance after withdrawal"].attribute("platform_balance") == 0
    assert results["Buy BTC"].state == "settling"

    runs = await repository.list_runs()
    assert [r.status for r in runs] == ["completed"]
    run = await repository.get_run(runs[0].run_id)
    assert run.not_started() == []
    assert all(s.status == "completed" for s in run.steps)
    assert run.finished_at is not None


@pytest.mark.asyncio
@pytest.mark.parametrize("concurrent", [False, True])
async def test_multi_asset_workflow_completes(waiter, concurrent):
    client = InMemoryResourceClient()
    config = _config(crypto_assets=["BTC", "ETH", "USDC"])

    results = await _execute(config, client, waiter, concurrent=concurrent)

    for asset in ("BTC", "ETH", "USDC"):
        assert results[f"Check {asset} balance after trade"].attribute("platform_balance") > 0
        assert results[f"Check {asset} balance after withdrawal"].attribute("platform_balance") == 0
    assert client.calls_for("create", ResourceKind.TRADE) == 3
    assert client.calls_for("create", ResourceKind.CUSTOMER) == 1


@pytest.mark.asyncio
async def test_fiat_withdrawal_variant(waiter):
    config = _config(
        fiat_deposit_amount=Decimal("1000"), fiat_withdrawal_amount=Decimal("400"), crypto_assets=[]
    )

    results = await _execute(config, InMemoryResourceClient(), waiter)

    assert results["Check USD balance after withdrawal"].attribute("platform_balance") == 60000


@pytest.mark.asyncio
async def test_document_submission_identity(waiter):
    client = InMemoryResourceClient()
    config = _config(identity_method="document_submission")

    results = await _execute(config, client, waiter)

    verification = results["Create identity verification"]
    assert verification.attribute("method") == "document_submission"
    assert "name" not in results["Create customer"].attributes


@pytest.mark.asyncio
async def test_verification_key_precondition(waiter):
    config = _config(require_verification_key=True)

    with pytest.raises(ValidationError):
        await _execute(config, InMemoryResourceClient(), waiter)

    client = InMemoryResourceClient()
    key = client.add_verification_key()
    results = await _execute(config, client, waiter)
    assert results["Verify verification key"].id == key.id


@pytest.mark.asyncio
async def test_unready_verification_key_fails(waiter):
    client = InMemoryResourceClient()
    client.add_verification_key(state="failed")

    with pytest.raises(UnexpectedStateError):
        await _execute(_config(require_verification_key=True), client, waiter)

    assert client.calls_for("create", ResourceKind.CUSTOMER) == 0


@pytest.mark.asyncio
async def test_failed_trade_stops_asset_group(waiter):
    client = InMemoryResourceClient(outcomes={ResourceKind.TRADE: "failed"})

    with pytest.raises(UnexpectedStateError):
        await _execute(_config(), client, waiter)

    assert client.calls_for("create", ResourceKind.TRANSFER) == 1
