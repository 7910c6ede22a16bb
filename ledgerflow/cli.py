"""Command line interface for running ledgerflow workflows."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer

from ledgerflow.clients import BaseResourceClient, get_client
from ledgerflow.config import LedgerflowConfig, WorkflowConfig, load_config
from ledgerflow.contracts import RunContext
from ledgerflow.errors import classify, is_fatal
from ledgerflow.orchestrator import WorkflowOrchestrator
from ledgerflow.persistence import RunRepository, get_repository
from ledgerflow.workflows import build_workflow

logger = logging.getLogger("ledgerflow")

app = typer.Typer(help="CLI for ledgerflow bank workflows")

# Command groups
runs_app = typer.Typer(help="Commands for inspecting recorded runs")

app.add_typer(runs_app, name="runs")


@app.callback()
def main(
    log_level: str = typer.Option("INFO", help="Logging level for workflow output"),
) -> None:
    """ledgerflow CLI entry point."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(levelname)s, [%(asctime)s] %(name)s: %(message)s",
    )


async def _execute(
    config: LedgerflowConfig, client: BaseResourceClient, repository: RunRepository
) -> str:
    context = RunContext(config=config, client=client, logger=logger)
    orchestrator = WorkflowOrchestrator(context, repository=repository)
    workflow = build_workflow(config)
    logger.info(f"Starting workflow {workflow.name} (run {orchestrator.run_id})")
    async with client:
        await orchestrator.execute(workflow, concurrent=config.workflow.concurrent_assets)
    return orchestrator.run_id


def _report_failure(e: Exception) -> None:
    kind = classify(e)
    if not is_fatal(kind):
        logger.error(f"Test failed due to a timeout: {e}")
        typer.echo(f"{kind}: {e}")
        return
    logger.error(f"Test failed due to {kind}: {e}")
    typer.secho(f"{kind}: {e}", fg=typer.colors.RED)
    raise typer.Exit(code=1)


@app.command("run")
def run(
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="YAML configuration file"
    ),
    backend: Optional[str] = typer.Option(
        None, help="Resource client backend: http or inmemory"
    ),
    asset: Optional[List[str]] = typer.Option(
        None, "--asset", help="Crypto asset to trade (repeatable)"
    ),
    identity_method: Optional[str] = typer.Option(
        None, help="Identity verification method: attested or document_submission"
    ),
    concurrent_assets: bool = typer.Option(
        False, "--concurrent-assets", help="Run the per-asset steps concurrently"
    ),
) -> None:
    """
    Run one bank workflow to completion.

    Creates a customer, verifies their identity, funds a fiat account and then
    buys and withdraws each configured crypto asset, waiting for every
    resource to settle and checking balances along the way.

    Exits with code 1 on a transport failure, an unexpected resource state or
    a failed balance check. A timeout ends the run with code 0.

    Example:
        ledgerflow run --backend inmemory
        ledgerflow run --asset BTC --asset ETH --concurrent-assets
    """
    try:
        config = load_config(str(config_path) if config_path else None)
        updates = {}
        if asset:
            updates["crypto_assets"] = [a.upper() for a in asset]
        if identity_method:
            updates["identity_method"] = identity_method
        if concurrent_assets:
            updates["concurrent_assets"] = True
        if updates:
            workflow = WorkflowConfig.model_validate(
                {**config.workflow.model_dump(), **updates}
            )
            config = config.model_copy(update={"workflow": workflow})
        repository = get_repository(database_url=config.database_url)
        client = get_client(backend, config=config)
    except ValueError as e:
        typer.secho(f"Invalid configuration: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    except Exception as e:
        _report_failure(e)
        return

    try:
        run_id = asyncio.run(_execute(config, client, repository))
    except Exception as e:
        _report_failure(e)
        return

    typer.echo(f"Run {run_id} completed successfully")


@runs_app.command("list")
def runs_list() -> None:
    """List recorded runs with their status."""
    repo = get_repository()
    runs = asyncio.run(repo.list_runs())
    if not runs:
        typer.echo("No runs found")
        return
    for run_record in runs:
        typer.echo(f"{run_record.run_id}\t{run_record.variant}\t{run_record.status}")


@runs_app.command("show")
def runs_show(run_id: str) -> None:
    """Show the steps of a recorded run and how each one ended."""
    repo = get_repository()
    run_record = asyncio.run(repo.get_run(run_id))
    if run_record is None:
        typer.echo("Run not found")
        raise typer.Exit(code=1)
    typer.echo(f"Run {run_record.run_id} ({run_record.variant}): {run_record.status}")
    for step in run_record.steps:
        detail = f" ({step.detail})" if step.detail else ""
        typer.echo(f"- {step.step_name}: {step.status}{detail}")
    for name in run_record.not_started():
        typer.echo(f"- {name}: not started")
