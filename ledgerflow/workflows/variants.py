"""Assemble complete workflows from configuration."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from ..config import LedgerflowConfig
from ..contracts import Workflow, WorkflowStep
from ..currency import to_subunits
from .people import Person, sample_person
from .steps import (
    account_step,
    account_step_name,
    balance_check_step,
    book_transfer_step,
    buy_trade_step,
    crypto_withdrawal_step,
    customer_step,
    external_wallet_step,
    identity_verification_step,
    verification_key_step,
)


def variant_name(config: LedgerflowConfig) -> str:
    """Short name such as ``attested-single-asset`` for a configuration."""
    wf = config.workflow
    assets = "multi-asset" if len(wf.crypto_assets) > 1 else "single-asset"
    return f"{wf.identity_method.replace('_', '-')}-{assets}"


def fiat_steps(config: LedgerflowConfig, person: Person) -> List[WorkflowStep]:
    """Onboard a customer and fund their fiat account."""
    wf = config.workflow
    timing = dict(timeout=config.timeout, poll_interval=config.poll_interval)
    fiat = wf.fiat_asset
    fiat_account = account_step_name(fiat, "fiat")
    deposit = to_subunits(wf.fiat_deposit_amount, fiat)

    steps: List[WorkflowStep] = []
    if wf.require_verification_key:
        steps.append(verification_key_step(**timing))
    steps.extend(
        [
            customer_step(person, attested=wf.identity_method == "attested", **timing),
            identity_verification_step(person, method=wf.identity_method, **timing),
            account_step(fiat, "fiat", **timing),
            book_transfer_step(f"Deposit {fiat} by book transfer", fiat, deposit, **timing),
            balance_check_step(
                f"Check {fiat} balance after deposit",
                fiat,
                fiat_account,
                delta=deposit,
                **timing,
            ),
        ]
    )
    if wf.fiat_withdrawal_amount is not None:
        withdrawal = to_subunits(wf.fiat_withdrawal_amount, fiat)
        steps.extend(
            [
                book_transfer_step(
                    f"Withdraw {fiat} by book transfer",
                    fiat,
                    withdrawal,
                    side="withdrawal",
                    **timing,
                ),
                balance_check_step(
                    f"Check {fiat} balance after withdrawal",
                    fiat,
                    fiat_account,
                    baseline_step=f"Check {fiat} balance after deposit",
                    delta=-withdrawal,
                    **timing,
                ),
            ]
        )
    return steps


def crypto_steps(config: LedgerflowConfig, asset: str) -> Tuple[WorkflowStep, ...]:
    """Buy ``asset`` and withdraw all of it to a new external wallet."""
    wf = config.workflow
    timing = dict(timeout=config.timeout, poll_interval=config.poll_interval)
    trading_account = account_step_name(asset, "trading")
    return (
        account_step(asset, "trading", **timing),
        external_wallet_step(asset, **timing),
        buy_trade_step(
            asset,
            wf.fiat_asset,
            to_subunits(wf.crypto_purchase_amount, wf.fiat_asset),
            **timing,
        ),
        balance_check_step(
            f"Check {asset} balance after trade", asset, trading_account, nonzero=True, **timing
        ),
        crypto_withdrawal_step(asset, **timing),
        balance_check_step(
            f"Check {asset} balance after withdrawal", asset, trading_account, **timing
        ),
    )


def build_workflow(
    config: LedgerflowConfig, person: Optional[Person] = None
) -> Workflow:
    """Build the workflow described by ``config``.

    The fiat onboarding steps run first; each configured crypto asset then
    gets its own group of steps.
    """
    person = person or sample_person()
    groups: Dict[str, Tuple[WorkflowStep, ...]] = {
        asset: crypto_steps(config, asset) for asset in config.workflow.crypto_assets
    }
    return Workflow(
        name=variant_name(config),
        steps=tuple(fiat_steps(config, person)),
        groups=groups,
    )
