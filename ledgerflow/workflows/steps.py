"""Builders for the individual steps of the bank workflows.

Every builder returns a :class:`~ledgerflow.contracts.WorkflowStep`. Steps
find the resources created before them by step name, so builders that depend
on an earlier step take that step's name as an argument.
"""

from __future__ import annotations

import base64
import secrets
from typing import Any, Dict, Optional

from ..constants import (
    STATE_COMPLETED,
    STATE_CREATED,
    STATE_FAILED,
    STATE_SETTLING,
    STATE_UNVERIFIED,
    STATE_VERIFIED,
)
from ..contracts import (
    ResourceKind,
    ResourceSnapshot,
    RunContext,
    StepResults,
    WorkflowStep,
)
from ..currency import format_amount
from ..errors import ValidationError
from .people import Person

CUSTOMER_STEP = "Create customer"
IDENTITY_STEP = "Create identity verification"
VERIFICATION_KEY_STEP = "Verify verification key"


def account_step_name(asset: str, account_type: str) -> str:
    return f"Create {asset} {account_type} account"


def wallet_step_name(asset: str) -> str:
    return f"Create {asset} external wallet"


def balance_of(snapshot: ResourceSnapshot) -> int:
    """Return the platform balance of an account snapshot in subunits."""
    value = snapshot.attribute("platform_balance")
    if value is None:
        raise ValidationError(f"Account {snapshot.id} does not report a balance")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"Account {snapshot.id} has a non-integer balance: {value!r}"
        ) from None


def _require(results: StepResults, name: str) -> ResourceSnapshot:
    try:
        return results[name]
    except KeyError:
        raise ValidationError(f"Step {name!r} has not produced a resource") from None


# ----------------------------------------------------------------------
# Customers and identity


def verification_key_step(timeout: float, poll_interval: float) -> WorkflowStep:
    """Require a pre-provisioned verification key that is ready for use."""

    async def create(ctx: RunContext, results: StepResults) -> ResourceSnapshot:
        keys = await ctx.client.list(ResourceKind.VERIFICATION_KEY)
        if not keys:
            raise ValidationError("No verification key has been provisioned")
        ctx.logger.info(f"Found verification key {keys[0].id}.")
        return keys[0]

    return WorkflowStep(
        name=VERIFICATION_KEY_STEP,
        create=create,
        terminal_states={STATE_VERIFIED, STATE_FAILED},
        success_state=STATE_VERIFIED,
        timeout=timeout,
        poll_interval=poll_interval,
    )


def customer_step(
    person: Person, timeout: float, poll_interval: float, attested: bool = True
) -> WorkflowStep:
    """Create an individual customer.

    Attested workflows submit the person's details with the customer; other
    workflows create a bare customer and collect details during identity
    verification.
    """

    async def create(ctx: RunContext, results: StepResults) -> ResourceSnapshot:
        params: Dict[str, Any] = (
            person.customer_params() if attested else {"type": "individual"}
        )
        return await ctx.client.create(ResourceKind.CUSTOMER, params)

    return WorkflowStep(
        name=CUSTOMER_STEP,
        create=create,
        terminal_states={STATE_UNVERIFIED},
        success_state=STATE_UNVERIFIED,
        timeout=timeout,
        poll_interval=poll_interval,
    )


async def _check_verification_outcome(
    ctx: RunContext, snapshot: ResourceSnapshot, results: StepResults
) -> None:
    outcome = snapshot.attribute("outcome")
    if outcome not in (None, "passed"):
        raise ValidationError(
            f"Identity verification {snapshot.id} completed with outcome: {outcome}"
        )


def identity_verification_step(
    person: Person,
    timeout: float,
    poll_interval: float,
    method: str = "attested",
) -> WorkflowStep:
    async def create(ctx: RunContext, results: StepResults) -> ResourceSnapshot:
        customer = _require(results, CUSTOMER_STEP)
        if method == "attested":
            params = person.attested_verification_params(customer.id)
        else:
            params = {
                "type": "kyc",
                "method": method,
                "customer_guid": customer.id,
                "country_code": person.address.country_code,
                "expected_behaviours": ["passed_immediately"],
            }
        return await ctx.client.create(ResourceKind.IDENTITY_VERIFICATION, params)

    return WorkflowStep(
        name=IDENTITY_STEP,
        create=create,
        terminal_states={STATE_COMPLETED, STATE_FAILED},
        success_state=STATE_COMPLETED,
        check=_check_verification_outcome,
        timeout=timeout,
        poll_interval=poll_interval,
    )


# ----------------------------------------------------------------------
# Accounts and wallets


def account_step(
    asset: str, account_type: str, timeout: float, poll_interval: float
) -> WorkflowStep:
    async def create(ctx: RunContext, results: StepResults) -> ResourceSnapshot:
        customer = _require(results, CUSTOMER_STEP)
        params = {
            "type": account_type,
            "customer_guid": customer.id,
            "asset": asset,
            "name": f"{asset} account for {customer.id}",
        }
        return await ctx.client.create(ResourceKind.ACCOUNT, params)

    return WorkflowStep(
        name=account_step_name(asset, account_type),
        create=create,
        terminal_states={STATE_CREATED},
        success_state=STATE_CREATED,
        timeout=timeout,
        poll_interval=poll_interval,
    )


def external_wallet_step(asset: str, timeout: float, poll_interval: float) -> WorkflowStep:
    async def create(ctx: RunContext, results: StepResults) -> ResourceSnapshot:
        customer = _require(results, CUSTOMER_STEP)
        params = {
            "name": f"External wallet for {customer.id}",
            "asset": asset,
            "address": base64.b64encode(secrets.token_bytes(16)).decode(),
            "tag": base64.b64encode(secrets.token_bytes(16)).decode(),
            "customer_guid": customer.id,
        }
        return await ctx.client.create(ResourceKind.EXTERNAL_WALLET, params)

    return WorkflowStep(
        name=wallet_step_name(asset),
        create=create,
        terminal_states={STATE_COMPLETED, STATE_FAILED},
        success_state=STATE_COMPLETED,
        timeout=timeout,
        poll_interval=poll_interval,
    )


# ----------------------------------------------------------------------
# Quotes, transfers and trades


async def _create_quote(
    ctx: RunContext,
    customer: ResourceSnapshot,
    product_type: str,
    side: str,
    deliver_amount: Optional[int] = None,
    receive_amount: Optional[int] = None,
    symbol: Optional[str] = None,
    asset: Optional[str] = None,
) -> ResourceSnapshot:
    amount = deliver_amount if deliver_amount is not None else receive_amount
    ctx.logger.info(
        f"Creating {side} {product_type} quote for {symbol or asset} of {amount}..."
    )
    params: Dict[str, Any] = {
        "product_type": product_type,
        "customer_guid": customer.id,
        "side": side,
    }
    optional = {
        "symbol": symbol,
        "asset": asset,
        "deliver_amount": deliver_amount,
        "receive_amount": receive_amount,
    }
    params.update({k: v for k, v in optional.items() if v is not None})
    return await ctx.client.create(ResourceKind.QUOTE, params)


def book_transfer_step(
    name: str,
    asset: str,
    amount: int,
    timeout: float,
    poll_interval: float,
    side: str = "deposit",
) -> WorkflowStep:
    """Move ``amount`` subunits of ``asset`` into or out of the fiat account."""

    async def create(ctx: RunContext, results: StepResults) -> ResourceSnapshot:
        customer = _require(results, CUSTOMER_STEP)
        if side == "deposit":
            quote = await _create_quote(
                ctx, customer, "book_transfer", side, receive_amount=amount, asset=asset
            )
        else:
            quote = await _create_quote(
                ctx, customer, "book_transfer", side, deliver_amount=amount, asset=asset
            )
        return await ctx.client.create(
            ResourceKind.TRANSFER, {"quote_guid": quote.id, "transfer_type": "book"}
        )

    return WorkflowStep(
        name=name,
        create=create,
        terminal_states={STATE_COMPLETED, STATE_FAILED},
        success_state=STATE_COMPLETED,
        timeout=timeout,
        poll_interval=poll_interval,
    )


def buy_trade_step(
    asset: str,
    fiat_asset: str,
    deliver_amount: int,
    timeout: float,
    poll_interval: float,
) -> WorkflowStep:
    """Buy ``asset`` paying ``deliver_amount`` subunits of ``fiat_asset``."""

    async def create(ctx: RunContext, results: StepResults) -> ResourceSnapshot:
        customer = _require(results, CUSTOMER_STEP)
        quote = await _create_quote(
            ctx,
            customer,
            "trading",
            "buy",
            deliver_amount=deliver_amount,
            symbol=f"{asset}-{fiat_asset}",
        )
        return await ctx.client.create(ResourceKind.TRADE, {"quote_guid": quote.id})

    return WorkflowStep(
        name=f"Buy {asset}",
        create=create,
        terminal_states={STATE_SETTLING, STATE_COMPLETED, STATE_FAILED},
        success_state=STATE_SETTLING,
        timeout=timeout,
        poll_interval=poll_interval,
    )


def crypto_withdrawal_step(asset: str, timeout: float, poll_interval: float) -> WorkflowStep:
    """Withdraw the whole balance of the trading account to the external wallet."""

    async def create(ctx: RunContext, results: StepResults) -> ResourceSnapshot:
        customer = _require(results, CUSTOMER_STEP)
        account = await ctx.client.get(
            ResourceKind.ACCOUNT, _require(results, account_step_name(asset, "trading")).id
        )
        wallet = await ctx.client.get(
            ResourceKind.EXTERNAL_WALLET, _require(results, wallet_step_name(asset)).id
        )
        quote = await _create_quote(
            ctx,
            customer,
            "crypto_transfer",
            "withdrawal",
            deliver_amount=balance_of(account),
            asset=asset,
        )
        return await ctx.client.create(
            ResourceKind.TRANSFER,
            {
                "quote_guid": quote.id,
                "transfer_type": "crypto",
                "external_wallet_guid": wallet.id,
            },
        )

    return WorkflowStep(
        name=f"Withdraw {asset} to external wallet",
        create=create,
        terminal_states={STATE_COMPLETED, STATE_FAILED},
        success_state=STATE_COMPLETED,
        timeout=timeout,
        poll_interval=poll_interval,
    )


# ----------------------------------------------------------------------
# Balance checks


def balance_check_step(
    name: str,
    asset: str,
    account_step: str,
    timeout: float,
    poll_interval: float,
    baseline_step: Optional[str] = None,
    delta: int = 0,
    nonzero: bool = False,
) -> WorkflowStep:
    """Re-fetch an account and assert its balance.

    By default the balance must equal the balance of ``baseline_step`` (or of
    the account as first created) plus ``delta`` subunits, exactly. With
    ``nonzero`` it only has to be positive.
    """

    async def create(ctx: RunContext, results: StepResults) -> ResourceSnapshot:
        account = _require(results, account_step)
        return await ctx.client.get(ResourceKind.ACCOUNT, account.id)

    async def check(
        ctx: RunContext, snapshot: ResourceSnapshot, results: StepResults
    ) -> None:
        balance = balance_of(snapshot)
        shown = format_amount(balance, asset)
        if nonzero:
            if balance <= 0:
                raise ValidationError(
                    f"{asset} account has an unexpected balance: {shown}"
                )
        else:
            expected = balance_of(_require(results, baseline_step or account_step)) + delta
            if balance != expected:
                raise ValidationError(
                    f"{asset} account has an unexpected balance: {shown} "
                    f"(expected {format_amount(expected, asset)})"
                )
        ctx.logger.info(f"{asset} account has the expected balance: {shown}")

    return WorkflowStep(
        name=name,
        create=create,
        terminal_states={STATE_CREATED},
        success_state=STATE_CREATED,
        check=check,
        timeout=timeout,
        poll_interval=poll_interval,
    )
