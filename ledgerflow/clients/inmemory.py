"""In-memory ledger client for testing and dry runs."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..constants import (
    STATE_COMPLETED,
    STATE_CREATED,
    STATE_PENDING,
    STATE_SETTLING,
    STATE_STORING,
    STATE_UNVERIFIED,
    STATE_VERIFIED,
    STATE_WAITING,
)
from ..contracts import ResourceKind, ResourceSnapshot
from ..currency import from_subunits, to_subunits
from ..errors import TransportError
from .base import BaseResourceClient

DEFAULT_PROGRESSIONS: Dict[ResourceKind, Tuple[str, ...]] = {
    ResourceKind.CUSTOMER: (STATE_STORING, STATE_UNVERIFIED),
    ResourceKind.ACCOUNT: (STATE_STORING, STATE_CREATED),
    ResourceKind.IDENTITY_VERIFICATION: (STATE_STORING, STATE_WAITING, STATE_COMPLETED),
    ResourceKind.QUOTE: (STATE_CREATED,),
    ResourceKind.TRADE: (STATE_STORING, STATE_PENDING, STATE_SETTLING),
    ResourceKind.TRANSFER: (STATE_STORING, STATE_PENDING, STATE_COMPLETED),
    ResourceKind.EXTERNAL_WALLET: (STATE_STORING, STATE_COMPLETED),
    ResourceKind.VERIFICATION_KEY: (STATE_VERIFIED,),
}

# Settlement happens once, when a trade or transfer reaches one of these.
_SETTLED_STATES = {STATE_SETTLING, STATE_COMPLETED}

DEFAULT_PRICES: Dict[str, Decimal] = {
    "BTC": Decimal("25000"),
    "ETH": Decimal("2000"),
    "USDC": Decimal("1"),
}


class _Record:
    __slots__ = ("kind", "body", "progression", "position", "settled")

    def __init__(self, kind: ResourceKind, body: Dict[str, Any], progression: Sequence[str]):
        self.kind = kind
        self.body = body
        self.progression = tuple(progression)
        self.position = 0
        self.settled = False

    @property
    def state(self) -> str:
        return self.progression[self.position]

    def advance(self) -> None:
        if self.position < len(self.progression) - 1:
            self.position += 1
        self.body["state"] = self.state

    def snapshot(self) -> ResourceSnapshot:
        return ResourceSnapshot(
            id=self.body["guid"], kind=self.kind, state=self.state, attributes=dict(self.body)
        )


class InMemoryResourceClient(BaseResourceClient):
    """Sandbox ledger kept in local memory.

    Each ``get`` moves a resource one state further along the progression for
    its kind. Trades and transfers move account balances, in integer
    subunits, the first time they settle. Data is not persisted across
    process restarts.

    Args:
        progressions: Per-kind state sequences overriding the defaults. A
            sequence without a terminal state never converges.
        outcomes: Per-kind final state replacing the last state of the
            progression, e.g. ``{IDENTITY_VERIFICATION: "failed"}``.
        prices: Price of one unit of each crypto asset in the fiat asset.
        fail_create: Kinds whose creation is rejected with a 422.
    """

    def __init__(
        self,
        progressions: Optional[Mapping[ResourceKind, Sequence[str]]] = None,
        outcomes: Optional[Mapping[ResourceKind, str]] = None,
        prices: Optional[Mapping[str, Decimal]] = None,
        fail_create: Iterable[ResourceKind] = (),
    ) -> None:
        self._progressions: Dict[ResourceKind, Tuple[str, ...]] = dict(DEFAULT_PROGRESSIONS)
        for kind, states in (progressions or {}).items():
            self._progressions[kind] = tuple(states)
        for kind, final in (outcomes or {}).items():
            self._progressions[kind] = self._progressions[kind][:-1] + (final,)
        self._prices = dict(DEFAULT_PRICES if prices is None else prices)
        self._fail_create = set(fail_create)
        self._records: Dict[str, _Record] = {}
        self.calls: List[Tuple[str, ResourceKind, Optional[str]]] = []

    # ------------------------------------------------------------------
    # Sandbox helpers
    def add_verification_key(self, state: str = STATE_VERIFIED) -> ResourceSnapshot:
        """Pre-provision a verification key for the bank."""
        record = self._store(
            ResourceKind.VERIFICATION_KEY,
            {"type": "attestation", "algorithm": "RS512"},
            (state,),
        )
        return record.snapshot()

    def calls_for(self, action: str, kind: ResourceKind) -> int:
        return sum(1 for a, k, _ in self.calls if a == action and k == kind)

    def _store(self, kind: ResourceKind, params: Dict[str, Any], progression: Sequence[str]) -> _Record:
        guid = uuid.uuid4().hex
        body = dict(params)
        body.update(
            guid=guid,
            state=progression[0],
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        record = _Record(kind, body, progression)
        self._records[guid] = record
        return record

    def _find_account(self, customer_guid: str, asset: str, account_type: str) -> Optional[_Record]:
        for record in self._records.values():
            body = record.body
            if (
                record.kind == ResourceKind.ACCOUNT
                and body.get("customer_guid") == customer_guid
                and body.get("asset") == asset
                and body.get("type") == account_type
            ):
                return record
        return None

    def _credit(self, customer_guid: str, asset: str, account_type: str, amount: int) -> None:
        account = self._find_account(customer_guid, asset, account_type)
        if account is None:
            return
        account.body["platform_balance"] += amount
        account.body["platform_available"] += amount

    # ------------------------------------------------------------------
    # Resource-specific bodies
    def _price_quote(self, params: Dict[str, Any]) -> Dict[str, Any]:
        body = dict(params)
        product_type = body.get("product_type")
        if product_type == "trading":
            base, counter = body["symbol"].split("-")
            price = self._prices[base]
            if body.get("deliver_amount") is not None:
                spend = from_subunits(body["deliver_amount"], counter)
                body["receive_amount"] = to_subunits(spend / price, base)
            else:
                units = from_subunits(body["receive_amount"], base)
                body["deliver_amount"] = to_subunits(units * price, counter)
        else:
            amount = body.get("receive_amount")
            if amount is None:
                amount = body.get("deliver_amount")
            body["receive_amount"] = body["deliver_amount"] = amount
        body["fee"] = 0
        return body

    def _settle(self, record: _Record) -> None:
        quote = self._records[record.body["quote_guid"]].body
        customer = quote["customer_guid"]
        if record.kind == ResourceKind.TRADE:
            base = quote["symbol"].split("-")[0]
            sign = 1 if quote["side"] == "buy" else -1
            self._credit(customer, base, "trading", sign * quote["receive_amount"])
        elif quote["product_type"] == "book_transfer":
            sign = 1 if quote["side"] == "deposit" else -1
            self._credit(customer, quote["asset"], "fiat", sign * quote["receive_amount"])
        elif quote["product_type"] == "crypto_transfer":
            sign = 1 if quote["side"] == "deposit" else -1
            self._credit(customer, quote["asset"], "trading", sign * quote["deliver_amount"])
        record.settled = True

    # ------------------------------------------------------------------
    # Client API
    async def create(
        self, kind: ResourceKind, params: Dict[str, Any]
    ) -> ResourceSnapshot:
        self.calls.append(("create", kind, None))
        if kind in self._fail_create:
            raise TransportError(f"Unable to create {kind.label}", status=422)

        if kind == ResourceKind.QUOTE:
            params = self._price_quote(params)
        elif kind == ResourceKind.ACCOUNT:
            params = dict(params, platform_balance=0, platform_available=0)
        elif kind in (ResourceKind.TRADE, ResourceKind.TRANSFER):
            if params.get("quote_guid") not in self._records:
                raise TransportError("Quote not found", status=422)

        record = self._store(kind, params, self._progressions[kind])
        return record.snapshot()

    async def get(self, kind: ResourceKind, resource_id: str) -> ResourceSnapshot:
        self.calls.append(("get", kind, resource_id))
        record = self._records.get(resource_id)
        if record is None or record.kind != kind:
            raise TransportError(f"{kind.label.capitalize()} not found", status=404)
        record.advance()
        if (
            kind in (ResourceKind.TRADE, ResourceKind.TRANSFER)
            and record.state in _SETTLED_STATES
            and not record.settled
        ):
            self._settle(record)
        return record.snapshot()

    async def list(self, kind: ResourceKind) -> List[ResourceSnapshot]:
        self.calls.append(("list", kind, None))
        return [r.snapshot() for r in self._records.values() if r.kind == kind]
