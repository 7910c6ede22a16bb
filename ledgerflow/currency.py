"""Currency table and conversion between amounts and integer subunits."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Union

from pydantic import BaseModel, ConfigDict

Amount = Union[Decimal, int, str]


class Currency(BaseModel):
    """An asset and the size of its smallest indivisible unit."""

    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    subunit: str
    decimals: int

    @property
    def subunit_to_unit(self) -> int:
        return 10**self.decimals


CURRENCIES: Dict[str, Currency] = {
    c.code: c
    for c in (
        Currency(code="USD", name="United States Dollar", subunit="cent", decimals=2),
        Currency(code="BTC", name="Bitcoin", subunit="satoshi", decimals=8),
        Currency(code="ETH", name="Ether", subunit="wei", decimals=18),
        Currency(code="USDC", name="USD Coin", subunit="micro", decimals=6),
    )
}


def get_currency(code: str) -> Currency:
    """Look up a currency by its code, raising ``KeyError`` if unknown."""
    try:
        return CURRENCIES[code.upper()]
    except KeyError:
        raise KeyError(f"Unknown currency: {code}") from None


def register_currency(currency: Currency) -> None:
    CURRENCIES[currency.code.upper()] = currency


def to_subunits(amount: Amount, code: str) -> int:
    """Convert a whole-unit amount to integer subunits, rounding half up."""
    currency = get_currency(code)
    value = Decimal(str(amount)) * currency.subunit_to_unit
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_subunits(subunits: int, code: str) -> Decimal:
    currency = get_currency(code)
    return Decimal(int(subunits)) / currency.subunit_to_unit


def format_amount(subunits: int, code: str) -> str:
    """Render subunits with the currency's full precision, e.g. ``100.00000000``."""
    currency = get_currency(code)
    quantum = Decimal(1).scaleb(-currency.decimals)
    value = from_subunits(subunits, code).quantize(quantum)
    return f"{value:f} {currency.code}"
