"""Tests for currency conversion."""

from decimal import Decimal

import pytest

from ledgerflow.currency import Currency, format_amount, from_subunits, get_currency, register_currency, to_subunits


def test_bitcoin_from_amount():
    assert to_subunits(100, "BTC") == 100 * 10**8


def test_bitcoin_from_satoshis():
    assert from_subunits(100 * 10**8, "BTC") == Decimal(100)


def test_amount_and_subunits_compare_equal():
    assert from_subunits(to_subunits("100", "BTC"), "BTC") == Decimal("100")


def test_bitcoin_formatted_as_string():
    assert format_amount(to_subunits(100, "BTC"), "BTC") == "100.00000000 BTC"


def test_usd_rounds_half_up():
    assert to_subunits(Decimal("10.005"), "USD") == 1001
    assert to_subunits("1000", "USD") == 100000


def test_small_amounts_are_exact():
    assert to_subunits("0.1", "USD") + to_subunits("0.2", "USD") == to_subunits("0.3", "USD")


def test_unknown_currency():
    with pytest.raises(KeyError):
        to_subunits(1, "DOGE")


def test_register_currency():
    register_currency(Currency(code="SOL", name="Solana", subunit="lamport", decimals=9))
    assert get_currency("sol").subunit_to_unit == 10**9
