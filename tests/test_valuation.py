"""Tests for native value estimation and the SOL price oracle."""

import pytest
from conftest import COUNTERPARTY, WALLET, FakePriceClient, make_tx, native_transfer

from wallet_insights.models.transactions import WSOL_MINT
from wallet_insights.pipeline.cache import TTLCache
from wallet_insights.pipeline.valuation import SolPriceOracle, estimate_native_value, estimate_quote_value
from wallet_insights.services.errors import ProviderError


def test_prefers_swap_event_native_legs():
    tx = make_tx(
        native_transfers=[native_transfer(WALLET, COUNTERPARTY, 9_000_000_000)],
        swap={
            "nativeInput": {"account": WALLET, "amount": "1500000000"},
            "nativeOutput": {"account": WALLET, "amount": "200000000"},
        }
    )

    assert estimate_native_value(tx) == pytest.approx(1.5)


def test_falls_back_to_wrapped_sol_legs():
    tx = make_tx(swap={
        "tokenInputs": [{"mint": WSOL_MINT, "rawTokenAmount": {"tokenAmount": "750000000", "decimals": 9}}],
        "tokenOutputs": [{"mint": "SomeMint", "amount": "10"}],
    })

    assert estimate_native_value(tx) == pytest.approx(0.75)


def test_falls_back_to_largest_non_dust_transfer():
    tx = make_tx(native_transfers=[
        native_transfer(WALLET, COUNTERPARTY, 300_000_000),
        native_transfer(COUNTERPARTY, WALLET, 700_000_000),
        native_transfer(WALLET, COUNTERPARTY, 5000),
    ])

    assert estimate_native_value(tx) == pytest.approx(0.7)


def test_only_dust_gives_zero():
    tx = make_tx(native_transfers=[native_transfer(WALLET, COUNTERPARTY, 999_999)])

    assert estimate_native_value(tx) == 0.0


def test_estimate_quote_value():
    assert estimate_quote_value(2.0, 150.0) == pytest.approx(300.0)


def test_oracle_caches_price(clock):
    client = FakePriceClient([150.0, 160.0])
    oracle = SolPriceOracle(client, cache=TTLCache(60, clock=clock))

    assert oracle.get_price() == 150.0
    clock.advance(30)
    assert oracle.get_price() == 150.0
    assert client.calls == 1

    clock.advance(31)
    assert oracle.get_price() == 160.0


def test_oracle_serves_last_price_on_failure(clock):
    client = FakePriceClient([150.0, ProviderError("down")])
    oracle = SolPriceOracle(client, cache=TTLCache(60, clock=clock))

    oracle.get_price()
    clock.advance(61)

    assert oracle.get_price() == 150.0


def test_oracle_uses_default_without_any_price(clock):
    client = FakePriceClient([ProviderError("down")])
    oracle = SolPriceOracle(client, default_price=170.0, cache=TTLCache(60, clock=clock))

    assert oracle.get_price() == 170.0
