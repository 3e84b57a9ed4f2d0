"""Tests for the equity filter and holdings aggregation."""

import itertools

import pytest

from hedger.models import Position
from hedger.services.holdings import (
    aggregate_holdings, consolidate_positions, is_equity_symbol,
)


@pytest.mark.parametrize("symbol", ["AAPL", "MSFT", "F", "GOOGL", "BRK.B", "RDS.A", "BF.BRKB"])
def test_equity_symbols_accepted(symbol):
    assert is_equity_symbol(symbol) is True


@pytest.mark.parametrize("symbol", [
    "AAPL210917C00150000",
    "AAPL 210917C00150000",
    "SPY240119P00450000",
    "BRK B",
    "ABCDEFG",
    "US912828",
])
def test_non_equity_symbols_rejected(symbol):
    assert is_equity_symbol(symbol) is False


def test_option_pattern_matches_anywhere_even_with_period():
    assert is_equity_symbol("X.240119C5") is False


def test_two_accounts_same_ticker_weighted_average():
    """10 MSFT @ 100 in one account and 10 @ 200 in another -> 20 @ 150."""
    positions = [
        Position(ticker="MSFT", units=10, market_value=4000, average_purchase_price=100, account_id="a"),
        Position(ticker="MSFT", units=10, market_value=4000, average_purchase_price=200, account_id="b"),
    ]

    result = aggregate_holdings(positions)

    holding = result.holdings["MSFT"]
    assert holding.shares == 20
    assert holding.current_value == 8000
    assert holding.average_price == pytest.approx(150)
    assert result.accounts == ["a", "b"]


def test_option_positions_excluded(sample_positions):
    result = aggregate_holdings(sample_positions)

    assert set(result.holdings) == {"MSFT", "AAPL"}
    assert "AAPL 210917C00150000" not in result.holdings
    # acc-b still contributed its MSFT equity position
    assert result.accounts == ["acc-a", "acc-b"]


def test_account_with_only_options_not_listed():
    positions = [
        Position(ticker="AAPL", units=1, market_value=200, account_id="a"),
        Position(ticker="AAPL 210917C00150000", units=1, market_value=3, account_id="b"),
    ]
    assert aggregate_holdings(positions).accounts == ["a"]


def test_fractional_units_summed():
    positions = [
        Position(ticker="VTI", units=1.25, market_value=300),
        Position(ticker="VTI", units=0.5, market_value=120),
        Position(ticker="VTI", units=2.125, market_value=510),
    ]

    holding = aggregate_holdings(positions).holdings["VTI"]

    assert holding.shares == pytest.approx(3.875)
    assert holding.current_value == pytest.approx(930)


def test_zero_share_merge_leaves_holding_unchanged():
    positions = [
        Position(ticker="MSFT", units=10, market_value=4000, average_purchase_price=100),
        Position(ticker="MSFT", units=0, market_value=0, average_purchase_price=300),
    ]

    holding = aggregate_holdings(positions).holdings["MSFT"]

    assert holding.shares == 10
    assert holding.current_value == 4000
    assert holding.average_price == 100


def test_zero_combined_shares_keeps_existing_average():
    positions = [
        Position(ticker="TSLA", units=5, market_value=1000, average_purchase_price=180),
        Position(ticker="TSLA", units=-5, market_value=-1000, average_purchase_price=220),
    ]

    holding = aggregate_holdings(positions).holdings["TSLA"]

    assert holding.shares == 0
    assert holding.current_value == 0
    assert holding.average_price == 180


def test_average_price_falls_back_to_known_value():
    only_incoming = aggregate_holdings([
        Position(ticker="NVDA", units=2, market_value=200),
        Position(ticker="NVDA", units=3, market_value=300, average_purchase_price=90),
    ]).holdings["NVDA"]
    only_existing = aggregate_holdings([
        Position(ticker="NVDA", units=2, market_value=200, average_purchase_price=80),
        Position(ticker="NVDA", units=3, market_value=300),
    ]).holdings["NVDA"]
    neither = aggregate_holdings([
        Position(ticker="NVDA", units=2, market_value=200),
        Position(ticker="NVDA", units=3, market_value=300),
    ]).holdings["NVDA"]

    assert only_incoming.average_price == 90
    assert only_existing.average_price == 80
    assert neither.average_price is None


def test_zero_average_price_counts_as_known():
    holding = aggregate_holdings([
        Position(ticker="GME", units=10, market_value=200, average_purchase_price=0),
        Position(ticker="GME", units=10, market_value=200, average_purchase_price=20),
    ]).holdings["GME"]

    assert holding.average_price == pytest.approx(10)


def test_first_seen_currency_retained():
    holding = aggregate_holdings([
        Position(ticker="SHOP", units=1, market_value=100, currency="CAD"),
        Position(ticker="SHOP", units=1, market_value=80, currency="USD"),
    ]).holdings["SHOP"]

    assert holding.currency == "CAD"


def test_negative_units_accepted_without_error():
    holding = aggregate_holdings([
        Position(ticker="AMC", units=-3, market_value=-15, average_purchase_price=5),
    ]).holdings["AMC"]

    assert holding.shares == -3
    assert holding.average_price == 5


def test_empty_input():
    result = aggregate_holdings([])
    assert result.holdings == {}
    assert result.accounts == []


def test_totals_independent_of_order(sample_positions):
    baseline = aggregate_holdings(sample_positions).holdings

    for permutation in itertools.permutations(sample_positions):
        holdings = aggregate_holdings(permutation).holdings
        assert set(holdings) == set(baseline)
        for ticker, holding in holdings.items():
            assert holding.shares == pytest.approx(baseline[ticker].shares)
            assert holding.current_value == pytest.approx(baseline[ticker].current_value)
            assert holding.average_price == pytest.approx(baseline[ticker].average_price)


def test_consolidated_shares_equal_sum_of_equity_units(sample_positions):
    holdings = aggregate_holdings(sample_positions).holdings

    for ticker, holding in holdings.items():
        expected = sum(p.units for p in sample_positions if p.ticker == ticker)
        assert holding.shares == pytest.approx(expected)


def test_input_positions_not_mutated(sample_positions):
    before = [p.model_copy() for p in sample_positions]
    aggregate_holdings(sample_positions)
    assert sample_positions == before


def test_consolidate_positions_returns_first_seen_order(sample_positions):
    tickers = [h.ticker for h in consolidate_positions(sample_positions)]
    assert tickers == ["MSFT", "AAPL"]


def test_camel_case_contract():
    position = Position.model_validate({
        "ticker": "MSFT", "units": 2, "price": 400, "marketValue": 800,
        "currency": "USD", "averagePurchasePrice": 350,
    })
    holding = aggregate_holdings([position]).holdings["MSFT"]

    assert holding.model_dump(by_alias=True) == {
        "ticker": "MSFT",
        "shares": 2,
        "currentValue": 800,
        "averagePrice": 350,
        "currency": "USD",
    }
