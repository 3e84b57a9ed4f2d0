"""Consolidation of brokerage positions into one per-ticker portfolio view."""

import logging
import re
from typing import Dict, Iterable, List, Optional

from ..models import ConsolidatedHolding, HoldingsAggregate, Position

logger = logging.getLogger(__name__)

# Six digit expiry date followed by call/put flag and strike, e.g. 210917C00150000
OPTION_SYMBOL_PATTERN = re.compile(r"\d{6}[CP]\d+")


def is_equity_symbol(symbol: str) -> bool:
    """Check if a symbol is a standard equity (stock/ETF).

    Filters out options, futures, bonds and other complex instruments.
    Long symbols without a share-class period are treated as non-equities;
    that heuristic misclassifies some real tickers and is kept as-is.
    """
    if OPTION_SYMBOL_PATTERN.search(symbol):
        return False
    if " " in symbol:
        return False
    if len(symbol) > 5 and "." not in symbol:
        return False
    return True


def _weighted_average_price(
    existing: ConsolidatedHolding,
    units: float,
    incoming_avg: Optional[float],
    total_shares: float,
) -> Optional[float]:
    if existing.average_price is not None and incoming_avg is not None:
        if total_shares == 0:
            return existing.average_price
        return (
            existing.shares * existing.average_price + units * incoming_avg
        ) / total_shares
    if existing.average_price is not None:
        return existing.average_price
    return incoming_avg


def aggregate_holdings(positions: Iterable[Position]) -> HoldingsAggregate:
    """Aggregate positions by ticker, combining stakes held in multiple accounts.

    Positions are processed in input order. The first currency seen for a
    ticker is kept; mismatched currencies are not reconciled. Malformed
    input (zero or negative units) is accepted as reported.
    """
    holdings: Dict[str, ConsolidatedHolding] = {}
    accounts: List[str] = []
    skipped = 0

    for pos in positions:
        if not is_equity_symbol(pos.ticker):
            skipped += 1
            continue

        if pos.account_id and pos.account_id not in accounts:
            accounts.append(pos.account_id)

        existing = holdings.get(pos.ticker)
        if existing is None:
            holdings[pos.ticker] = ConsolidatedHolding(
                ticker=pos.ticker,
                shares=pos.units,
                current_value=pos.market_value,
                average_price=pos.average_purchase_price,
                currency=pos.currency,
            )
            continue

        total_shares = existing.shares + pos.units
        existing.average_price = _weighted_average_price(
            existing, pos.units, pos.average_purchase_price, total_shares
        )
        existing.shares = total_shares
        existing.current_value = existing.current_value + pos.market_value

        if pos.currency != existing.currency:
            logger.debug(
                f"Currency mismatch for {pos.ticker}: keeping {existing.currency}, "
                f"ignoring {pos.currency}"
            )

    if skipped:
        logger.debug(f"Skipped {skipped} non-equity positions")

    return HoldingsAggregate(holdings=holdings, accounts=accounts)


def consolidate_positions(positions: Iterable[Position]) -> List[ConsolidatedHolding]:
    """Aggregate positions and return the holdings as a list in first-seen order."""
    return list(aggregate_holdings(positions).holdings.values())
