"""Stock quote lookup through Yahoo Finance."""

import asyncio
import logging
from typing import Any, Dict, List

import yfinance as yf

from ..models import PortfolioExposure, StockData

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


class StockDataService:
    """Service for fetching quote and sector data for tickers."""

    @staticmethod
    def _fetch_info(ticker: str) -> Dict[str, Any]:
        return yf.Ticker(ticker).info or {}

    async def get_quote(self, ticker: str) -> StockData:
        """Fetch one quote; lookup failures yield a placeholder record."""
        symbol = ticker.upper()
        try:
            loop = asyncio.get_running_loop()
            info = await loop.run_in_executor(None, self._fetch_info, symbol)
        except Exception as e:
            logger.error(f"Error fetching data for {symbol}: {e}")
            return StockData(ticker=symbol, name=symbol)

        return StockData(
            ticker=symbol,
            name=info.get("shortName") or info.get("longName") or symbol,
            sector=info.get("sector") or UNKNOWN,
            industry=info.get("industry") or UNKNOWN,
            price=info.get("regularMarketPrice") or 0.0,
            market_cap=info.get("marketCap") or 0.0,
            change=info.get("regularMarketChange") or 0.0,
            change_percent=info.get("regularMarketChangePercent") or 0.0,
        )

    async def get_stock_data(self, tickers: List[str]) -> List[StockData]:
        """Fetch quotes for all tickers concurrently, preserving input order."""
        return list(await asyncio.gather(*[self.get_quote(t) for t in tickers]))


def analyze_portfolio_exposure(stocks: List[StockData]) -> PortfolioExposure:
    """Count sector and industry exposure across the quoted stocks."""
    exposure = PortfolioExposure()
    for stock in stocks:
        exposure.total_value += stock.price
        if stock.sector != UNKNOWN:
            exposure.sectors[stock.sector] = exposure.sectors.get(stock.sector, 0) + 1
        if stock.industry != UNKNOWN:
            exposure.industries[stock.industry] = exposure.industries.get(stock.industry, 0) + 1
    return exposure
