"""Hedge analysis orchestration."""

import asyncio
import logging
from typing import List

from ..config import Settings
from ..models import (
    AnalyzeResponse, CompressionMetrics, EnrichedPortfolioItem,
    HedgeRecommendation, PolymarketEvent, PortfolioItem,
)
from .compression import CompressionService, build_context_for_analysis
from .llm import HedgeLLMService
from .polymarket import (
    PolymarketService, find_event_by_keywords, format_events_for_context,
    get_event_url, get_search_url,
)
from .stocks import StockDataService

logger = logging.getLogger(__name__)


def attach_market_urls(
    recommendations: List[HedgeRecommendation],
    events: List[PolymarketEvent],
) -> List[HedgeRecommendation]:
    """Link each recommendation to its matching event, or to a market search."""
    linked = []
    for rec in recommendations:
        matched = find_event_by_keywords(events, rec.market)
        url = get_event_url(matched.slug) if matched else get_search_url(rec.market)
        linked.append(rec.model_copy(update={"market_url": url}))
    return linked


class HedgeAnalysisService:
    """Orchestrates quotes, events, compression and the LLM into one analysis."""

    def __init__(
        self,
        settings: Settings,
        stock_service: StockDataService,
        polymarket_service: PolymarketService,
        compression_service: CompressionService,
        llm_service: HedgeLLMService,
    ):
        self.settings = settings
        self.stock_service = stock_service
        self.polymarket_service = polymarket_service
        self.compression_service = compression_service
        self.llm_service = llm_service

    async def analyze(self, portfolio: List[PortfolioItem]) -> AnalyzeResponse:
        tickers = [item.ticker.upper() for item in portfolio]
        logger.info(f"Analyzing portfolio of {len(tickers)} tickers")

        stock_data, events = await asyncio.gather(
            self.stock_service.get_stock_data(tickers),
            self.polymarket_service.fetch_active_events(self.settings.polymarket_event_limit),
        )
        quotes = {stock.ticker: stock for stock in stock_data}

        enriched = []
        for item in portfolio:
            ticker = item.ticker.upper()
            stock = quotes.get(ticker)
            enriched.append(EnrichedPortfolioItem(
                ticker=ticker,
                shares=item.shares,
                sector=stock.sector if stock else "Unknown",
                industry=stock.industry if stock else "Unknown",
            ))

        context = build_context_for_analysis(enriched, format_events_for_context(events))
        compression = await self.compression_service.compress(context)

        analysis = await self.llm_service.analyze(compression.compressed)

        return AnalyzeResponse(
            summary=analysis.summary,
            recommendations=attach_market_urls(analysis.recommendations, events),
            compression=CompressionMetrics(
                original_tokens=compression.original_tokens,
                compressed_tokens=compression.compressed_tokens,
                savings=compression.savings,
            ),
        )
