"""Tests for the hedge analysis orchestrator."""

import json

import httpx
import pytest

from hedger.models import HedgeRecommendation, PolymarketEvent, PortfolioItem, StockData
from hedger.services.analysis import HedgeAnalysisService, attach_market_urls
from hedger.services.compression import CompressionService
from hedger.services.llm import HedgeLLMService
from hedger.services.polymarket import PolymarketService

EVENTS = [
    {"id": "1", "title": "Fed rate cut in March?", "slug": "fed-march",
     "markets": [{"id": "11", "question": "Cut?", "outcomePrices": "[\"0.4\", \"0.6\"]"}]},
]

LLM_RESPONSE = json.dumps({
    "summary": "Rate sensitive tech portfolio.",
    "recommendations": [
        {"market": "Fed rate cut in March?", "position": "YES", "probability": 0.4},
        {"market": "Apple market cap above 4T by year end", "position": "NO"},
    ],
})


class FakeStockService:
    def __init__(self):
        self.requested = None

    async def get_stock_data(self, tickers):
        self.requested = tickers
        return [
            StockData(ticker="AAPL", name="Apple", sector="Technology", industry="Hardware"),
        ]


def test_attach_market_urls():
    events = [PolymarketEvent(title="Fed rate cut in March?", slug="fed-march")]
    recs = [
        HedgeRecommendation(market="Will the Fed cut in March"),
        HedgeRecommendation(market="Oil"),
    ]

    linked = attach_market_urls(recs, events)

    assert linked[0].market_url == "https://polymarket.com/event/fed-march"
    assert linked[1].market_url == "https://polymarket.com/markets?_q=Oil"
    assert recs[0].market_url == ""


@pytest.mark.asyncio
async def test_analyze_end_to_end(settings, http_client_factory, llm_client_factory):
    llm_client = llm_client_factory({"model-a": LLM_RESPONSE})
    stock_service = FakeStockService()

    async with http_client_factory(lambda r: httpx.Response(200, json=EVENTS)) as http_client:
        service = HedgeAnalysisService(
            settings,
            stock_service,
            PolymarketService(settings, http_client),
            CompressionService(settings, http_client),
            HedgeLLMService(settings, client=llm_client),
        )
        response = await service.analyze([
            PortfolioItem(ticker="aapl", shares=10),
            PortfolioItem(ticker="tsla", shares=3),
        ])

    assert stock_service.requested == ["AAPL", "TSLA"]
    assert response.summary == "Rate sensitive tech portfolio."
    assert response.recommendations[0].market_url == "https://polymarket.com/event/fed-march"
    assert response.recommendations[1].market_url.startswith("https://polymarket.com/markets?_q=")
    assert response.compression.savings == 0
    assert response.compression.original_tokens == response.compression.compressed_tokens
    assert response.compression.original_tokens > 0
