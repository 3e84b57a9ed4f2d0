"""Hedge analysis, quote and prediction-market endpoints."""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..config import Settings
from ..dependencies import (
    get_analysis_service, get_polymarket_service, get_settings, get_stock_service,
)
from ..models import AnalyzeRequest, AnalyzeResponse
from ..services.analysis import HedgeAnalysisService
from ..services.llm import LLMUnavailableError
from ..services.polymarket import PolymarketService
from ..services.stocks import StockDataService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_portfolio(
    request: AnalyzeRequest,
    settings: Settings = Depends(get_settings),
    analysis_service: HedgeAnalysisService = Depends(get_analysis_service),
) -> AnalyzeResponse:
    """Recommend prediction-market hedges for a portfolio."""
    if not request.portfolio:
        raise HTTPException(status_code=400, detail="Portfolio is required")

    if not settings.groq_api_key:
        raise HTTPException(
            status_code=500,
            detail="Groq API key not configured. Add GROQ_API_KEY to .env",
        )

    try:
        return await analysis_service.analyze(request.portfolio)
    except LLMUnavailableError as e:
        logger.error(f"Analysis error: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/markets")
async def list_markets(
    limit: int = 100,
    polymarket_service: PolymarketService = Depends(get_polymarket_service),
) -> Dict[str, Any]:
    """List active prediction markets flattened out of their events."""
    markets = await polymarket_service.fetch_active_markets(limit)
    return {"markets": [m.model_dump(by_alias=True) for m in markets]}


@router.get("/stocks")
async def get_stocks(
    tickers: Optional[str] = None,
    stock_service: StockDataService = Depends(get_stock_service),
) -> Dict[str, Any]:
    """Quote data for a comma-separated list of tickers."""
    if not tickers:
        raise HTTPException(status_code=400, detail="Tickers parameter is required")

    symbols = [t.strip().upper() for t in tickers.split(",") if t.strip()]
    stocks = await stock_service.get_stock_data(symbols)
    return {"stocks": [s.model_dump(by_alias=True) for s in stocks]}
