"""FastAPI dependencies resolving the services built at startup."""

from fastapi import Request

from .config import Settings
from .services.analysis import HedgeAnalysisService
from .services.polymarket import PolymarketService
from .services.snaptrade import SnapTradeService
from .services.stocks import StockDataService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_stock_service(request: Request) -> StockDataService:
    return request.app.state.stock_service


def get_polymarket_service(request: Request) -> PolymarketService:
    return request.app.state.polymarket_service


def get_snaptrade_service(request: Request) -> SnapTradeService:
    return request.app.state.snaptrade_service


def get_analysis_service(request: Request) -> HedgeAnalysisService:
    return request.app.state.analysis_service
