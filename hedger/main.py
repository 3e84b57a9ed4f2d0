"""Main FastAPI application for portfolio hedge analysis."""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import Settings
from .routers import analysis, health, holdings
from .services.analysis import HedgeAnalysisService
from .services.compression import CompressionService
from .services.llm import HedgeLLMService
from .services.polymarket import PolymarketService
from .services.snaptrade import SnapTradeService
from .services.stocks import StockDataService

settings = Settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        *([logging.FileHandler(settings.log_file)] if settings.log_file else [])
    ]
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    # Startup
    logger.info("Starting Portfolio Hedge API")
    http_client = httpx.AsyncClient(timeout=settings.http_timeout)
    stock_service = StockDataService()
    polymarket_service = PolymarketService(settings, http_client)

    app.state.http_client = http_client
    app.state.stock_service = stock_service
    app.state.polymarket_service = polymarket_service
    app.state.snaptrade_service = SnapTradeService(settings, http_client)
    app.state.analysis_service = HedgeAnalysisService(
        settings,
        stock_service,
        polymarket_service,
        CompressionService(settings, http_client),
        HedgeLLMService(settings),
    )
    logger.info(f"Services initialized (models: {', '.join(settings.groq_models)})")

    yield

    # Shutdown
    logger.info("Shutting down Portfolio Hedge API")
    await http_client.aclose()


# Create FastAPI app
app = FastAPI(
    title="Portfolio Hedge API",
    description="Prediction-market hedge recommendations for stock portfolios",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)
app.state.settings = settings

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(analysis.router)
app.include_router(holdings.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Portfolio Hedge API",
        "version": __version__,
        "status": "operational",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "hedger.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
