"""Brokerage holdings endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_snaptrade_service
from ..models import AggregateRequest, HoldingsAggregate, HoldingsRequest, PortfolioHoldings
from ..services.holdings import aggregate_holdings
from ..services.snaptrade import (
    BROKER_UNAVAILABLE, INVALID_CREDENTIALS, RATE_LIMITED, SnapTradeError, SnapTradeService,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/holdings", tags=["holdings"])

ERROR_STATUS = {
    INVALID_CREDENTIALS: 401,
    RATE_LIMITED: 429,
    BROKER_UNAVAILABLE: 503,
}


@router.post("", response_model=PortfolioHoldings)
async def sync_holdings(
    request: HoldingsRequest,
    snaptrade_service: SnapTradeService = Depends(get_snaptrade_service),
) -> PortfolioHoldings:
    """Consolidated holdings across every brokerage account the user connected."""
    try:
        return await snaptrade_service.get_all_holdings(request.user_id, request.user_secret)
    except SnapTradeError as e:
        logger.error(f"Holdings sync failed ({e.code}): {e.message}")
        raise HTTPException(status_code=ERROR_STATUS.get(e.code, 502), detail=e.message)


@router.post("/aggregate", response_model=HoldingsAggregate)
async def aggregate_positions(request: AggregateRequest) -> HoldingsAggregate:
    """Consolidate caller-supplied positions by ticker."""
    return aggregate_holdings(request.positions)
