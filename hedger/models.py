"""Pydantic schemas shared by the services and the HTTP routers."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class BetSide(str, Enum):
    YES = "YES"
    NO = "NO"


class AccountType(str, Enum):
    INDIVIDUAL = "individual"
    JOINT = "joint"
    IRA = "ira"
    ROTH_IRA = "roth_ira"
    K401 = "401k"
    OTHER = "other"


class ConnectionStatus(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


# Brokerage holdings

class Position(BaseModel):
    """One brokerage account's reported stake in one ticker."""
    ticker: str
    units: float
    price: float = 0.0
    market_value: float = Field(default=0.0, alias="marketValue")
    currency: str = "USD"
    average_purchase_price: Optional[float] = Field(
        default=None, alias="averagePurchasePrice"
    )
    description: Optional[str] = None
    account_id: Optional[str] = Field(default=None, alias="accountId")
    percent_of_portfolio: Optional[float] = Field(
        default=None, alias="percentOfPortfolio"
    )

    class Config:
        populate_by_name = True


class ConsolidatedHolding(BaseModel):
    """A user's total stake in one ticker across all connected accounts."""
    ticker: str
    shares: float
    current_value: float = Field(alias="currentValue")
    average_price: Optional[float] = Field(default=None, alias="averagePrice")
    currency: str = "USD"

    class Config:
        populate_by_name = True


class HoldingsAggregate(BaseModel):
    """Consolidated holdings keyed by ticker plus the accounts that fed them."""
    holdings: Dict[str, ConsolidatedHolding] = Field(default_factory=dict)
    accounts: List[str] = Field(default_factory=list)


class BrokerageAccount(BaseModel):
    id: str
    name: str = ""
    number: str = ""
    type: AccountType = AccountType.OTHER
    currency: str = "USD"
    balance: float = 0.0
    holdings: List[Position] = Field(default_factory=list)


class Brokerage(BaseModel):
    id: str
    name: str
    slug: str
    logo_url: Optional[str] = Field(default=None, alias="logoUrl")
    supports_holdings: bool = Field(default=True, alias="supportsHoldings")
    supports_orders: bool = Field(default=False, alias="supportsOrders")

    class Config:
        populate_by_name = True


class BrokerageConnection(BaseModel):
    id: str
    broker_name: str = Field(alias="brokerName")
    broker_slug: str = Field(alias="brokerSlug")
    status: ConnectionStatus
    last_synced: Optional[datetime] = Field(default=None, alias="lastSynced")
    accounts: List[BrokerageAccount] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class SnapTradeUser(BaseModel):
    user_id: str = Field(alias="userId")
    user_secret: str = Field(alias="userSecret")
    created_at: datetime = Field(default_factory=datetime.now, alias="createdAt")

    class Config:
        populate_by_name = True


class ConnectionLink(BaseModel):
    redirect_url: str = Field(alias="redirectUrl")
    authorization_id: str = Field(alias="authorizationId")

    class Config:
        populate_by_name = True


class PortfolioHoldings(BaseModel):
    """Result of syncing every account a user has connected."""
    holdings: List[ConsolidatedHolding] = Field(default_factory=list)
    accounts: List[BrokerageAccount] = Field(default_factory=list)
    contributing_accounts: List[str] = Field(
        default_factory=list, alias="contributingAccounts"
    )

    class Config:
        populate_by_name = True


# Market data

class StockData(BaseModel):
    ticker: str
    name: str
    sector: str = "Unknown"
    industry: str = "Unknown"
    price: float = 0.0
    market_cap: float = Field(default=0.0, alias="marketCap")
    change: float = 0.0
    change_percent: float = Field(default=0.0, alias="changePercent")

    class Config:
        populate_by_name = True


class PortfolioExposure(BaseModel):
    sectors: Dict[str, int] = Field(default_factory=dict)
    industries: Dict[str, int] = Field(default_factory=dict)
    total_value: float = Field(default=0.0, alias="totalValue")

    class Config:
        populate_by_name = True


class PolymarketMarket(BaseModel):
    id: str = ""
    question: str = ""
    slug: str = ""
    outcome_prices: List[float] = Field(default_factory=list, alias="outcomePrices")
    volume: float = 0.0

    class Config:
        populate_by_name = True


class PolymarketEvent(BaseModel):
    id: str = ""
    title: str = ""
    slug: str = ""
    description: str = ""
    end_date: str = Field(default="", alias="endDate")
    volume: float = 0.0
    liquidity: float = 0.0
    active: bool = True
    closed: bool = False
    markets: List[PolymarketMarket] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class MarketListing(PolymarketMarket):
    """A market flattened out of its event, keeping a link back to it."""
    event_slug: str = Field(default="", alias="eventSlug")
    event_title: str = Field(default="", alias="eventTitle")


# Hedge analysis

class HedgeRecommendation(BaseModel):
    market: str
    market_url: str = Field(default="", alias="marketUrl")
    probability: float = 0.5
    position: BetSide = BetSide.YES
    reasoning: str = ""
    hedges_against: str = Field(default="", alias="hedgesAgainst")
    suggested_allocation: float = Field(default=100, alias="suggestedAllocation")

    class Config:
        populate_by_name = True


class AnalysisResult(BaseModel):
    summary: str
    recommendations: List[HedgeRecommendation] = Field(default_factory=list)
    model: Optional[str] = None


class CompressionResult(BaseModel):
    compressed: str
    original_tokens: int = Field(alias="originalTokens")
    compressed_tokens: int = Field(alias="compressedTokens")
    savings: float = 0.0

    class Config:
        populate_by_name = True


class CompressionMetrics(BaseModel):
    original_tokens: int = Field(alias="originalTokens")
    compressed_tokens: int = Field(alias="compressedTokens")
    savings: float = 0.0

    class Config:
        populate_by_name = True


class PortfolioItem(BaseModel):
    ticker: str
    shares: float = 0.0


class EnrichedPortfolioItem(PortfolioItem):
    sector: str = "Unknown"
    industry: str = "Unknown"


# Request / response schemas

class AnalyzeRequest(BaseModel):
    portfolio: Optional[List[PortfolioItem]] = None


class AnalyzeResponse(BaseModel):
    summary: str
    recommendations: List[HedgeRecommendation]
    compression: CompressionMetrics


class HoldingsRequest(BaseModel):
    user_id: str = Field(alias="userId")
    user_secret: str = Field(alias="userSecret")

    class Config:
        populate_by_name = True


class AggregateRequest(BaseModel):
    positions: List[Position] = Field(default_factory=list)
