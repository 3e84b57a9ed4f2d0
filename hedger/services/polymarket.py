"""Polymarket Gamma API integration."""

import json
import logging
import re
from typing import Any, List, Optional
from urllib.parse import quote

import httpx

from ..config import Settings
from ..models import MarketListing, PolymarketEvent, PolymarketMarket

logger = logging.getLogger(__name__)

POLYMARKET_SITE = "https://polymarket.com"


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_outcome_prices(prices: Any) -> List[float]:
    """Outcome prices arrive either as a list or as a JSON-encoded string."""
    if not prices:
        return []
    if isinstance(prices, str):
        try:
            prices = json.loads(prices)
        except json.JSONDecodeError:
            return []
    if not isinstance(prices, list):
        return []
    return [_to_float(p) for p in prices]


def parse_markets(markets: Any) -> List[PolymarketMarket]:
    if not isinstance(markets, list):
        return []
    return [
        PolymarketMarket(
            id=str(m.get("id") or ""),
            question=str(m.get("question") or ""),
            slug=str(m.get("slug") or ""),
            outcome_prices=parse_outcome_prices(m.get("outcomePrices")),
            volume=_to_float(m.get("volume")),
        )
        for m in markets
        if isinstance(m, dict)
    ]


def parse_event(event: dict) -> PolymarketEvent:
    return PolymarketEvent(
        id=str(event.get("id") or ""),
        title=event.get("title") or "",
        slug=event.get("slug") or "",
        description=event.get("description") or "",
        end_date=event.get("endDate") or "",
        volume=_to_float(event.get("volume")),
        liquidity=_to_float(event.get("liquidity")),
        active=event.get("active") is not False,
        closed=event.get("closed") is True,
        markets=parse_markets(event.get("markets")),
    )


def get_event_url(slug: str) -> str:
    """Direct link to a specific event."""
    return f"{POLYMARKET_SITE}/event/{slug}"


def get_search_url(text: str) -> str:
    """Fallback link that searches markets for the first words of the text."""
    return f"{POLYMARKET_SITE}/markets?_q={quote(text[:30], safe='')}"


def format_events_for_context(events: List[PolymarketEvent]) -> str:
    """Render events as prompt lines; the slug lets the model reference them."""
    lines = []
    for event in events:
        if not event.title or not event.slug:
            continue
        prob = None
        if event.markets and event.markets[0].outcome_prices:
            prob = event.markets[0].outcome_prices[0]
        prob_str = f" ({round(prob * 100)}% YES)" if prob else ""
        lines.append(f'- "{event.title}"{prob_str} [slug: {event.slug}]')
    return "\n".join(lines)


def find_event_by_keywords(events: List[PolymarketEvent], keywords: str) -> Optional[PolymarketEvent]:
    """Pick the event whose title shares the most keywords with the text."""
    keyword_list = [k for k in re.split(r"\s+", keywords.lower()) if len(k) > 2]

    best_match = None
    best_score = 0
    for event in events:
        title = event.title.lower()
        score = sum(1 for keyword in keyword_list if keyword in title)
        if score > best_score:
            best_score = score
            best_match = event

    return best_match if best_score >= 1 else None


class PolymarketService:
    """Service for reading active prediction-market events."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self.settings = settings
        self.http_client = http_client

    async def fetch_active_events(self, limit: int = 50) -> List[PolymarketEvent]:
        """Fetch open events; failures are logged and yield an empty list."""
        try:
            response = await self.http_client.get(
                f"{self.settings.polymarket_base_url}/events",
                params={"closed": "false", "limit": limit, "active": "true"},
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error fetching Polymarket events: {e}")
            return []

        if not isinstance(data, list):
            logger.error(f"Unexpected Polymarket events payload: {type(data).__name__}")
            return []

        events = [parse_event(e) for e in data if isinstance(e, dict)]
        logger.info(f"Fetched {len(events)} active Polymarket events")
        return events

    async def fetch_active_markets(self, limit: int = 100) -> List[MarketListing]:
        """Flatten events into markets tagged with their parent event."""
        events = await self.fetch_active_events(limit)
        return [
            MarketListing(
                **market.model_dump(),
                event_slug=event.slug,
                event_title=event.title,
            )
            for event in events
            for market in event.markets
        ]
