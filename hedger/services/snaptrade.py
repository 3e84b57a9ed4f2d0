"""SnapTrade brokerage aggregation API integration."""

import asyncio
import base64
import hashlib
import hmac
import json
import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from ..config import Settings
from ..models import (
    AccountType, Brokerage, BrokerageAccount, BrokerageConnection,
    ConnectionLink, ConnectionStatus, PortfolioHoldings, Position, SnapTradeUser,
)
from .holdings import aggregate_holdings

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
RATE_LIMITED = "RATE_LIMITED"
BROKER_UNAVAILABLE = "BROKER_UNAVAILABLE"
UNKNOWN_ERROR = "UNKNOWN_ERROR"

ACCOUNT_TYPES = {
    "individual": AccountType.INDIVIDUAL,
    "joint": AccountType.JOINT,
    "ira": AccountType.IRA,
    "roth_ira": AccountType.ROTH_IRA,
    "roth ira": AccountType.ROTH_IRA,
    "401k": AccountType.K401,
    "401(k)": AccountType.K401,
}


class SnapTradeError(Exception):
    """Error raised for failed SnapTrade requests."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}


def generate_signature(consumer_key: str, request_path: str, timestamp: str, content: str = "") -> str:
    """HMAC-SHA256 request signature, base64 encoded."""
    digest = hmac.new(
        consumer_key.encode(),
        f"{request_path}{timestamp}{content}".encode(),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode()


def map_status_to_error_code(status: int) -> str:
    if status in (401, 403):
        return INVALID_CREDENTIALS
    if status == 429:
        return RATE_LIMITED
    if status == 503:
        return BROKER_UNAVAILABLE
    return UNKNOWN_ERROR


def map_account_type(raw_type: Optional[str]) -> AccountType:
    return ACCOUNT_TYPES.get((raw_type or "").lower(), AccountType.OTHER)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp; unreadable values become None."""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.warning(f"Unreadable sync timestamp: {value!r}")
        return None


class SnapTradeService:
    """Service for reading brokerage accounts and holdings through SnapTrade."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self.settings = settings
        self.http_client = http_client

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
        user_secret: Optional[str] = None,
    ) -> Any:
        """Make an authenticated request to the SnapTrade API."""
        if not self.settings.snaptrade_configured:
            raise SnapTradeError(
                INVALID_CREDENTIALS,
                "SnapTrade credentials not configured. Set SNAPTRADE_CLIENT_ID "
                "and SNAPTRADE_CONSUMER_KEY environment variables.",
            )

        timestamp = str(int(time.time()))
        body_str = json.dumps(body) if body else ""
        headers = {
            "Content-Type": "application/json",
            "Timestamp": timestamp,
            "clientId": self.settings.snaptrade_client_id,
            "Signature": generate_signature(
                self.settings.snaptrade_consumer_key, path, timestamp, body_str
            ),
        }
        if user_id and user_secret:
            headers["userId"] = user_id
            headers["userSecret"] = user_secret

        try:
            response = await self.http_client.request(
                method,
                f"{self.settings.snaptrade_base_url}{path}",
                headers=headers,
                content=body_str or None,
            )
        except httpx.HTTPError as e:
            raise SnapTradeError(
                UNKNOWN_ERROR, f"Failed to communicate with SnapTrade: {e}"
            ) from e

        if response.is_error:
            try:
                error_data = response.json()
            except ValueError:
                error_data = {}
            if not isinstance(error_data, dict):
                error_data = {}
            raise SnapTradeError(
                map_status_to_error_code(response.status_code),
                error_data.get("message") or f"SnapTrade API error: {response.status_code}",
                error_data,
            )

        if not response.content:
            return None
        return response.json()

    # User management

    async def register_user(self, external_user_id: str) -> SnapTradeUser:
        """Register a user; the returned secret authorises all later calls."""
        data = await self._request(
            "POST", "/snapTrade/registerUser", {"userId": external_user_id}
        )
        return SnapTradeUser(user_id=data["userId"], user_secret=data["userSecret"])

    async def delete_user(self, user_id: str, user_secret: str) -> None:
        await self._request("DELETE", "/snapTrade/deleteUser", None, user_id, user_secret)

    # Brokerage connection

    async def get_supported_brokerages(self) -> List[Brokerage]:
        data = await self._request("GET", "/brokerages") or []
        brokerages = []
        for item in data:
            features = item.get("features")
            brokerages.append(Brokerage(
                id=item["id"],
                name=item["name"],
                slug=item["slug"],
                logo_url=item.get("logo"),
                supports_holdings="holdings" in features if features is not None else True,
                supports_orders="orders" in features if features is not None else False,
            ))
        return brokerages

    async def get_connection_link(
        self,
        user_id: str,
        user_secret: str,
        brokerage_id: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        connection_type: str = "read",
    ) -> ConnectionLink:
        """Generate the URL a user follows to connect a brokerage."""
        body = {
            "broker": brokerage_id,
            "immediateRedirect": True,
            "customRedirect": redirect_uri,
            "connectionType": connection_type,
        }
        body = {key: value for key, value in body.items() if value is not None}
        data = await self._request("POST", "/snapTrade/login", body, user_id, user_secret)
        return ConnectionLink(
            redirect_url=data["redirectURI"], authorization_id=data["sessionId"]
        )

    async def get_user_connections(self, user_id: str, user_secret: str) -> List[BrokerageConnection]:
        data = await self._request("GET", "/authorizations", None, user_id, user_secret) or []
        connections = []
        for conn in data:
            last_synced = (conn.get("meta") or {}).get("last_synced")
            connections.append(BrokerageConnection(
                id=conn["id"],
                broker_name=conn["brokerage"]["name"],
                broker_slug=conn["brokerage"]["slug"],
                status=ConnectionStatus.DISCONNECTED if conn.get("disabled") else ConnectionStatus.CONNECTED,
                last_synced=_parse_timestamp(last_synced),
            ))
        return connections

    async def disconnect_brokerage(self, user_id: str, user_secret: str, authorization_id: str) -> None:
        await self._request(
            "DELETE", f"/authorizations/{authorization_id}", None, user_id, user_secret
        )

    # Accounts and holdings

    async def get_accounts(self, user_id: str, user_secret: str) -> List[BrokerageAccount]:
        """Get all accounts for a user across every connected brokerage."""
        data = await self._request("GET", "/accounts", None, user_id, user_secret) or []
        return [
            BrokerageAccount(
                id=acc["id"],
                name=acc.get("name") or "",
                number=acc.get("number") or "",
                type=map_account_type((acc.get("meta") or {}).get("type")),
                currency=(acc.get("currency") or {}).get("code") or "USD",
                balance=acc.get("cash") or 0.0,
            )
            for acc in data
        ]

    async def get_account_holdings(self, user_id: str, user_secret: str, account_id: str) -> List[Position]:
        """Get positions for a single account."""
        data = await self._request(
            "GET", f"/accounts/{account_id}/holdings", None, user_id, user_secret
        ) or {}
        total_value = data.get("total_value") or 1

        positions = []
        for pos in data.get("positions") or []:
            symbol = pos["symbol"]
            units = (pos.get("units") or 0) + (pos.get("fractional_units") or 0)
            price = pos.get("price") or 0
            positions.append(Position(
                ticker=symbol["symbol"],
                description=symbol.get("description") or symbol["symbol"],
                units=units,
                price=price,
                market_value=units * price,
                currency=(symbol.get("currency") or {}).get("code") or "USD",
                average_purchase_price=pos.get("average_purchase_price"),
                account_id=account_id,
                percent_of_portfolio=(units * price) / total_value * 100,
            ))
        return positions

    async def get_all_holdings(self, user_id: str, user_secret: str) -> PortfolioHoldings:
        """Sync holdings from every account and consolidate them by ticker.

        Accounts are fetched concurrently. A failing account contributes no
        positions instead of failing the whole portfolio.
        """
        accounts = await self.get_accounts(user_id, user_secret)

        results = await asyncio.gather(
            *[self.get_account_holdings(user_id, user_secret, acc.id) for acc in accounts],
            return_exceptions=True,
        )

        all_positions: List[Position] = []
        for account, result in zip(accounts, results):
            if isinstance(result, Exception):
                logger.error(f"Failed to fetch holdings for account {account.id}: {result}")
                continue
            account.holdings = result
            all_positions.extend(result)

        aggregate = aggregate_holdings(all_positions)
        logger.info(
            f"Consolidated {len(all_positions)} positions from {len(accounts)} accounts "
            f"into {len(aggregate.holdings)} holdings"
        )
        return PortfolioHoldings(
            holdings=list(aggregate.holdings.values()),
            accounts=accounts,
            contributing_accounts=aggregate.accounts,
        )

    # Sync helpers

    async def refresh_holdings(self, user_id: str, user_secret: str, account_id: Optional[str] = None) -> None:
        """Force a refresh of holdings data from the brokerage."""
        path = f"/accounts/{account_id}/holdings/refresh" if account_id else "/holdings/refresh"
        await self._request("POST", path, None, user_id, user_secret)

    async def validate_connection(self, user_id: str, user_secret: str) -> bool:
        """Check that the credentials can still list accounts."""
        try:
            await self.get_accounts(user_id, user_secret)
            return True
        except SnapTradeError as e:
            logger.warning(f"SnapTrade connection check failed: {e.code}")
            return False
