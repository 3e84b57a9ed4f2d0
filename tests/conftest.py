"""
Pytest configuration and fixtures for the hedge API tests.
"""

from types import SimpleNamespace
from typing import Any, Callable, Dict, List

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from hedger.config import Settings
from hedger.dependencies import get_settings
from hedger.main import app
from hedger.models import Position


@pytest.fixture
def settings(monkeypatch) -> Settings:
    """Settings with every integration configured against fake hosts."""
    monkeypatch.setenv("GROQ_API_KEY", "test-groq-key")
    monkeypatch.setenv("GROQ_MODELS", "model-a,model-b,model-c")
    monkeypatch.setenv("TOKEN_COMPANY_API_KEY", "")
    monkeypatch.setenv("TOKEN_COMPANY_URL", "https://compress.test/v1/compress")
    monkeypatch.setenv("SNAPTRADE_CLIENT_ID", "test-client")
    monkeypatch.setenv("SNAPTRADE_CONSUMER_KEY", "test-consumer-key")
    monkeypatch.setenv("SNAPTRADE_BASE_URL", "https://snaptrade.test/api/v1")
    monkeypatch.setenv("POLYMARKET_BASE_URL", "https://gamma.test")
    return Settings()


def mock_http_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by handler instead of the network."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class FakeCompletions:
    """Stand-in for ``client.chat.completions`` returning scripted outcomes.

    Each outcome is either a string (message content) or an exception to raise.
    """

    def __init__(self, outcomes: Dict[str, Any]):
        self.outcomes = outcomes
        self.calls: List[str] = []

    async def create(self, model: str, **kwargs):
        self.calls.append(model)
        outcome = self.outcomes[model]
        if isinstance(outcome, Exception):
            raise outcome
        message = SimpleNamespace(content=outcome)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_llm_client(outcomes: Dict[str, Any]) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(outcomes)))


@pytest.fixture
def sample_positions() -> List[Position]:
    """Positions spread over two accounts, including an option contract."""
    return [
        Position(ticker="MSFT", units=10, price=400, market_value=4000,
                 average_purchase_price=100, account_id="acc-a"),
        Position(ticker="AAPL", units=5.5, price=200, market_value=1100,
                 average_purchase_price=150, account_id="acc-a"),
        Position(ticker="AAPL 210917C00150000", units=1, price=3, market_value=300,
                 account_id="acc-b"),
        Position(ticker="MSFT", units=10, price=400, market_value=4000,
                 average_purchase_price=200, account_id="acc-b"),
    ]


@pytest_asyncio.fixture
async def client(settings):
    """Create a test client with service dependency overrides cleared afterwards."""
    app.dependency_overrides[get_settings] = lambda: settings

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def override_dependency():
    """Register a dependency override for the duration of a test."""
    def _override(dependency, value):
        app.dependency_overrides[dependency] = lambda: value
    return _override


@pytest.fixture
def http_client_factory():
    return mock_http_client


@pytest.fixture
def llm_client_factory():
    return fake_llm_client
