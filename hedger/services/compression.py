"""Prompt context building and compression through the Token Company API."""

import logging
import math
from typing import List

import httpx

from ..config import Settings
from ..models import CompressionResult, EnrichedPortfolioItem

logger = logging.getLogger(__name__)

COMPRESSION_MODEL = "bear-1"


def estimate_tokens(text: str) -> int:
    """Rough token estimate, about 4 characters per token."""
    return math.ceil(len(text) / 4)


def build_context_for_analysis(portfolio: List[EnrichedPortfolioItem], events_context: str) -> str:
    portfolio_context = "\n".join(
        f"{p.ticker} ({p.shares:g} shares) - Sector: {p.sector}, Industry: {p.industry}"
        for p in portfolio
    )
    return f"""
## User's Stock Portfolio
{portfolio_context}

## Active Polymarket Events
Each event is listed with its title and slug. Use the exact event title in your recommendations.
{events_context}
""".strip()


class CompressionService:
    """Shrinks prompt context before it is sent to the LLM."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self.settings = settings
        self.http_client = http_client

    @property
    def enabled(self) -> bool:
        return bool(self.settings.token_company_api_key)

    @staticmethod
    def _uncompressed(text: str, original_tokens: int) -> CompressionResult:
        return CompressionResult(
            compressed=text,
            original_tokens=original_tokens,
            compressed_tokens=original_tokens,
            savings=0.0,
        )

    async def compress(self, text: str) -> CompressionResult:
        """Compress text; any failure falls back to the original text."""
        original_tokens = estimate_tokens(text)
        if not self.enabled:
            return self._uncompressed(text, original_tokens)

        try:
            response = await self.http_client.post(
                self.settings.token_company_url,
                json={"text": text, "model": COMPRESSION_MODEL},
                headers={"Authorization": f"Bearer {self.settings.token_company_api_key}"},
            )
            if response.is_error:
                logger.error(f"Compression API error: {response.status_code}")
                return self._uncompressed(text, original_tokens)
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Compression error: {e}")
            return self._uncompressed(text, original_tokens)

        if not isinstance(data, dict):
            logger.error(f"Unexpected compression payload: {type(data).__name__}")
            return self._uncompressed(text, original_tokens)

        compressed = data.get("compressed") or data.get("text") or text
        if not isinstance(compressed, str):
            logger.error(f"Compressed text is not a string: {type(compressed).__name__}")
            return self._uncompressed(text, original_tokens)

        compressed_tokens = estimate_tokens(compressed)
        savings = 0.0
        if original_tokens:
            savings = (original_tokens - compressed_tokens) / original_tokens * 100

        logger.info(f"Compressed context from {original_tokens} to {compressed_tokens} tokens")
        return CompressionResult(
            compressed=compressed,
            original_tokens=original_tokens,
            compressed_tokens=compressed_tokens,
            savings=max(0.0, savings),
        )
