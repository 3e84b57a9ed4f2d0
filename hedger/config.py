"""Configuration management for the hedge API."""

import os
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env if present (non-fatal when missing)
load_dotenv()

# Groq models in order of preference; later entries are tried when earlier
# ones are rate limited or rejected.
DEFAULT_GROQ_MODELS = [
    "llama-3.3-70b-versatile",
    "meta-llama/llama-4-scout-17b-16e-instruct",
    "moonshotai/kimi-k2-instruct",
    "qwen/qwen3-32b",
    "llama-3.1-8b-instant",
]


class Settings:
    """Application settings sourced from environment variables.

    Built once at process startup and handed to the services that need it.
    """

    def __init__(self) -> None:
        # Language model provider (Groq's OpenAI-compatible API)
        self.groq_api_key = os.getenv("GROQ_API_KEY") or os.getenv("GROK_API_KEY", "")
        self.groq_base_url = os.getenv(
            "GROQ_BASE_URL", "https://api.groq.com/openai/v1"
        )
        self.groq_models = self._get_list("GROQ_MODELS", DEFAULT_GROQ_MODELS)
        self.llm_temperature = self._get_float("LLM_TEMPERATURE", 0.7)
        self.llm_max_tokens = self._get_int("LLM_MAX_TOKENS", 2000)

        # Context compression
        self.token_company_api_key = os.getenv("TOKEN_COMPANY_API_KEY", "")
        self.token_company_url = os.getenv(
            "TOKEN_COMPANY_URL", "https://api.thetokencompany.ai/v1/compress"
        )

        # Brokerage aggregation
        self.snaptrade_client_id = os.getenv("SNAPTRADE_CLIENT_ID", "")
        self.snaptrade_consumer_key = os.getenv("SNAPTRADE_CONSUMER_KEY", "")
        self.snaptrade_base_url = os.getenv(
            "SNAPTRADE_BASE_URL", "https://api.snaptrade.com/api/v1"
        )

        # Prediction markets
        self.polymarket_base_url = os.getenv(
            "POLYMARKET_BASE_URL", "https://gamma-api.polymarket.com"
        )
        self.polymarket_event_limit = self._get_int("POLYMARKET_EVENT_LIMIT", 100)

        # Outbound HTTP
        self.http_timeout = self._get_float("HTTP_TIMEOUT", 30.0)

        # Logging
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.log_file = os.getenv("LOG_FILE") or None

        # Flags
        self.debug = self._get_bool("DEBUG", False)
        self.cors_origins = self._get_list("CORS_ORIGINS", ["http://localhost:3000"])

    @property
    def snaptrade_configured(self) -> bool:
        return bool(self.snaptrade_client_id and self.snaptrade_consumer_key)

    @staticmethod
    def _get_bool(name: str, default: bool) -> bool:
        value = os.getenv(name)
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    @staticmethod
    def _get_float(name: str, default: float) -> float:
        value = os.getenv(name)
        if value is None:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    @staticmethod
    def _get_int(name: str, default: int) -> int:
        value = os.getenv(name)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    @staticmethod
    def _get_list(name: str, default: List[str]) -> List[str]:
        value = os.getenv(name)
        if not value:
            return list(default)
        items = [item.strip() for item in value.split(",") if item.strip()]
        return items or list(default)
