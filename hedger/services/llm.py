"""Hedge analysis through Groq's OpenAI-compatible chat API with model fallback."""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from openai import (
    APIConnectionError, APIStatusError, AsyncOpenAI, BadRequestError,
    NotFoundError, RateLimitError,
)
from pydantic import ValidationError

from ..config import Settings
from ..models import AnalysisResult, BetSide, HedgeRecommendation
from .json_parser import JSONParseError, LLMJSONParser

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a financial analyst specializing in portfolio hedging using prediction markets. Your task is to analyze a user's stock portfolio and recommend Polymarket bets that could hedge their risk exposure.

For each recommendation, consider:
1. What risk does the stock portfolio face?
2. Which prediction market outcome would benefit if that risk materializes?
3. How strongly correlated is the hedge?

Respond with JSON in this exact format:
{
  "summary": "Brief analysis of the portfolio's main risk exposures",
  "recommendations": [
    {
      "market": "The exact market question",
      "probability": 0.52,
      "position": "YES",
      "reasoning": "Why this hedge makes sense",
      "hedgesAgainst": "The specific risk this addresses",
      "suggestedAllocation": 500
    }
  ]
}

Provide 2-4 recommendations. Be specific and actionable. Only output valid JSON, no markdown."""

USER_PROMPT = "Analyze this portfolio and recommend Polymarket hedges:\n\n{context}"


class LLMUnavailableError(Exception):
    """Raised when every candidate model failed or was rate limited."""


class FallbackState(str, Enum):
    TRYING = "trying"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"


class Skip:
    """Signal from a candidate attempt that the next model should be tried."""

    def __init__(self, model: str, reason: str):
        self.model = model
        self.reason = reason

    def __repr__(self) -> str:
        return f"Skip({self.model!r}, {self.reason!r})"


AttemptResult = Union[AnalysisResult, Skip]


def _to_float(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number or default


def normalize_analysis(data: Dict[str, Any], model: Optional[str] = None) -> AnalysisResult:
    """Fill defaults for fields the model left out or got wrong."""
    recommendations = [
        HedgeRecommendation(
            market=str(rec.get("market") or ""),
            market_url="",
            probability=_to_float(rec.get("probability"), 0.5),
            position=BetSide.NO if rec.get("position") == "NO" else BetSide.YES,
            reasoning=str(rec.get("reasoning") or ""),
            hedges_against=str(rec.get("hedgesAgainst") or ""),
            suggested_allocation=_to_float(rec.get("suggestedAllocation"), 100),
        )
        for rec in data.get("recommendations") or []
    ]
    return AnalysisResult(
        summary=data.get("summary") or "Analysis complete.",
        recommendations=recommendations,
        model=model,
    )


class HedgeLLMService:
    """Asks candidate models in order until one returns a usable analysis."""

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.settings = settings
        self.models: List[str] = list(settings.groq_models)
        self.client = client or AsyncOpenAI(
            api_key=settings.groq_api_key or "missing",
            base_url=settings.groq_base_url,
            timeout=settings.http_timeout,
            max_retries=0,
        )
        self.json_parser = LLMJSONParser()

    async def _try_model(self, model: str, context: str) -> AttemptResult:
        """Run one candidate; any failure becomes a skip signal."""
        logger.info(f"Trying model: {model}")
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": USER_PROMPT.format(context=context)},
                ],
                temperature=self.settings.llm_temperature,
                max_tokens=self.settings.llm_max_tokens,
            )
        except RateLimitError:
            logger.info(f"Model {model} rate limited")
            return Skip(model, "rate_limited")
        except (BadRequestError, NotFoundError) as e:
            logger.warning(f"Model {model} rejected the request ({e.status_code})")
            return Skip(model, "rejected")
        except APIStatusError as e:
            logger.error(f"Groq API error for {model}: {e.status_code} {e.message}")
            return Skip(model, "api_error")
        except APIConnectionError as e:
            logger.error(f"Error with model {model}: {e}")
            return Skip(model, "connection_error")

        content = response.choices[0].message.content if response.choices else None
        if not content:
            logger.error(f"No content in response from {model}")
            return Skip(model, "empty_response")

        try:
            data = self.json_parser.parse_hedge_analysis(content)
        except JSONParseError as e:
            logger.error(f"Could not parse JSON from {model}: {e}")
            return Skip(model, "invalid_json")

        try:
            result = normalize_analysis(data, model)
        except ValidationError as e:
            logger.error(f"Invalid analysis payload from {model}: {e}")
            return Skip(model, "invalid_payload")

        logger.info(f"Success with model: {model}")
        return result

    async def analyze(self, context: str) -> AnalysisResult:
        """Walk the candidate list: TRYING -> SUCCESS, or TRYING -> EXHAUSTED."""
        state = FallbackState.TRYING if self.models else FallbackState.EXHAUSTED
        index = 0
        result: Optional[AnalysisResult] = None
        skipped: List[Skip] = []

        while state is FallbackState.TRYING:
            attempt = await self._try_model(self.models[index], context)
            if isinstance(attempt, Skip):
                skipped.append(attempt)
                index += 1
                if index >= len(self.models):
                    state = FallbackState.EXHAUSTED
            else:
                result = attempt
                state = FallbackState.SUCCESS

        if state is FallbackState.EXHAUSTED:
            logger.error(f"All models failed: {skipped}")
            raise LLMUnavailableError(
                "All models failed or rate limited. Please try again later."
            )

        return result
