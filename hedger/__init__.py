"""
Portfolio Hedge API - A lightweight FastAPI service for hedging stock portfolios.

This service consolidates brokerage holdings from SnapTrade, looks up quotes,
and asks a Groq-hosted LLM to propose Polymarket bets that offset portfolio risk.
"""

__version__ = "1.0.0"
