"""Health check and system status endpoints."""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends

from .. import __version__
from ..config import Settings
from ..dependencies import get_settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/")
async def health_check(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "integrations": {
            "llm": bool(settings.groq_api_key),
            "compression": bool(settings.token_company_api_key),
            "brokerage": settings.snaptrade_configured,
        },
    }
