from fastapi import APIRouter
from typing import Dict, Any
from ..providers.price_feed import PriceFeedClient

router = APIRouter()


@router.get("/healthz")
async def health_check() -> Dict[str, Any]:
    """Health check endpoint that verifies the price feed is reachable"""
    feed = PriceFeedClient()
    provider_status = {"price_feed": await feed.health_check()}

    healthy = all(status["status"] == "healthy" for status in provider_status.values())

    return {
        "status": "healthy" if healthy else "degraded",
        "providers": provider_status,
    }
