from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Query

from ..core.swap.selector import filter_tokens
from ..providers.price_feed import FetchError, PriceFeedClient
from ..services.token_catalog.builder import build_catalog

router = APIRouter(prefix="/tokens")


@router.get("")
async def list_tokens(
    search: str = Query(default="", description="Case-insensitive currency substring"),
    exclude: Optional[str] = Query(default=None, description="Currency to leave out"),
) -> Dict[str, Any]:
    """Fetch the feed and return the canonical catalog, optionally filtered."""
    try:
        observations = await PriceFeedClient().fetch_prices()
    except FetchError as e:
        raise HTTPException(status_code=502, detail=e.to_dict()) from e

    catalog = build_catalog(observations)
    tokens = filter_tokens(catalog, search, exclude)
    return {
        "tokens": [t.to_dict() for t in tokens],
        "total": len(catalog),
        "builtAt": catalog.built_at.isoformat(),
    }
