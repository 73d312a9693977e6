"""
Search API Routes.

GET /api/search runs the faceted search. Any other method is answered
with 405 by the router before a handler runs.

NOTE: Routes use `def` (not `async def`) because the storage driver
(pymongo) is synchronous. FastAPI runs sync route handlers in a thread
pool, so a slow aggregation does not block the event loop.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from api.dependencies import get_search_service
from config.settings import get_settings
from core.logging import get_logger
from search.models import ErrorResponse, SearchRequest, SearchResponse
from search.service import FacetedSearchService

logger = get_logger(__name__)

SEARCH_ERROR_MESSAGE = "Internal server error during search operation"

router = APIRouter(prefix="/api", tags=["Search"])


@router.get(
    "/search",
    response_model=SearchResponse,
    response_model_exclude_none=True,
    responses={500: {"model": ErrorResponse}},
    summary="Faceted listing search",
)
def search(
    q: Optional[str] = Query("", description="Free-text query"),
    category: Optional[str] = Query("", description="Category slug"),
    filters: Optional[str] = Query("{}", description="JSON object of attribute filters"),
    page: Optional[str] = Query("1", description="1-based page number"),
    limit: Optional[str] = Query(None, description="Results per page (1-50)"),
    sort: Optional[str] = Query("relevance", description="relevance, newest, oldest, price_asc, price_desc"),
    service: FacetedSearchService = Depends(get_search_service),
):
    """
    Search active listings.

    - **q**: matched against title and description
    - **category**: restricts results and adds the category's filterable attributes as facets
    - **filters**: `{"brand": "Samsung", "priceMin": 1000, "priceRange": "5000", "location": "mumbai"}`
    - Malformed parameters are ignored, never rejected

    Facets are counted over every matching listing, not just the returned page.
    """
    settings = get_settings()
    request = SearchRequest.from_query_params(
        q=q,
        category=category,
        filters=filters,
        page=page,
        limit=limit,
        sort=sort,
        default_limit=settings.search_default_limit,
        max_limit=settings.search_max_limit,
    )

    try:
        return service.search(request)
    except Exception as e:
        # Cause stays in the logs; the client only sees the generic error
        logger.error(
            "Search failed",
            error=str(e),
            error_type=type(e).__name__,
            query=request.text or None,
            category=request.category_slug or None,
            exc_info=True,
        )
        return JSONResponse(status_code=500, content={"error": SEARCH_ERROR_MESSAGE})
