"""
Category API Routes.

Lists categories with their attribute schemas so clients can render
filter controls before the first search.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_schema_registry
from core.logging import get_logger
from search.models import CategoriesResponse, CategorySummary, ErrorResponse
from search.schema_registry import SchemaRegistry

logger = get_logger(__name__)

CATEGORIES_ERROR_MESSAGE = "Failed to fetch categories"

router = APIRouter(prefix="/api", tags=["Categories"])


@router.get(
    "/categories",
    response_model=CategoriesResponse,
    responses={500: {"model": ErrorResponse}},
    summary="List categories and their attribute schemas",
)
def list_categories(registry: SchemaRegistry = Depends(get_schema_registry)):
    """All categories sorted by name."""
    try:
        categories = registry.list_categories()
    except Exception as e:
        logger.error("Category listing failed", error=str(e), error_type=type(e).__name__)
        return JSONResponse(status_code=500, content={"error": CATEGORIES_ERROR_MESSAGE})

    return CategoriesResponse(
        categories=[
            CategorySummary(
                name=category.name,
                slug=category.slug,
                attribute_schema=category.attribute_schema,
            )
            for category in categories
        ]
    )
