"""
Pydantic models for the search API.

Request parsing lives here too: query-string values arrive as loose
strings and are coerced (never rejected) into a SearchRequest.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, MAX_PAGE, MAX_PAGE_SIZE
from core.logging import get_logger
from core.utils import clamp, coerce_int

logger = get_logger(__name__)


# ============================================================================
# Enums
# ============================================================================

class SortMode(str, Enum):
    """Result ordering requested by the client."""
    RELEVANCE = "relevance"
    NEWEST = "newest"
    OLDEST = "oldest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"


# ============================================================================
# Category Schema
# ============================================================================

class AttributeSpec(BaseModel):
    """One attribute declared by a category."""
    model_config = ConfigDict(populate_by_name=True)

    # string | number | boolean | array
    value_type: str = Field("string", alias="type")
    label: str = ""
    options: Optional[List[str]] = None
    required: bool = False
    filterable: bool = False


class CategorySchema(BaseModel):
    """A category and its attribute schema, as stored by the catalog."""
    model_config = ConfigDict(populate_by_name=True)

    id: Any = Field(None, alias="_id")
    name: str
    slug: str
    attribute_schema: Dict[str, AttributeSpec] = Field(
        default_factory=dict, alias="attributeSchema"
    )

    def filterable_attributes(self) -> Iterator[Tuple[str, AttributeSpec]]:
        """Yield (key, spec) for filterable attributes in declaration order."""
        for key, spec in self.attribute_schema.items():
            if spec.filterable:
                yield key, spec


# ============================================================================
# Request Models
# ============================================================================

class SearchRequest(BaseModel):
    """A parsed search request. Build from raw query params with from_query_params()."""

    text: str = ""
    category_slug: str = ""
    filters: Dict[str, Any] = Field(default_factory=dict)
    page: int = Field(DEFAULT_PAGE, ge=1, le=MAX_PAGE)
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    sort: SortMode = SortMode.RELEVANCE

    @field_validator("text", "category_slug", mode="before")
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.page_size

    @classmethod
    def from_query_params(
        cls,
        q: Optional[str] = "",
        category: Optional[str] = "",
        filters: Optional[str] = "{}",
        page: Optional[Union[str, int]] = None,
        limit: Optional[Union[str, int]] = None,
        sort: Optional[str] = None,
        default_limit: int = DEFAULT_PAGE_SIZE,
        max_limit: int = MAX_PAGE_SIZE,
    ) -> "SearchRequest":
        """
        Apply defaults and degrade malformed values instead of failing.

        - filters: malformed JSON or a non-object -> {}
        - page: unparsable -> 1, clamped to [1, MAX_PAGE]
        - limit: unparsable -> default_limit, clamped to [1, max_limit]
        - sort: unknown -> relevance
        """
        max_limit = min(max_limit, MAX_PAGE_SIZE)
        return cls(
            text=q,
            category_slug=category,
            filters=parse_filters(filters),
            page=clamp(coerce_int(page, DEFAULT_PAGE), 1, MAX_PAGE),
            page_size=clamp(coerce_int(limit, default_limit), 1, max_limit),
            sort=parse_sort(sort),
        )


def parse_filters(raw: Optional[str]) -> Dict[str, Any]:
    """Decode the filters query param. Anything but a JSON object becomes {}."""
    if raw is None or not str(raw).strip():
        return {}
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid filters JSON, ignoring", filters=str(raw)[:200])
        return {}
    if not isinstance(decoded, dict):
        logger.warning("Filters JSON is not an object, ignoring", filters=str(raw)[:200])
        return {}
    return decoded


def parse_sort(raw: Optional[str]) -> SortMode:
    """Map a sort token to SortMode; unknown tokens fall back to relevance."""
    if raw is None:
        return SortMode.RELEVANCE
    try:
        return SortMode(str(raw).strip().lower())
    except ValueError:
        return SortMode.RELEVANCE


# ============================================================================
# Response Models
# ============================================================================

class CategoryRef(BaseModel):
    """Category display fields joined onto each result."""
    name: str
    slug: str


class ResultItem(BaseModel):
    """A single listing in search results."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    title: str
    description: Optional[str] = None
    price: Optional[float] = None
    location: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)
    images: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    category: CategoryRef
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    score: Optional[float] = Field(None, description="Text relevance, only with a text query")


class FacetOption(BaseModel):
    """A single facet value with its count."""
    value: str
    label: str
    count: int


class FacetResult(BaseModel):
    """A labeled facet and its options, most useful first."""
    model_config = ConfigDict(populate_by_name=True)

    key: str
    label: str
    value_type: str = Field("string", alias="type")
    options: List[FacetOption] = Field(default_factory=list)


class Pagination(BaseModel):
    """Pagination metadata."""
    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(..., alias="totalPages")
    has_next: bool = Field(..., alias="hasNext")
    has_prev: bool = Field(..., alias="hasPrev")


class EchoedQuery(BaseModel):
    """The non-empty inputs of the request, echoed back."""
    q: Optional[str] = None
    category: Optional[str] = None
    filters: Optional[Dict[str, Any]] = None


class SearchResponse(BaseModel):
    """Response from faceted search."""
    results: List[ResultItem]
    facets: Dict[str, FacetResult] = Field(default_factory=dict)
    pagination: Pagination
    query: EchoedQuery = Field(default_factory=EchoedQuery)


class CategorySummary(BaseModel):
    """A category as listed by the categories endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    slug: str
    attribute_schema: Dict[str, AttributeSpec] = Field(
        default_factory=dict, alias="attributeSchema"
    )


class CategoriesResponse(BaseModel):
    """Response from the categories endpoint."""
    categories: List[CategorySummary]


class ErrorResponse(BaseModel):
    """The single error object returned instead of a partial response."""
    error: str
