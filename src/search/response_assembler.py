"""
Response Assembler.

Shapes raw executor output into the SearchResponse contract.

Empty facets: priceRange and location are always present, even with no
options; schema-attribute facets and brand are omitted when they have
no groups. Null or empty group values are dropped first.
"""

import math
from typing import Any, Dict, List, Optional, Sequence

from config.constants import DEFAULT_FACET_CONFIG, PRICE_BUCKETS_BY_TOKEN, FacetConfig
from core.logging import get_logger
from core.utils import to_filter_string
from search.executor import ExecutionResult
from search.models import (
    EchoedQuery,
    FacetOption,
    FacetResult,
    Pagination,
    ResultItem,
    SearchRequest,
    SearchResponse,
)
from search.plan import FacetSource, FacetSpec

logger = get_logger(__name__)


def assemble_response(
    result: ExecutionResult,
    facets: Sequence[FacetSpec],
    request: SearchRequest,
    config: FacetConfig = DEFAULT_FACET_CONFIG,
) -> SearchResponse:
    """
    Args:
        result: Raw executor output
        facets: Specs of the facets that were computed (labels and value
            types of schema attributes come from the resolved schema)
        request: The parsed request (pagination and echo)

    Returns:
        A fresh SearchResponse
    """
    total = max(int(result.total_count or 0), 0)

    return SearchResponse(
        results=[_to_result_item(row) for row in result.results],
        facets=build_facets(result.facet_counts, facets, config),
        pagination=build_pagination(total, request.page, request.page_size),
        query=echo_query(request),
    )


def build_pagination(total: int, page: int, page_size: int) -> Pagination:
    total_pages = math.ceil(total / page_size) if total > 0 else 0
    return Pagination(
        page=page,
        limit=page_size,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


def build_facets(
    facet_counts: Dict[str, List[Dict[str, Any]]],
    facets: Sequence[FacetSpec],
    config: FacetConfig = DEFAULT_FACET_CONFIG,
) -> Dict[str, FacetResult]:
    assembled: Dict[str, FacetResult] = {}
    for spec in facets:
        groups = facet_counts.get(spec.key) or []
        if spec.source == FacetSource.PRICE_BUCKET:
            options = _price_options(groups)
        else:
            options = _value_options(groups)

        if not options and spec.key not in config.ALWAYS_PRESENT:
            continue

        assembled[spec.key] = FacetResult(
            key=spec.key,
            label=spec.label,
            value_type=spec.value_type,
            options=options,
        )
    return assembled


def price_bucket_label(token: str) -> str:
    """Human label for a price bucket token; unknown tokens get "₹{token}+"."""
    bucket = PRICE_BUCKETS_BY_TOKEN.get(token)
    if bucket is not None:
        return bucket.label
    return f"₹{token}+"


def echo_query(request: SearchRequest) -> EchoedQuery:
    return EchoedQuery(
        q=request.text or None,
        category=request.category_slug or None,
        filters=dict(request.filters) if request.filters else None,
    )


# =============================================================================
# Helpers
# =============================================================================

def _value_options(groups: List[Dict[str, Any]]) -> List[FacetOption]:
    options = []
    for group in groups:
        value = _group_value(group.get("id"))
        if value is None:
            continue
        options.append(FacetOption(value=value, label=value, count=int(group.get("count", 0))))
    return options


def _price_options(groups: List[Dict[str, Any]]) -> List[FacetOption]:
    options = []
    for group in groups:
        count = int(group.get("count", 0))
        token = _group_value(group.get("id"))
        if token is None or count <= 0:
            continue
        options.append(FacetOption(value=token, label=price_bucket_label(token), count=count))
    return options


def _group_value(raw: Any) -> Optional[str]:
    if isinstance(raw, (list, tuple)):
        # Array-valued attributes group by the whole array
        parts = [to_filter_string(v) for v in raw if v is not None]
        text = ", ".join(p for p in parts if p)
    else:
        text = to_filter_string(raw)
    if text is None or text == "":
        return None
    return text


def _to_result_item(row: Dict[str, Any]) -> ResultItem:
    item = dict(row)
    item["images"] = item.get("images") or []
    item["tags"] = item.get("tags") or []
    item["attributes"] = item.get("attributes") or {}
    return ResultItem.model_validate(item)
