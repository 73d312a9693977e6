"""
Filter Compiler.

Translates the client's raw filter map into a normalized PredicateSet:

    priceMin / priceMax   -> one range predicate on price (gte / lte)
    priceRange            -> predefined bucket, merged into the same range
    location              -> case-insensitive substring regex
    anything else         -> attributes.<key> eq (scalar) or in (list)

Every key is handled independently and the output does not depend on
the key order of the input. Nothing here raises: a malformed fragment
is dropped and the rest of the request proceeds.
"""

import re
from typing import Any, Dict, List, Optional

from config.constants import (
    ATTRIBUTES_PREFIX,
    FIELD_LOCATION,
    FIELD_PRICE,
    FILTER_LOCATION,
    FILTER_PRICE_MAX,
    FILTER_PRICE_MIN,
    FILTER_PRICE_RANGE,
    PRICE_BUCKETS_BY_TOKEN,
    PriceBucket,
)
from core.logging import get_logger
from core.utils import coerce_number, is_blank, to_filter_string
from search.models import CategorySchema
from search.plan import Predicate, PredicateOperator, PredicateSet

logger = get_logger(__name__)


# Attribute keys become dotted document paths; refuse anything that could
# address operators or other documents' structure.
_ATTRIBUTE_KEY_RE = re.compile(r"^[^.$\s][^$]*$")


def compile_filters(
    filters: Optional[Dict[str, Any]],
    schema: Optional[CategorySchema] = None,
) -> PredicateSet:
    """
    Compile a raw filter map into a PredicateSet.

    Args:
        filters: Decoded filters object from the request (may be None)
        schema: Attribute schema of the selected category, if any. Only used
            to flag filter keys the category does not declare; they still apply.

    Returns:
        PredicateSet with the price range first, then location, then
        attribute predicates sorted by key.
    """
    if not isinstance(filters, dict):
        return PredicateSet()

    explicit_bounds: Dict[str, float] = {}
    bucket: Optional[PriceBucket] = None
    location: Optional[Predicate] = None
    attributes: List[Predicate] = []

    for key in sorted(filters, key=str):
        value = filters[key]
        if is_blank(value):
            continue

        if key == FILTER_PRICE_MIN or key == FILTER_PRICE_MAX:
            number = coerce_number(value)
            if number is None:
                logger.debug("Dropping non-numeric price bound", key=key, value=value)
                continue
            explicit_bounds["gte" if key == FILTER_PRICE_MIN else "lte"] = number

        elif key == FILTER_PRICE_RANGE:
            bucket = _resolve_bucket(value)

        elif key == FILTER_LOCATION:
            location = _location_predicate(value)

        else:
            predicate = _attribute_predicate(key, value, schema)
            if predicate is not None:
                attributes.append(predicate)

    predicates: List[Predicate] = []
    price = _price_predicate(explicit_bounds, bucket)
    if price is not None:
        predicates.append(price)
    if location is not None:
        predicates.append(location)
    predicates.extend(attributes)

    return PredicateSet(tuple(predicates))


# =============================================================================
# Per-key rules
# =============================================================================

def _resolve_bucket(value: Any) -> Optional[PriceBucket]:
    token = to_filter_string(value)
    bucket = PRICE_BUCKETS_BY_TOKEN.get(token.strip()) if token else None
    if bucket is None:
        logger.debug("Ignoring unknown price bucket", value=value)
    return bucket


def _price_predicate(
    explicit_bounds: Dict[str, float],
    bucket: Optional[PriceBucket],
) -> Optional[Predicate]:
    """
    Merge explicit bounds and a bucket into one range predicate.

    Explicit priceMin/priceMax win on their side; the bucket fills the
    sides that were not given explicitly.
    """
    bounds: Dict[str, float] = {}
    if bucket is not None:
        bounds["gte"] = bucket.lower
        if bucket.upper is not None:
            bounds["lt"] = bucket.upper
    if "gte" in explicit_bounds:
        bounds["gte"] = explicit_bounds["gte"]
    if "lte" in explicit_bounds:
        bounds.pop("lt", None)
        bounds["lte"] = explicit_bounds["lte"]

    if not bounds:
        return None
    return Predicate(FIELD_PRICE, PredicateOperator.RANGE, bounds)


def _location_predicate(value: Any) -> Optional[Predicate]:
    text = to_filter_string(value)
    if text is None or not text.strip():
        return None
    return Predicate(FIELD_LOCATION, PredicateOperator.REGEX, text.strip())


def _attribute_predicate(
    key: Any,
    value: Any,
    schema: Optional[CategorySchema],
) -> Optional[Predicate]:
    if not isinstance(key, str) or not _ATTRIBUTE_KEY_RE.match(key) or ".." in key or key.endswith("."):
        logger.debug("Ignoring malformed filter key", key=key)
        return None

    if schema is not None and key not in schema.attribute_schema:
        logger.debug("Filter key not declared by category", key=key, category=schema.slug)

    field_name = f"{ATTRIBUTES_PREFIX}{key}"

    if isinstance(value, (list, tuple, set)):
        members = []
        for item in value:
            if is_blank(item):
                continue
            text = to_filter_string(item)
            if text is not None and text not in members:
                members.append(text)
        if not members:
            return None
        return Predicate(field_name, PredicateOperator.IN, tuple(members))

    text = to_filter_string(value)
    if text is None:
        logger.debug("Ignoring non-scalar filter value", key=key)
        return None
    return Predicate(field_name, PredicateOperator.EQ, text)
