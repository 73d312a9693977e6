"""
Search engine constants.

These are values that don't change based on environment but are
referenced across the filter compiler, the planners and the response
assembler. Keep the price tables in one place: the compiler, the
bucket facet and the option labels must agree on the same boundaries.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


# =============================================================================
# Pagination
# =============================================================================

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 50

# Keeps (page - 1) * MAX_PAGE_SIZE within a signed 64-bit $skip
MAX_PAGE = 1_000_000_000


# =============================================================================
# Price Buckets
# =============================================================================

@dataclass(frozen=True)
class PriceBucket:
    """A half-open price interval [lower, upper). upper=None means unbounded."""
    token: str
    lower: float
    upper: Optional[float]
    label: str


PRICE_BUCKETS: Tuple[PriceBucket, ...] = (
    PriceBucket("0", 0, 1000, "Under ₹1,000"),
    PriceBucket("1000", 1000, 5000, "₹1,000 - ₹5,000"),
    PriceBucket("5000", 5000, 10000, "₹5,000 - ₹10,000"),
    PriceBucket("10000", 10000, 25000, "₹10,000 - ₹25,000"),
    PriceBucket("25000", 25000, 50000, "₹25,000 - ₹50,000"),
    PriceBucket("50000", 50000, 100000, "₹50,000 - ₹1,00,000"),
    PriceBucket("100000", 100000, None, "Above ₹1,00,000"),
)

PRICE_BUCKETS_BY_TOKEN: Dict[str, PriceBucket] = {b.token: b for b in PRICE_BUCKETS}

# Boundaries for the bucket facet. The last one closes the final bucket.
PRICE_BUCKET_BOUNDARIES: Tuple[float, ...] = tuple(
    b.lower for b in PRICE_BUCKETS
) + (math.inf,)

# Catch-all bucket for prices outside every boundary (negative, missing, non-numeric)
PRICE_BUCKET_DEFAULT = "Other"


# =============================================================================
# Facets
# =============================================================================

@dataclass(frozen=True)
class FacetConfig:
    """Keys, labels and caps of the engine-owned facet dimensions."""

    PRICE_RANGE_KEY: str = "priceRange"
    PRICE_RANGE_LABEL: str = "Price Range"

    LOCATION_KEY: str = "location"
    LOCATION_LABEL: str = "Location"
    LOCATION_LIMIT: int = 20

    BRAND_KEY: str = "brand"
    BRAND_LABEL: str = "Brand"
    BRAND_FIELD: str = "attributes.brand"
    BRAND_LIMIT: int = 20

    # Facets included in the response even when they computed zero groups
    ALWAYS_PRESENT: frozenset = field(
        default_factory=lambda: frozenset({"priceRange", "location"})
    )


DEFAULT_FACET_CONFIG = FacetConfig()


# =============================================================================
# Listing Fields
# =============================================================================

FIELD_ACTIVE = "isActive"
FIELD_PRICE = "price"
FIELD_LOCATION = "location"
FIELD_CATEGORY_ID = "categoryId"
FIELD_CREATED_AT = "createdAt"
FIELD_TEXT = "$text"
ATTRIBUTES_PREFIX = "attributes."

# Filter keys with engine-owned semantics; every other key is an attribute
FILTER_PRICE_MIN = "priceMin"
FILTER_PRICE_MAX = "priceMax"
FILTER_PRICE_RANGE = "priceRange"
FILTER_LOCATION = "location"

# Fields emitted for each result item
RESULT_PROJECTION: Tuple[str, ...] = (
    "_id",
    "title",
    "description",
    "price",
    "location",
    "attributes",
    "images",
    "tags",
    "createdAt",
    "category.name",
    "category.slug",
)

CATEGORY_JOIN_COLLECTION = "categories"
CATEGORY_JOIN_AS = "category"
