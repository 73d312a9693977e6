"""
Facet Planner.

Derives the facet computations for a request from the resolved category
schema plus three engine-owned dimensions:

    <schema attribute>  every filterable attribute, uncapped
    priceRange          fixed price buckets
    location            top 20 locations
    brand               top 20 attributes.brand values, with or without a category

Each computation aggregates the same post-match population as the result
page (before sort and pagination) and none depends on another.
"""

from typing import Dict, Optional, Tuple

from config.constants import (
    ATTRIBUTES_PREFIX,
    DEFAULT_FACET_CONFIG,
    FIELD_LOCATION,
    FIELD_PRICE,
    PRICE_BUCKET_BOUNDARIES,
    PRICE_BUCKET_DEFAULT,
    FacetConfig,
)
from core.logging import get_logger
from search.models import CategorySchema
from search.plan import FacetComputation, FacetSource, FacetSpec, MatchStage

logger = get_logger(__name__)


class FacetPlanner:
    """Builds the facet computations attached to an ExecutionPlan."""

    def __init__(self, config: FacetConfig = DEFAULT_FACET_CONFIG):
        self.config = config

    def plan(
        self,
        match: Optional[MatchStage] = None,
        schema: Optional[CategorySchema] = None,
    ) -> Tuple[FacetComputation, ...]:
        """
        Args:
            match: The shared match stage. Every computation runs over its
                population; it is accepted here so the dependency is explicit.
            schema: Resolved category schema, if a category was selected

        Returns:
            One computation per facet key: schema attributes in declaration
            order, then priceRange, location and brand. An engine-owned
            dimension replaces a schema attribute with the same key.
        """
        computations: Dict[str, FacetComputation] = {}

        if schema is not None:
            for key, spec in schema.filterable_attributes():
                computations[key] = FacetComputation(
                    spec=FacetSpec(
                        key=key,
                        label=spec.label or key,
                        value_type=spec.value_type,
                        source=FacetSource.SCHEMA_ATTRIBUTE,
                    ),
                    field=f"{ATTRIBUTES_PREFIX}{key}",
                )

        for computation in self._engine_facets():
            if computation.key in computations:
                logger.debug(
                    "Engine facet replaces schema attribute",
                    key=computation.key,
                    category=schema.slug if schema is not None else None,
                )
                del computations[computation.key]
            computations[computation.key] = computation

        return tuple(computations.values())

    def _engine_facets(self) -> Tuple[FacetComputation, ...]:
        c = self.config
        return (
            FacetComputation(
                spec=FacetSpec(c.PRICE_RANGE_KEY, c.PRICE_RANGE_LABEL, "string", FacetSource.PRICE_BUCKET),
                field=FIELD_PRICE,
                boundaries=PRICE_BUCKET_BOUNDARIES,
                default=PRICE_BUCKET_DEFAULT,
            ),
            FacetComputation(
                spec=FacetSpec(c.LOCATION_KEY, c.LOCATION_LABEL, "string", FacetSource.LOCATION),
                field=FIELD_LOCATION,
                limit=c.LOCATION_LIMIT,
            ),
            FacetComputation(
                spec=FacetSpec(c.BRAND_KEY, c.BRAND_LABEL, "string", FacetSource.BRAND),
                field=c.BRAND_FIELD,
                limit=c.BRAND_LIMIT,
            ),
        )


def get_facet_planner() -> FacetPlanner:
    return FacetPlanner()
