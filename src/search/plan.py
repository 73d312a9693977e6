"""
Storage-agnostic query plan.

The filter compiler produces a PredicateSet, the query planner wraps it
into an ExecutionPlan, and the facet planner attaches FacetComputations.
Executors (MongoDB, in-memory) turn the plan into one execution. Every
object here is frozen: a plan is built once per request and never
mutated.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple


# =============================================================================
# Predicates
# =============================================================================

class PredicateOperator(str, Enum):
    EQ = "eq"
    IN = "in"
    RANGE = "range"
    REGEX = "regex"
    TEXT_MATCH = "textMatch"


@dataclass(frozen=True)
class Predicate:
    """
    One match condition.

    value by operator:
        eq         scalar
        in         non-empty tuple of scalars
        range      dict of bound operator -> number ("gte", "gt", "lte", "lt")
        regex      literal substring, matched case-insensitively
        textMatch  the free-text query
    """
    field: str
    operator: PredicateOperator
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "operator": self.operator.value, "value": self.value}


@dataclass(frozen=True)
class PredicateSet:
    """Ordered, normalized predicates. At most one range predicate per field."""
    predicates: Tuple[Predicate, ...] = ()

    def __iter__(self) -> Iterator[Predicate]:
        return iter(self.predicates)

    def __len__(self) -> int:
        return len(self.predicates)

    def get(self, field_name: str) -> Optional[Predicate]:
        for predicate in self.predicates:
            if predicate.field == field_name:
                return predicate
        return None

    def fields(self) -> Tuple[str, ...]:
        return tuple(p.field for p in self.predicates)


# =============================================================================
# Facets
# =============================================================================

class FacetSource(str, Enum):
    SCHEMA_ATTRIBUTE = "schema-attribute"
    PRICE_BUCKET = "price-bucket"
    LOCATION = "location"
    BRAND = "brand"


@dataclass(frozen=True)
class FacetSpec:
    """What a facet aggregates. Counts only exist after execution."""
    key: str
    label: str
    value_type: str
    source: FacetSource


@dataclass(frozen=True)
class FacetComputation:
    """
    How to aggregate one facet over the matched population.

    Group facets count documents per distinct value of `field`
    (null/missing dropped, count desc, value asc, optional limit).
    Bucket facets count documents per [boundary, next boundary) of `field`,
    with `default` collecting everything outside the boundaries.
    """
    spec: FacetSpec
    field: str
    limit: Optional[int] = None
    boundaries: Optional[Tuple[float, ...]] = None
    default: Optional[str] = None

    @property
    def key(self) -> str:
        return self.spec.key

    @property
    def is_bucket(self) -> bool:
        return self.boundaries is not None


# =============================================================================
# Stages
# =============================================================================

@dataclass(frozen=True)
class MatchStage:
    """Conjunction of predicates selecting the candidate population."""
    predicates: PredicateSet

    @property
    def text(self) -> str:
        for predicate in self.predicates:
            if predicate.operator == PredicateOperator.TEXT_MATCH:
                return predicate.value
        return ""

    @property
    def has_text(self) -> bool:
        return bool(self.text)


@dataclass(frozen=True)
class JoinStage:
    """One-to-one join. Candidates without a match are dropped."""
    from_collection: str
    local_field: str
    foreign_field: str
    as_field: str


@dataclass(frozen=True)
class SortStage:
    """
    Sort keys as (field, direction) with 1 ascending and -1 descending.
    by_text_score puts the text relevance score (descending) first.
    """
    keys: Tuple[Tuple[str, int], ...]
    by_text_score: bool = False


@dataclass(frozen=True)
class WindowStage:
    skip: int
    limit: int


@dataclass(frozen=True)
class ProjectionStage:
    fields: Tuple[str, ...]
    include_score: bool = False


@dataclass(frozen=True)
class ExecutionPlan:
    """
    Everything the executor needs for one round trip.

    match and join are shared by the result page, the total count and
    every facet; sort, window and projection apply to the result page only.
    """
    match: MatchStage
    join: JoinStage
    sort: SortStage
    window: WindowStage
    projection: ProjectionStage
    facets: Tuple[FacetComputation, ...] = field(default_factory=tuple)

    def with_facets(self, facets: Tuple[FacetComputation, ...]) -> "ExecutionPlan":
        return replace(self, facets=tuple(facets))

    @property
    def facet_specs(self) -> Tuple[FacetSpec, ...]:
        return tuple(f.spec for f in self.facets)
