"""
MongoDB Execution Adapter.

Renders an ExecutionPlan into a single aggregation on the listings
collection:

    $match    isActive, predicates, $text, categoryId
    $lookup   categories -> category
    $unwind   drops listings whose category does not resolve
    $facet    results     $sort, $skip, $limit, $project
              totalCount  $count
              f0..fN      one branch per facet computation

One aggregation reads one snapshot, so the page, the total and every
facet agree on what matched.
"""

import re
from typing import Any, Dict, List

from pymongo.database import Database
from pymongo.errors import PyMongoError

from config.constants import ATTRIBUTES_PREFIX
from core.logging import get_logger
from core.utils import coerce_number
from search.errors import SearchExecutionError
from search.executor import ExecutionResult
from search.plan import (
    ExecutionPlan,
    FacetComputation,
    JoinStage,
    MatchStage,
    PredicateOperator,
    ProjectionStage,
    SortStage,
    WindowStage,
)

logger = get_logger(__name__)


_RESULTS_BRANCH = "results"
_COUNT_BRANCH = "totalCount"
_SCORE_FIELD = "score"
_TEXT_SCORE = {"$meta": "textScore"}


class MongoSearchExecutor:
    """Runs ExecutionPlans against the listings collection."""

    def __init__(self, db: Database, collection: str = "listings"):
        self._collection = db[collection]

    def execute(self, plan: ExecutionPlan) -> ExecutionResult:
        pipeline = build_pipeline(plan)
        try:
            rows = list(self._collection.aggregate(pipeline))
        except PyMongoError as e:
            raise SearchExecutionError(f"Search aggregation failed: {e}") from e

        row = rows[0] if rows else {}
        counts = row.get(_COUNT_BRANCH) or []
        total = int(counts[0].get("count", 0)) if counts else 0

        facet_counts: Dict[str, List[Dict[str, Any]]] = {}
        for index, computation in enumerate(plan.facets):
            facet_counts[computation.key] = [
                {"id": group.get("_id"), "count": int(group.get("count", 0))}
                for group in row.get(_facet_branch(index)) or []
            ]

        return ExecutionResult(
            results=[_normalize_result(doc) for doc in row.get(_RESULTS_BRANCH) or []],
            total_count=total,
            facet_counts=facet_counts,
        )


# =============================================================================
# Pipeline rendering
# =============================================================================

def build_pipeline(plan: ExecutionPlan) -> List[Dict[str, Any]]:
    """Render the full aggregation pipeline for a plan."""
    facet_stage: Dict[str, Any] = {
        _RESULTS_BRANCH: [
            {"$sort": render_sort(plan.sort)},
            *render_window(plan.window),
            {"$project": render_projection(plan.projection)},
        ],
        _COUNT_BRANCH: [{"$count": "count"}],
    }
    for index, computation in enumerate(plan.facets):
        facet_stage[_facet_branch(index)] = render_facet(computation)

    return [
        {"$match": render_match(plan.match)},
        *render_join(plan.join),
        {"$facet": facet_stage},
    ]


def render_match(match: MatchStage) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    for predicate in match.predicates:
        field_name, value = predicate.field, predicate.value
        op = predicate.operator

        if op == PredicateOperator.TEXT_MATCH:
            query["$text"] = {"$search": value}
        elif op == PredicateOperator.EQ:
            if field_name.startswith(ATTRIBUTES_PREFIX):
                query[field_name] = {"$in": loose_values(value)}
            else:
                query[field_name] = value
        elif op == PredicateOperator.IN:
            candidates: List[Any] = []
            for member in value:
                for candidate in loose_values(member):
                    if not _contains(candidates, candidate):
                        candidates.append(candidate)
            query[field_name] = {"$in": candidates}
        elif op == PredicateOperator.RANGE:
            query[field_name] = {f"${bound}": number for bound, number in value.items()}
        elif op == PredicateOperator.REGEX:
            query[field_name] = {"$regex": re.escape(value), "$options": "i"}
    return query


def render_join(join: JoinStage) -> List[Dict[str, Any]]:
    return [
        {
            "$lookup": {
                "from": join.from_collection,
                "localField": join.local_field,
                "foreignField": join.foreign_field,
                "as": join.as_field,
            }
        },
        # Without preserveNullAndEmptyArrays, unmatched listings are dropped
        {"$unwind": f"${join.as_field}"},
    ]


def render_sort(sort: SortStage) -> Dict[str, Any]:
    spec: Dict[str, Any] = {}
    if sort.by_text_score:
        spec[_SCORE_FIELD] = _TEXT_SCORE
    for field_name, direction in sort.keys:
        spec[field_name] = direction
    return spec


def render_window(window: WindowStage) -> List[Dict[str, Any]]:
    return [{"$skip": window.skip}, {"$limit": window.limit}]


def render_projection(projection: ProjectionStage) -> Dict[str, Any]:
    spec: Dict[str, Any] = {field_name: 1 for field_name in projection.fields}
    if projection.include_score:
        spec[_SCORE_FIELD] = _TEXT_SCORE
    return spec


def render_facet(computation: FacetComputation) -> List[Dict[str, Any]]:
    if computation.is_bucket:
        return [
            {
                "$bucket": {
                    "groupBy": f"${computation.field}",
                    "boundaries": list(computation.boundaries),
                    "default": computation.default,
                    "output": {"count": {"$sum": 1}},
                }
            }
        ]

    stages: List[Dict[str, Any]] = [
        {"$group": {"_id": f"${computation.field}", "count": {"$sum": 1}}},
        {"$match": {"_id": {"$nin": [None, ""]}}},
        {"$sort": {"count": -1, "_id": 1}},
    ]
    if computation.limit is not None:
        stages.append({"$limit": computation.limit})
    return stages


def loose_values(text: str) -> List[Any]:
    """
    Candidate stored values equal to a filter string: the string itself,
    plus the boolean or number it spells.

    >>> loose_values("55")
    ['55', 55]
    >>> loose_values("true")
    ['true', True]
    """
    values: List[Any] = [text]
    lowered = text.strip().lower()
    if lowered in ("true", "false"):
        values.append(lowered == "true")
        return values
    number = coerce_number(text)
    if number is not None:
        values.append(int(number) if number.is_integer() else number)
    return values


def _contains(values: List[Any], candidate: Any) -> bool:
    # True == 1 in Python but not in BSON; compare type as well
    return any(type(v) is type(candidate) and v == candidate for v in values)


def _facet_branch(index: int) -> str:
    # Schema keys may contain characters $facet rejects; branches are positional
    return f"f{index}"


def _normalize_result(doc: Dict[str, Any]) -> Dict[str, Any]:
    normalized = dict(doc)
    if "_id" in normalized:
        normalized["_id"] = str(normalized["_id"])
    return normalized
