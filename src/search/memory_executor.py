"""
In-memory Execution Adapter.

Evaluates an ExecutionPlan over plain listing and category dicts with
the same semantics as the MongoDB adapter: loose attribute equality,
case-insensitive location substring, category join that drops
unresolved listings, facets over the full matched population.

Text matching is a simplification of a MongoDB text index: a listing
matches when any query term occurs as a word of its title or
description, and its score is the number of such occurrences.

Note: Listings are copied at construction. Use it for development and
tests, not for production traffic.
"""

import re
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Tuple

from config.constants import ATTRIBUTES_PREFIX
from core.utils import get_path, to_filter_string
from search.executor import ExecutionResult
from search.models import CategorySchema
from search.plan import (
    ExecutionPlan,
    FacetComputation,
    MatchStage,
    Predicate,
    PredicateOperator,
    ProjectionStage,
    SortStage,
)


_WORD_RE = re.compile(r"\w+", re.UNICODE)
_MISSING = object()


class InMemorySearchExecutor:
    """Executes plans against lists of listing and category documents."""

    def __init__(
        self,
        listings: Iterable[Dict[str, Any]] = (),
        categories: Iterable[Any] = (),
    ):
        self._listings = [dict(listing) for listing in listings]
        self._categories: Dict[str, Dict[str, Any]] = {}
        for category in categories:
            if isinstance(category, CategorySchema):
                category = category.model_dump(by_alias=True)
            self._categories[str(category.get("_id"))] = dict(category)
        self.executions = 0

    def execute(self, plan: ExecutionPlan) -> ExecutionResult:
        self.executions += 1

        matched: List[Dict[str, Any]] = []
        for listing in self._listings:
            ok, score = _matches(listing, plan.match)
            if not ok:
                continue
            category = self._categories.get(str(get_path(listing, plan.join.local_field)))
            if category is None:
                continue
            row = dict(listing)
            row[plan.join.as_field] = category
            if plan.match.has_text:
                row["score"] = float(score)
            matched.append(row)

        facet_counts = {
            computation.key: _facet_counts(matched, computation)
            for computation in plan.facets
        }

        ordered = _sort(matched, plan.sort)
        page = ordered[plan.window.skip:plan.window.skip + plan.window.limit]

        return ExecutionResult(
            results=[_project(row, plan.projection) for row in page],
            total_count=len(matched),
            facet_counts=facet_counts,
        )


# =============================================================================
# Match
# =============================================================================

def _matches(listing: Dict[str, Any], match: MatchStage) -> Tuple[bool, int]:
    score = 0
    for predicate in match.predicates:
        if predicate.operator == PredicateOperator.TEXT_MATCH:
            score = _text_score(listing, predicate.value)
            if score == 0:
                return False, 0
        elif not _evaluate(listing, predicate):
            return False, 0
    return True, score


def _evaluate(listing: Dict[str, Any], predicate: Predicate) -> bool:
    value = get_path(listing, predicate.field)
    op = predicate.operator

    if op == PredicateOperator.EQ:
        if predicate.field.startswith(ATTRIBUTES_PREFIX):
            return _loose_in(value, (predicate.value,))
        return value is not None and str(value) == str(predicate.value)

    if op == PredicateOperator.IN:
        return _loose_in(value, predicate.value)

    if op == PredicateOperator.RANGE:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        bounds = predicate.value
        return (
            ("gte" not in bounds or value >= bounds["gte"])
            and ("gt" not in bounds or value > bounds["gt"])
            and ("lte" not in bounds or value <= bounds["lte"])
            and ("lt" not in bounds or value < bounds["lt"])
        )

    if op == PredicateOperator.REGEX:
        return isinstance(value, str) and predicate.value.lower() in value.lower()

    return False


def _loose_in(value: Any, candidates: Tuple[str, ...]) -> bool:
    # An array attribute matches when any element matches
    values = value if isinstance(value, list) else [value]
    return any(to_filter_string(v) in candidates for v in values if v is not None)


def _text_score(listing: Dict[str, Any], text: str) -> int:
    terms = set(_WORD_RE.findall(text.lower()))
    if not terms:
        return 0
    words = _WORD_RE.findall(
        f"{listing.get('title') or ''} {listing.get('description') or ''}".lower()
    )
    return sum(1 for word in words if word in terms)


# =============================================================================
# Facets
# =============================================================================

def _facet_counts(rows: List[Dict[str, Any]], computation: FacetComputation) -> List[Dict[str, Any]]:
    if computation.is_bucket:
        return _bucket_counts(rows, computation)

    counts: Counter = Counter()
    originals: Dict[Any, Any] = {}
    for row in rows:
        value = get_path(row, computation.field)
        if value is None or value == "":
            continue
        key = tuple(value) if isinstance(value, list) else value
        counts[key] += 1
        originals.setdefault(key, value)

    groups = sorted(counts.items(), key=lambda item: (-item[1], str(item[0])))
    if computation.limit is not None:
        groups = groups[:computation.limit]
    return [{"id": originals[key], "count": count} for key, count in groups]


def _bucket_counts(rows: List[Dict[str, Any]], computation: FacetComputation) -> List[Dict[str, Any]]:
    boundaries = computation.boundaries
    counts: Counter = Counter()
    for row in rows:
        counts[_bucket_of(get_path(row, computation.field), boundaries, computation.default)] += 1

    # Boundary buckets ascending, catch-all last; empty buckets are not emitted
    output = [
        {"id": lower, "count": counts[lower]}
        for lower in boundaries[:-1]
        if counts.get(lower)
    ]
    if counts.get(computation.default):
        output.append({"id": computation.default, "count": counts[computation.default]})
    return output


def _bucket_of(value: Any, boundaries: Tuple[float, ...], default: Optional[str]) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    for lower, upper in zip(boundaries, boundaries[1:]):
        if lower <= value < upper:
            return lower
    return default


# =============================================================================
# Sort and projection
# =============================================================================

def _sort(rows: List[Dict[str, Any]], sort: SortStage) -> List[Dict[str, Any]]:
    ordered = list(rows)
    keys: List[Tuple[str, int]] = list(sort.keys)
    if sort.by_text_score:
        keys.insert(0, ("score", -1))
    # Stable sorts applied from the least to the most significant key
    for field_name, direction in reversed(keys):
        ordered.sort(key=lambda row: _sort_key(get_path(row, field_name)), reverse=direction < 0)
    return ordered


def _sort_key(value: Any) -> Tuple[int, Any]:
    # Missing values sort before everything else, as in MongoDB
    if value is None:
        return (0, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    return (3, str(value))


def _project(row: Dict[str, Any], projection: ProjectionStage) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for path in projection.fields:
        value = _lookup(row, path)
        if value is _MISSING:
            continue
        target = out
        parts = path.split(".")
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = value
    if "_id" in out:
        out["_id"] = str(out["_id"])
    if projection.include_score and "score" in row:
        out["score"] = row["score"]
    return out


def _lookup(row: Dict[str, Any], path: str) -> Any:
    current: Any = row
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current
