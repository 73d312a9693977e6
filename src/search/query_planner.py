"""
Query Planner.

Assembles the compiled predicates, the text query and the resolved
category into an ordered ExecutionPlan:

1. Match       isActive AND predicates AND text AND category
2. Join        attach category name/slug; unmatched candidates dropped
3. Sort        by requested mode
4. Window      skip (page-1)*page_size, take page_size
5. Projection  result fields, score only with a text query

Stages 1-2 are shared with the facet computations; 3-5 only shape
the result page. Planning is pure and never touches storage.
"""

from typing import Any, Dict, Optional, Tuple

from config.constants import (
    CATEGORY_JOIN_AS,
    CATEGORY_JOIN_COLLECTION,
    FIELD_ACTIVE,
    FIELD_CATEGORY_ID,
    FIELD_CREATED_AT,
    FIELD_PRICE,
    FIELD_TEXT,
    RESULT_PROJECTION,
)
from search.models import SortMode
from search.plan import (
    ExecutionPlan,
    JoinStage,
    MatchStage,
    Predicate,
    PredicateOperator,
    PredicateSet,
    ProjectionStage,
    SortStage,
    WindowStage,
)


_SORT_KEYS: Dict[SortMode, Tuple[Tuple[str, int], ...]] = {
    SortMode.NEWEST: ((FIELD_CREATED_AT, -1),),
    SortMode.OLDEST: ((FIELD_CREATED_AT, 1),),
    SortMode.PRICE_ASC: ((FIELD_PRICE, 1),),
    SortMode.PRICE_DESC: ((FIELD_PRICE, -1),),
}

_TIE_BREAK = ("_id", 1)


class QueryPlanner:
    """Builds the result-side ExecutionPlan for one request."""

    def __init__(self, projection: Tuple[str, ...] = RESULT_PROJECTION):
        self._projection = projection

    def plan(
        self,
        predicates: PredicateSet,
        text: str = "",
        category_id: Optional[Any] = None,
        sort: SortMode = SortMode.RELEVANCE,
        page: int = 1,
        page_size: int = 12,
    ) -> ExecutionPlan:
        """
        Args:
            predicates: Output of the filter compiler
            text: Trimmed free-text query ("" for none)
            category_id: Storage id of the resolved category, if any
            sort: Requested ordering
            page: 1-based page number
            page_size: Results per page

        Returns:
            ExecutionPlan without facets (see ExecutionPlan.with_facets)
        """
        text = (text or "").strip()
        return ExecutionPlan(
            match=self.match_stage(predicates, text, category_id),
            join=JoinStage(
                from_collection=CATEGORY_JOIN_COLLECTION,
                local_field=FIELD_CATEGORY_ID,
                foreign_field="_id",
                as_field=CATEGORY_JOIN_AS,
            ),
            sort=self.sort_stage(sort, has_text=bool(text)),
            window=WindowStage(skip=(max(page, 1) - 1) * page_size, limit=page_size),
            projection=ProjectionStage(fields=self._projection, include_score=bool(text)),
        )

    @staticmethod
    def match_stage(
        predicates: PredicateSet,
        text: str = "",
        category_id: Optional[Any] = None,
    ) -> MatchStage:
        combined = [Predicate(FIELD_ACTIVE, PredicateOperator.EQ, True)]
        combined.extend(predicates)
        if text:
            combined.append(Predicate(FIELD_TEXT, PredicateOperator.TEXT_MATCH, text))
        if category_id is not None:
            combined.append(Predicate(FIELD_CATEGORY_ID, PredicateOperator.EQ, category_id))
        return MatchStage(predicates=PredicateSet(tuple(combined)))

    @staticmethod
    def sort_stage(sort: SortMode, has_text: bool) -> SortStage:
        # _id last so equal keys still page deterministically
        if sort in _SORT_KEYS:
            return SortStage(keys=_SORT_KEYS[sort] + (_TIE_BREAK,))
        # Relevance: rank by text score when there is one, newest first otherwise
        return SortStage(keys=((FIELD_CREATED_AT, -1), _TIE_BREAK), by_text_score=has_text)


def get_query_planner() -> QueryPlanner:
    return QueryPlanner()
