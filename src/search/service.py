"""
Faceted Search Service.

Pipeline:
1. Resolve the category schema (only when a slug is given)
2. Compile filters into a PredicateSet
3. Plan the match/join/sort/window/projection stages
4. Plan the facet computations over the same match stage
5. Execute results + count + facets in one call
6. Assemble the response

Steps run sequentially in the calling thread. There are no retries:
a registry or executor failure propagates as a SearchBackendError and
the caller turns it into a single error response.
"""

import time
from typing import Optional

from core.logging import get_logger
from search.executor import SearchExecutor
from search.facet_planner import FacetPlanner, get_facet_planner
from search.filter_compiler import compile_filters
from search.models import SearchRequest, SearchResponse
from search.query_planner import QueryPlanner, get_query_planner
from search.response_assembler import assemble_response
from search.schema_registry import SchemaRegistry

logger = get_logger(__name__)


class FacetedSearchService:
    """
    Stateless search engine. One instance may serve any number of requests;
    the collaborators are injected.
    """

    def __init__(
        self,
        schema_registry: SchemaRegistry,
        executor: SearchExecutor,
        query_planner: Optional[QueryPlanner] = None,
        facet_planner: Optional[FacetPlanner] = None,
    ):
        self.schema_registry = schema_registry
        self.executor = executor
        self.query_planner = query_planner or get_query_planner()
        self.facet_planner = facet_planner or get_facet_planner()

    def search(self, request: SearchRequest) -> SearchResponse:
        """
        Execute a faceted search.

        Args:
            request: Parsed search request

        Returns:
            SearchResponse with the result page, facets and pagination.

        Raises:
            SearchBackendError: If the schema lookup or the execution fails
        """
        t_start = time.time()

        schema = None
        if request.category_slug:
            schema = self.schema_registry.find_by_slug(request.category_slug)
            if schema is None:
                logger.info("Unknown category, searching all categories", category=request.category_slug)

        predicates = compile_filters(request.filters, schema)

        plan = self.query_planner.plan(
            predicates,
            text=request.text,
            category_id=schema.id if schema is not None else None,
            sort=request.sort,
            page=request.page,
            page_size=request.page_size,
        )
        plan = plan.with_facets(self.facet_planner.plan(plan.match, schema))

        t_exec = time.time()
        result = self.executor.execute(plan)
        exec_ms = int((time.time() - t_exec) * 1000)

        response = assemble_response(result, plan.facet_specs, request)

        logger.info(
            "Search completed",
            query=request.text or None,
            category=request.category_slug or None,
            category_resolved=schema is not None,
            predicates=len(predicates),
            sort=request.sort.value,
            page=request.page,
            total=response.pagination.total,
            returned=len(response.results),
            facets=len(response.facets),
            execution_ms=exec_ms,
            total_ms=int((time.time() - t_start) * 1000),
        )
        return response
