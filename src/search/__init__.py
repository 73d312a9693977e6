"""
Faceted Search Module.

Provides:
- SearchRequest / SearchResponse: request parsing and response contract
- compile_filters: raw filter map -> PredicateSet
- QueryPlanner / FacetPlanner: ExecutionPlan construction
- MongoSearchExecutor / InMemorySearchExecutor: one-call plan execution
- MongoSchemaRegistry / InMemorySchemaRegistry: category schema lookup
- FacetedSearchService: the end-to-end search
"""

from search.errors import SchemaLookupError, SearchBackendError, SearchExecutionError
from search.facet_planner import FacetPlanner
from search.filter_compiler import compile_filters
from search.memory_executor import InMemorySearchExecutor
from search.models import SearchRequest, SearchResponse, SortMode
from search.mongo_executor import MongoSearchExecutor
from search.query_planner import QueryPlanner
from search.schema_registry import InMemorySchemaRegistry, MongoSchemaRegistry
from search.service import FacetedSearchService

__all__ = [
    "SearchRequest",
    "SearchResponse",
    "SortMode",
    "compile_filters",
    "QueryPlanner",
    "FacetPlanner",
    "MongoSearchExecutor",
    "InMemorySearchExecutor",
    "MongoSchemaRegistry",
    "InMemorySchemaRegistry",
    "FacetedSearchService",
    "SearchBackendError",
    "SchemaLookupError",
    "SearchExecutionError",
]
