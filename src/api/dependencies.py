"""
FastAPI dependencies wiring the search engine to the application's
MongoDB client.

Tests replace these through app.dependency_overrides.
"""

from fastapi import Depends

from config.database import MongoDatabase, get_database
from search.mongo_executor import MongoSearchExecutor
from search.schema_registry import MongoSchemaRegistry, SchemaRegistry
from search.service import FacetedSearchService


def get_schema_registry(mongo: MongoDatabase = Depends(get_database)) -> SchemaRegistry:
    return MongoSchemaRegistry(mongo.db, mongo.settings.categories_collection)


def get_search_service(
    mongo: MongoDatabase = Depends(get_database),
    registry: SchemaRegistry = Depends(get_schema_registry),
) -> FacetedSearchService:
    return FacetedSearchService(
        schema_registry=registry,
        executor=MongoSearchExecutor(mongo.db, mongo.settings.listings_collection),
    )
