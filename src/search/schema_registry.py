"""
Attribute Schema Registry.

Resolves a category slug to its declared attribute schema. The registry
is an injected capability: the service only depends on the
SchemaRegistry protocol, so tests and local runs can use the in-memory
registry while the API uses MongoDB.

A slug that matches nothing is not an error. It means "no category
predicate and no category-specific facets".
"""

from typing import Any, Dict, Iterable, List, Optional, Protocol

from pydantic import ValidationError
from pymongo.database import Database
from pymongo.errors import PyMongoError

from core.logging import get_logger
from search.errors import SchemaLookupError
from search.models import CategorySchema

logger = get_logger(__name__)


_CATEGORY_PROJECTION = {"name": 1, "slug": 1, "attributeSchema": 1}


class SchemaRegistry(Protocol):
    def find_by_slug(self, slug: str) -> Optional[CategorySchema]:
        ...

    def list_categories(self) -> List[CategorySchema]:
        ...


# =============================================================================
# MongoDB
# =============================================================================

class MongoSchemaRegistry:
    """Reads category schemas from the categories collection."""

    def __init__(self, db: Database, collection: str = "categories"):
        self._collection = db[collection]

    def find_by_slug(self, slug: str) -> Optional[CategorySchema]:
        """
        Args:
            slug: Category slug (already trimmed)

        Returns:
            The CategorySchema, or None when no category has this slug.

        Raises:
            SchemaLookupError: If the read fails or the stored document is invalid
        """
        if not slug:
            return None
        try:
            doc = self._collection.find_one({"slug": slug}, _CATEGORY_PROJECTION)
        except PyMongoError as e:
            raise SchemaLookupError(f"Category lookup failed for slug={slug!r}: {e}") from e
        if doc is None:
            logger.debug("Category not found", slug=slug)
            return None
        return _to_schema(doc)

    def list_categories(self) -> List[CategorySchema]:
        """All categories sorted by name."""
        try:
            docs = list(self._collection.find({}, _CATEGORY_PROJECTION).sort("name", 1))
        except PyMongoError as e:
            raise SchemaLookupError(f"Category listing failed: {e}") from e
        return [_to_schema(doc) for doc in docs]


def _to_schema(doc: Dict[str, Any]) -> CategorySchema:
    try:
        return CategorySchema.model_validate(doc)
    except ValidationError as e:
        raise SchemaLookupError(
            f"Invalid category document slug={doc.get('slug')!r}: {e}"
        ) from e


# =============================================================================
# In-Memory
# =============================================================================

class InMemorySchemaRegistry:
    """
    Dict-backed registry for development and testing.

    Accepts CategorySchema instances or raw category documents.
    """

    def __init__(self, categories: Iterable[Any] = ()):
        self._by_slug: Dict[str, CategorySchema] = {}
        for category in categories:
            schema = category if isinstance(category, CategorySchema) else _to_schema(category)
            self._by_slug[schema.slug] = schema

    def find_by_slug(self, slug: str) -> Optional[CategorySchema]:
        if not slug:
            return None
        return self._by_slug.get(slug)

    def list_categories(self) -> List[CategorySchema]:
        return sorted(self._by_slug.values(), key=lambda c: c.name)
