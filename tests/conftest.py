"""
Pytest configuration and shared fixtures for the listing search tests.
"""
import os
import sys
from datetime import datetime, timedelta

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), "src"))

# Load environment variables
from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env"))

# The app module builds its settings at import time
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGODB_DATABASE", "listing_search_test")


# ============================================================================
# Fixtures: Test Data Factories
# ============================================================================

TV_CATEGORY_ID = "cat-tv"
PHONE_CATEGORY_ID = "cat-phone"

_BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def tv_category() -> dict:
    """Televisions category as stored in the categories collection."""
    return {
        "_id": TV_CATEGORY_ID,
        "name": "Televisions",
        "slug": "televisions",
        "attributeSchema": {
            "brand": {
                "type": "string",
                "label": "Brand",
                "options": ["Samsung", "LG"],
                "required": True,
                "filterable": True,
            },
            "screenSize": {
                "type": "string",
                "label": "Screen Size",
                "options": ['43"', '55"', '65"'],
                "required": True,
                "filterable": True,
            },
            "smartTV": {
                "type": "boolean",
                "label": "Smart TV",
                "filterable": True,
            },
            "warranty": {
                "type": "string",
                "label": "Warranty",
                "filterable": False,
            },
        },
    }


@pytest.fixture
def phone_category() -> dict:
    return {
        "_id": PHONE_CATEGORY_ID,
        "name": "Mobile Phones",
        "slug": "mobile-phones",
        "attributeSchema": {
            "storage": {
                "type": "string",
                "label": "Storage",
                "options": ["128GB", "256GB"],
                "filterable": True,
            },
        },
    }


def make_listing(
    listing_id: str,
    title: str,
    price: float,
    location: str = "Mumbai",
    category_id: str = TV_CATEGORY_ID,
    attributes: dict = None,
    is_active: bool = True,
    age_days: int = 0,
    description: str = None,
) -> dict:
    """Helper to create a listing document."""
    return {
        "_id": listing_id,
        "title": title,
        "description": description or f"{title} in good condition",
        "price": price,
        "location": location,
        "categoryId": category_id,
        "attributes": attributes or {},
        "images": [f"https://img.example.com/{listing_id}.jpg"],
        "tags": [],
        "isActive": is_active,
        "createdAt": _BASE_TIME - timedelta(days=age_days),
    }


@pytest.fixture
def sample_listings() -> list[dict]:
    """A small marketplace: TVs and phones across a few cities."""
    return [
        make_listing("tv-1", "Samsung 55 inch QLED TV", 55000, "Mumbai",
                     attributes={"brand": "Samsung", "screenSize": '55"', "smartTV": True}, age_days=1),
        make_listing("tv-2", "Samsung 43 inch LED TV", 28000, "Pune",
                     attributes={"brand": "Samsung", "screenSize": '43"', "smartTV": True}, age_days=2),
        make_listing("tv-3", "LG 65 inch OLED TV", 150000, "Delhi",
                     attributes={"brand": "LG", "screenSize": '65"', "smartTV": True}, age_days=3),
        make_listing("tv-4", "LG 43 inch basic TV", 800, "Mumbai",
                     attributes={"brand": "LG", "screenSize": '43"', "smartTV": False}, age_days=4),
        make_listing("tv-5", "Samsung 65 inch Neo QLED TV", 210000, "mumbai suburbs",
                     attributes={"brand": "Samsung", "screenSize": '65"'}, age_days=5),
        make_listing("tv-6", "Old Samsung TV", 4000, "Pune",
                     attributes={"brand": "Samsung"}, is_active=False, age_days=6),
        make_listing("ph-1", "Samsung Galaxy phone", 30000, "Delhi", category_id=PHONE_CATEGORY_ID,
                     attributes={"brand": "Samsung", "storage": "256GB"}, age_days=7),
        make_listing("ph-2", "Pixel phone", 45000, "Bengaluru", category_id=PHONE_CATEGORY_ID,
                     attributes={"brand": "Google", "storage": "128GB"}, age_days=8),
        make_listing("orphan-1", "Samsung TV without category", 9000, "Mumbai", category_id="cat-missing",
                     attributes={"brand": "Samsung"}, age_days=9),
    ]


# ============================================================================
# Fixtures: Engine
# ============================================================================

@pytest.fixture
def schema_registry(tv_category, phone_category):
    from search.schema_registry import InMemorySchemaRegistry
    return InMemorySchemaRegistry([tv_category, phone_category])


@pytest.fixture
def memory_executor(sample_listings, tv_category, phone_category):
    from search.memory_executor import InMemorySearchExecutor
    return InMemorySearchExecutor(sample_listings, [tv_category, phone_category])


@pytest.fixture
def search_service(schema_registry, memory_executor):
    from search.service import FacetedSearchService
    return FacetedSearchService(schema_registry=schema_registry, executor=memory_executor)


# ============================================================================
# Fixtures: FastAPI Test Client
# ============================================================================

@pytest.fixture
def app():
    """FastAPI application (lifespan not started, so no MongoDB client)."""
    from api.app import create_app
    return create_app()


@pytest.fixture
def client(app, search_service, schema_registry):
    """TestClient with the search engine wired to in-memory collaborators."""
    from fastapi.testclient import TestClient
    from api.dependencies import get_schema_registry, get_search_service

    app.dependency_overrides[get_search_service] = lambda: search_service
    app.dependency_overrides[get_schema_registry] = lambda: schema_registry
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================================
# Markers auto-use
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "mongodb: marks tests that require a MongoDB server")


def pytest_collection_modifyitems(config, items):
    """Auto-skip MongoDB tests unless a test server URI is configured."""
    skip_mongodb = pytest.mark.skip(reason="MongoDB tests require TEST_MONGODB_URI")
    if os.getenv("TEST_MONGODB_URI"):
        return
    for item in items:
        if "mongodb" in item.keywords:
            item.add_marker(skip_mongodb)
