"""
Unit tests for the response assembler.
"""

from datetime import datetime

import pytest

from search.executor import ExecutionResult
from search.models import SearchRequest
from search.plan import FacetSource, FacetSpec
from search.response_assembler import (
    assemble_response,
    build_facets,
    build_pagination,
    echo_query,
    price_bucket_label,
)


PRICE = FacetSpec("priceRange", "Price Range", "string", FacetSource.PRICE_BUCKET)
LOCATION = FacetSpec("location", "Location", "string", FacetSource.LOCATION)
BRAND = FacetSpec("brand", "Brand", "string", FacetSource.BRAND)
SMART = FacetSpec("smartTV", "Smart TV", "boolean", FacetSource.SCHEMA_ATTRIBUTE)


class TestPagination:

    def test_middle_page(self):
        pagination = build_pagination(total=100, page=2, page_size=10)

        assert pagination.total_pages == 10
        assert pagination.has_next is True
        assert pagination.has_prev is True

    def test_last_page(self):
        pagination = build_pagination(total=25, page=3, page_size=10)

        assert pagination.total_pages == 3
        assert pagination.has_next is False

    def test_no_results(self):
        pagination = build_pagination(total=0, page=1, page_size=12)

        assert pagination.total_pages == 0
        assert pagination.has_next is False
        assert pagination.has_prev is False

    def test_page_beyond_end(self):
        pagination = build_pagination(total=5, page=4, page_size=12)

        assert pagination.page == 4
        assert pagination.has_next is False
        assert pagination.has_prev is True

    def test_serialized_aliases(self):
        data = build_pagination(total=30, page=1, page_size=12).model_dump(by_alias=True)

        assert data == {
            "page": 1,
            "limit": 12,
            "total": 30,
            "totalPages": 3,
            "hasNext": True,
            "hasPrev": False,
        }


class TestFacets:

    def test_price_options_labeled_and_ordered(self):
        facets = build_facets(
            {"priceRange": [{"id": 0, "count": 1}, {"id": 100000, "count": 2}, {"id": "Other", "count": 1}]},
            [PRICE],
        )

        options = facets["priceRange"].options
        assert [(o.value, o.label, o.count) for o in options] == [
            ("0", "Under ₹1,000", 1),
            ("100000", "Above ₹1,00,000", 2),
            ("Other", "₹Other+", 1),
        ]

    def test_zero_count_buckets_dropped(self):
        facets = build_facets({"priceRange": [{"id": 1000, "count": 0}]}, [PRICE])

        assert facets["priceRange"].options == []

    def test_always_present_facets(self):
        facets = build_facets({}, [PRICE, LOCATION, BRAND, SMART])

        assert set(facets) == {"priceRange", "location"}
        assert facets["location"].options == []

    def test_empty_groups_dropped(self):
        facets = build_facets(
            {"brand": [{"id": None, "count": 3}, {"id": "", "count": 2}, {"id": "LG", "count": 1}]},
            [BRAND],
        )

        assert [o.value for o in facets["brand"].options] == ["LG"]

    def test_only_empty_groups_omits_facet(self):
        facets = build_facets({"brand": [{"id": None, "count": 3}]}, [BRAND])

        assert "brand" not in facets

    def test_boolean_values_rendered(self):
        facets = build_facets({"smartTV": [{"id": True, "count": 3}, {"id": False, "count": 1}]}, [SMART])

        smart = facets["smartTV"]
        assert smart.value_type == "boolean"
        assert smart.label == "Smart TV"
        assert [(o.value, o.label) for o in smart.options] == [("true", "true"), ("false", "false")]

    def test_array_values_rendered(self):
        facets = build_facets({"smartTV": [{"id": ["HDMI", "USB"], "count": 2}]}, [SMART])

        assert facets["smartTV"].options[0].value == "HDMI, USB"

    def test_facet_order_follows_specs(self):
        facets = build_facets(
            {"brand": [{"id": "LG", "count": 1}], "smartTV": [{"id": True, "count": 1}]},
            [SMART, PRICE, LOCATION, BRAND],
        )

        assert list(facets) == ["smartTV", "priceRange", "location", "brand"]


class TestPriceBucketLabel:

    @pytest.mark.parametrize("token,label", [
        ("0", "Under ₹1,000"),
        ("1000", "₹1,000 - ₹5,000"),
        ("50000", "₹50,000 - ₹1,00,000"),
        ("123", "₹123+"),
    ])
    def test_labels(self, token, label):
        assert price_bucket_label(token) == label


class TestEchoAndAssemble:

    def test_echo_omits_empty(self):
        echoed = echo_query(SearchRequest())

        assert echoed.model_dump(exclude_none=True) == {}

    def test_echo_values(self):
        request = SearchRequest(text="tv", category_slug="televisions", filters={"brand": "LG"})

        assert echo_query(request).model_dump() == {
            "q": "tv",
            "category": "televisions",
            "filters": {"brand": "LG"},
        }

    def test_assemble(self):
        result = ExecutionResult(
            results=[{
                "_id": "tv-1",
                "title": "Samsung TV",
                "price": 55000,
                "location": "Mumbai",
                "attributes": {"brand": "Samsung"},
                "createdAt": datetime(2024, 1, 1),
                "category": {"name": "Televisions", "slug": "televisions"},
            }],
            total_count=1,
            facet_counts={"priceRange": [{"id": 50000, "count": 1}], "location": [{"id": "Mumbai", "count": 1}]},
        )

        response = assemble_response(result, [PRICE, LOCATION, BRAND], SearchRequest())

        item = response.results[0]
        assert item.id == "tv-1"
        assert item.category.slug == "televisions"
        assert item.images == []
        assert item.score is None
        assert response.pagination.total == 1
        assert set(response.facets) == {"priceRange", "location"}

    def test_negative_total_clamped(self):
        response = assemble_response(ExecutionResult(total_count=-1), [], SearchRequest())

        assert response.pagination.total == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
