"""
Unit tests for the filter compiler.

Tests cover:
1. Price bounds, price buckets and their merge
2. Location substring predicates
3. Attribute equality and membership with string coercion
4. Blank values, malformed keys and non-object input
5. Independence from the key order of the input

Run with: PYTHONPATH=src python -m pytest tests/unit/test_filter_compiler.py -v
"""

import pytest

from search.filter_compiler import compile_filters
from search.models import CategorySchema
from search.plan import Predicate, PredicateOperator, PredicateSet


# =============================================================================
# Price
# =============================================================================

class TestPriceFilters:

    def test_price_min_only(self):
        predicates = compile_filters({"priceMin": 1000})

        assert list(predicates) == [Predicate("price", PredicateOperator.RANGE, {"gte": 1000.0})]

    def test_price_min_and_max_merge(self):
        predicates = compile_filters({"priceMin": "1000", "priceMax": "5000"})

        assert len(predicates) == 1
        assert predicates.get("price").value == {"gte": 1000.0, "lte": 5000.0}

    def test_non_numeric_bound_dropped(self):
        predicates = compile_filters({"priceMin": "cheap", "priceMax": 500})

        assert predicates.get("price").value == {"lte": 500.0}

    def test_bool_bound_dropped(self):
        assert len(compile_filters({"priceMin": True})) == 0

    @pytest.mark.parametrize("token,expected", [
        ("0", {"gte": 0, "lt": 1000}),
        ("5000", {"gte": 5000, "lt": 10000}),
        ("100000", {"gte": 100000}),
    ])
    def test_price_bucket(self, token, expected):
        predicates = compile_filters({"priceRange": token})

        assert predicates.get("price").value == expected

    def test_numeric_bucket_token(self):
        predicates = compile_filters({"priceRange": 25000})

        assert predicates.get("price").value == {"gte": 25000, "lt": 50000}

    def test_unknown_bucket_ignored(self):
        assert len(compile_filters({"priceRange": "123"})) == 0

    def test_explicit_min_wins_over_bucket(self):
        """priceMin replaces the bucket's lower bound, the bucket keeps its upper."""
        predicates = compile_filters({"priceRange": "5000", "priceMin": 6000})

        assert predicates.get("price").value == {"gte": 6000.0, "lt": 10000}

    def test_explicit_max_wins_over_bucket(self):
        predicates = compile_filters({"priceRange": "5000", "priceMax": 7000})

        assert predicates.get("price").value == {"gte": 5000, "lte": 7000.0}

    def test_single_range_predicate_on_price(self):
        predicates = compile_filters({"priceRange": "1000", "priceMin": 1500, "priceMax": 4000})

        assert predicates.fields().count("price") == 1


# =============================================================================
# Location
# =============================================================================

class TestLocationFilter:

    def test_location_regex(self):
        predicates = compile_filters({"location": "  mumbai "})

        assert list(predicates) == [Predicate("location", PredicateOperator.REGEX, "mumbai")]

    def test_location_not_an_attribute(self):
        predicates = compile_filters({"location": "Pune"})

        assert predicates.get("attributes.location") is None

    def test_non_scalar_location_dropped(self):
        assert len(compile_filters({"location": {"city": "Pune"}})) == 0


# =============================================================================
# Attributes
# =============================================================================

class TestAttributeFilters:

    def test_scalar_equality(self):
        predicates = compile_filters({"brand": "Samsung"})

        assert list(predicates) == [
            Predicate("attributes.brand", PredicateOperator.EQ, "Samsung")
        ]

    def test_boolean_and_number_coerced_to_strings(self):
        predicates = compile_filters({"smartTV": True, "screenSize": 55.0})

        assert predicates.get("attributes.smartTV").value == "true"
        assert predicates.get("attributes.screenSize").value == "55"

    def test_list_membership(self):
        predicates = compile_filters({"brand": ["Samsung", "LG", "Samsung", "", None]})

        predicate = predicates.get("attributes.brand")
        assert predicate.operator == PredicateOperator.IN
        assert predicate.value == ("Samsung", "LG")

    def test_empty_list_dropped(self):
        assert len(compile_filters({"brand": []})) == 0
        assert len(compile_filters({"brand": ["", None]})) == 0

    def test_object_value_dropped(self):
        assert len(compile_filters({"brand": {"$ne": "LG"}})) == 0

    @pytest.mark.parametrize("key", ["$where", "a.$b", ".brand", "brand.", "a..b", " brand"])
    def test_malformed_keys_ignored(self, key):
        assert len(compile_filters({key: "x"})) == 0

    def test_nested_key_allowed(self):
        predicates = compile_filters({"specs.ram": "8GB"})

        assert predicates.get("attributes.specs.ram").value == "8GB"

    def test_undeclared_key_still_applies(self, tv_category):
        schema = CategorySchema.model_validate(tv_category)

        predicates = compile_filters({"color": "Black"}, schema)

        assert predicates.get("attributes.color").value == "Black"


# =============================================================================
# Whole-map behavior
# =============================================================================

class TestCompileFilters:

    @pytest.mark.parametrize("filters", [None, {}, [], "brand=LG"])
    def test_empty_or_invalid_input(self, filters):
        assert compile_filters(filters) == PredicateSet()

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_values_are_not_filters(self, value):
        filters = {"brand": value, "priceMin": value, "location": value, "priceRange": value}

        assert len(compile_filters(filters)) == 0

    def test_output_order(self):
        predicates = compile_filters({
            "screenSize": '55"',
            "location": "Mumbai",
            "brand": "Samsung",
            "priceMin": 1000,
        })

        assert predicates.fields() == (
            "price",
            "location",
            "attributes.brand",
            "attributes.screenSize",
        )

    def test_key_order_does_not_matter(self):
        a = compile_filters({"brand": "LG", "priceRange": "5000", "priceMin": 6000, "location": "Pune"})
        b = compile_filters({"location": "Pune", "priceMin": 6000, "priceRange": "5000", "brand": "LG"})

        assert a == b

    def test_samsung_above_thousand(self):
        """The canonical scenario: brand equality plus a lower price bound."""
        predicates = compile_filters({"brand": "Samsung", "priceMin": 1000})

        assert [p.to_dict() for p in predicates] == [
            {"field": "price", "operator": "range", "value": {"gte": 1000.0}},
            {"field": "attributes.brand", "operator": "eq", "value": "Samsung"},
        ]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
