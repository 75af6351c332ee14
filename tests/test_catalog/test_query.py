"""
Tests for the listing query engine.

These tests verify filtering, every sort mode, sort stability and
the query's idempotence, on both synthetic catalogs and the fixtures.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from catalog.query import ListingQuery, matches, query
from shared.errors import ValidationError
from shared.models import Creator, Service, ServiceCategory, ServicePackage, SortOption


def make_service(
    service_id: str,
    price: int,
    delivery_days: int = 5,
    rating: float = 4.0,
    sales: int = 0,
    interest: int = 0,
    category: ServiceCategory = ServiceCategory.REELS_EDITING,
    title: str = "Service",
) -> Service:
    return Service(
        id=service_id,
        title=title,
        category=category,
        creator=Creator(id=f"cr-{service_id}", name="Creator", rating=rating),
        packages=[
            ServicePackage(
                id=f"{service_id}-pkg1",
                name="Basic",
                price=price,
                delivery_days=delivery_days,
                features=["one deliverable"],
            )
        ],
        sales_count=sales,
        interested_count=interest,
    )


def ids(services: list[Service]) -> list[str]:
    return [s.id for s in services]


@pytest.fixture
def three_services() -> list[Service]:
    """Prices 1500 / 100 / 500, only the 500 one delivers in 2 days."""
    return [
        make_service("c", price=1500),
        make_service("a", price=100),
        make_service("b", price=500, delivery_days=2),
    ]


@pytest.fixture
def catalog(data_store) -> list[Service]:
    return data_store.snapshot_services()


class TestPriceAndDelivery:
    """End-to-end filter scenarios on a small catalog."""

    def test_price_range_sorted_low_to_high(self, three_services):
        result = query(three_services, ListingQuery(min_price=0, max_price=2000, sort="price_low"))

        assert [s.min_price for s in result] == [100, 500, 1500]

    def test_delivery_ceiling(self, three_services):
        result = query(three_services, ListingQuery(max_delivery_days=2))

        assert ids(result) == ["b"]

    def test_price_bounds_are_inclusive(self, three_services):
        result = query(three_services, ListingQuery(min_price=100, max_price=500, sort="price_low"))

        assert ids(result) == ["a", "b"]

    def test_inverted_price_range_rejected(self, three_services):
        with pytest.raises(ValidationError) as exc:
            query(three_services, ListingQuery(min_price=500, max_price=100))
        assert exc.value.field == "price_range"

    def test_negative_price_rejected(self):
        with pytest.raises(PydanticValidationError):
            ListingQuery(min_price=-1)

    def test_unknown_category_rejected(self):
        with pytest.raises(PydanticValidationError):
            ListingQuery(category="knitting")


class TestTextAndCategory:
    """Tests for text search and category filters on the fixtures."""

    def test_search_matches_tags(self, catalog):
        result = query(catalog, ListingQuery(search="instagram", sort="best_selling"))

        assert ids(result) == ["svc-004", "svc-001"]

    def test_search_matches_creator_name(self, catalog):
        result = query(catalog, ListingQuery(search="souza", sort="price_low"))

        assert ids(result) == ["svc-001", "svc-005"]

    def test_search_is_case_insensitive(self, catalog):
        lower = query(catalog, ListingQuery(search="caption"))
        upper = query(catalog, ListingQuery(search="CAPTION"))

        assert ids(lower) == ids(upper)
        assert set(ids(lower)) == {"svc-001", "svc-006"}

    def test_empty_search_does_not_filter(self, catalog):
        assert len(query(catalog, ListingQuery(search=""))) == len(catalog)

    def test_category(self, catalog):
        result = query(catalog, ListingQuery(category="reels_editing", sort="price_low"))

        assert ids(result) == ["svc-006", "svc-001"]

    def test_all_category_does_not_filter(self, catalog):
        assert len(query(catalog, ListingQuery(category="all"))) == len(catalog)

    def test_no_matches(self, catalog):
        assert query(catalog, ListingQuery(search="podcast")) == []

    def test_matches_requires_every_filter(self, catalog):
        reels = catalog[0]

        assert matches(reels, ListingQuery(search="reels", category="reels_editing"))
        assert not matches(reels, ListingQuery(search="reels", category="consulting"))


class TestSorting:
    """Tests for every sort mode on the fixtures."""

    @pytest.mark.parametrize("sort, expected", [
        (SortOption.RELEVANCE, ["svc-002", "svc-001", "svc-004", "svc-006", "svc-005", "svc-003"]),
        (SortOption.BEST_SELLING, ["svc-004", "svc-002", "svc-001", "svc-006", "svc-003", "svc-005"]),
        (SortOption.BEST_RATED, ["svc-001", "svc-003", "svc-005", "svc-002", "svc-006", "svc-004"]),
        (SortOption.PRICE_LOW, ["svc-004", "svc-002", "svc-006", "svc-001", "svc-005", "svc-003"]),
        (SortOption.PRICE_HIGH, ["svc-003", "svc-005", "svc-001", "svc-006", "svc-002", "svc-004"]),
        (SortOption.FASTEST, ["svc-001", "svc-006", "svc-002", "svc-004", "svc-005", "svc-003"]),
    ])
    def test_sort_modes(self, catalog, sort, expected):
        assert ids(query(catalog, ListingQuery(sort=sort))) == expected

    def test_default_sort_is_relevance(self, catalog):
        assert ids(query(catalog, ListingQuery())) == ids(query(catalog, ListingQuery(sort="relevance")))

    @pytest.mark.parametrize("sort", list(SortOption))
    def test_ties_keep_catalog_order(self, sort):
        """Test that services with identical keys stay in input order."""
        tied = [make_service(f"svc-{i}", price=1000, delivery_days=3) for i in range(5)]

        assert ids(query(tied, ListingQuery(sort=sort))) == ids(tied)

    def test_descending_sort_is_stable(self):
        """Test that a descending sort does not reverse equal keys."""
        services = [
            make_service("x1", price=100, sales=10),
            make_service("big", price=100, sales=50),
            make_service("x2", price=100, sales=10),
        ]

        result = query(services, ListingQuery(sort="best_selling"))

        assert ids(result) == ["big", "x1", "x2"]


class TestQueryProperties:
    """Tests for properties that hold for any catalog and query."""

    @pytest.mark.parametrize("params", [
        ListingQuery(),
        ListingQuery(search="tiktok", sort="price_low"),
        ListingQuery(category="reels_editing", max_delivery_days=2, sort="fastest"),
        ListingQuery(min_price=10000, max_price=50000, sort="best_rated"),
    ])
    def test_idempotent(self, catalog, params):
        once = query(catalog, params)

        assert query(once, params) == once

    def test_input_not_modified(self, catalog):
        before = ids(catalog)

        query(catalog, ListingQuery(sort="price_high"))

        assert ids(catalog) == before


class TestActiveFilters:
    """Tests for which filters count as narrowing."""

    def test_defaults_are_not_active(self):
        params = ListingQuery(category="all", min_price=0, max_price=200_000, max_delivery_days=30)

        assert params.active_filters() == []

    def test_narrowed_filters(self):
        params = ListingQuery(
            search="reels",
            category="reels_editing",
            max_price=20000,
            max_delivery_days=2,
        )

        assert params.active_filters() == ["search", "category", "price", "delivery"]
