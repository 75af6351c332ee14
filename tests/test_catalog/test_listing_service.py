"""
Tests for the catalog service.

These tests verify creator submissions, package edits and the
browsing analytics events the service publishes.
"""

import pytest

from catalog.listing_service import CatalogService, PackageDraft
from catalog.query import ListingQuery
from shared.errors import NotFoundError, ValidationError
from shared.events import EventTypes
from shared.models import ServiceCategory


@pytest.fixture
def catalog(event_bus, data_store) -> CatalogService:
    return CatalogService(event_bus=event_bus, data_store=data_store)


def draft(name: str = "Basic", price: int = 10000, delivery_days: int = 3, **kwargs) -> PackageDraft:
    kwargs.setdefault("features", ["one deliverable"])
    return PackageDraft(name=name, price=price, delivery_days=delivery_days, **kwargs)


class TestPublishService:
    """Tests for publishing new services."""

    def test_publish(self, catalog: CatalogService, event_bus, data_store, new_creator):
        service = catalog.publish_service(
            creator=new_creator,
            title="  Podcast cuts  ",
            description="Short clips from your episodes",
            category=ServiceCategory.REELS_EDITING,
            packages=[draft("Basic", 9000, 3), draft("Premium", 20000, 2)],
            tags=["podcast", " "],
        )

        assert service.id.startswith("svc-")
        assert service.title == "Podcast cuts"
        assert service.tags == ["podcast"]
        assert [p.id for p in service.packages] == [f"{service.id}-pkg1", f"{service.id}-pkg2"]
        assert service.min_price == 9000
        assert service.min_delivery_days == 2
        assert data_store.get_service(service.id) == service

        events = event_bus.get_events_of_type(EventTypes.SERVICE_PUBLISHED)
        assert len(events) == 1
        assert events[0].payload["creator_id"] == new_creator.id
        assert events[0].payload["min_price"] == 9000

    def test_published_service_is_searchable(self, catalog: CatalogService, new_creator):
        service = catalog.publish_service(
            creator=new_creator,
            title="Podcast cuts",
            description="Short clips",
            category=ServiceCategory.REELS_EDITING,
            packages=[draft()],
        )

        results = catalog.search(ListingQuery(search="podcast"))

        assert [s.id for s in results] == [service.id]

    def test_missing_title_rejected(self, catalog: CatalogService, new_creator):
        with pytest.raises(ValidationError):
            catalog.publish_service(new_creator, " ", "desc", ServiceCategory.CONSULTING, [draft()])

    @pytest.mark.parametrize("count", [0, 4])
    def test_package_count_rejected(self, catalog: CatalogService, new_creator, count):
        with pytest.raises(ValidationError) as exc:
            catalog.publish_service(
                new_creator, "Title", "desc", ServiceCategory.CONSULTING,
                [draft(f"P{i}") for i in range(count)],
            )
        assert exc.value.field == "packages"

    def test_package_without_features_rejected(self, catalog: CatalogService, new_creator):
        with pytest.raises(ValidationError):
            catalog.publish_service(
                new_creator, "Title", "desc", ServiceCategory.CONSULTING,
                [draft(features=["  "])],
            )

    def test_invalid_package_price_rejected(self, catalog: CatalogService, new_creator, event_bus):
        with pytest.raises(ValidationError):
            catalog.publish_service(
                new_creator, "Title", "desc", ServiceCategory.CONSULTING,
                [draft(price=-5)],
            )
        assert event_bus.get_events_of_type(EventTypes.SERVICE_PUBLISHED) == []


class TestUpdatePackages:
    """Tests for package edits."""

    def test_update_recomputes_derived_fields(self, catalog: CatalogService, event_bus, consulting_service_id, ana_creator_id):
        updated = catalog.update_packages(
            consulting_service_id,
            ana_creator_id,
            [draft("Quick call", 12000, 1), draft("Deep dive", 40000, 5)],
        )

        assert updated.min_price == 12000
        assert updated.max_price == 40000
        assert updated.min_delivery_days == 1

        events = event_bus.get_events_of_type(EventTypes.SERVICE_PACKAGES_UPDATED)
        assert events[0].payload["previous_min_price"] == 25000
        assert events[0].payload["new_min_price"] == 12000

    def test_existing_package_id_kept(self, catalog: CatalogService, consulting_service_id, ana_creator_id):
        updated = catalog.update_packages(
            consulting_service_id,
            ana_creator_id,
            [draft("Session", 30000, 3, id="svc-005-pkg1")],
        )

        assert updated.packages[0].id == "svc-005-pkg1"

    def test_duplicate_package_ids_rejected(self, catalog: CatalogService, data_store, consulting_service_id, ana_creator_id):
        with pytest.raises(ValidationError) as exc:
            catalog.update_packages(
                consulting_service_id,
                ana_creator_id,
                [draft("Session", 30000, 3, id="svc-005-pkg1"), draft("Long session", 50000, 5, id="svc-005-pkg1")],
            )

        assert exc.value.field == "packages"
        assert data_store.get_service(consulting_service_id).min_price == 25000

    def test_existing_orders_keep_their_snapshot(self, catalog: CatalogService, data_store, reels_service_id, ana_creator_id):
        catalog.update_packages(reels_service_id, ana_creator_id, [draft("Only", 99900, 10)])

        order = data_store.get_order("ord-001")
        assert order.total_price == 15000
        assert order.package.price == 15000

    def test_non_owner_rejected(self, catalog: CatalogService, reels_service_id):
        with pytest.raises(ValidationError) as exc:
            catalog.update_packages(reels_service_id, "cr-002", [draft()])
        assert exc.value.field == "creator_id"

    def test_unknown_service(self, catalog: CatalogService):
        with pytest.raises(NotFoundError):
            catalog.update_packages("svc-nope", "cr-001", [draft()])


class TestBrowsing:
    """Tests for browsing and analytics events."""

    def test_feed(self, catalog: CatalogService):
        assert [s.id for s in catalog.feed(limit=2)] == ["svc-002", "svc-001"]
        assert len(catalog.feed()) == 6

    @pytest.mark.parametrize("limit", [0, -1])
    def test_feed_rejects_limit_below_one(self, catalog: CatalogService, limit):
        with pytest.raises(ValidationError) as exc:
            catalog.feed(limit=limit)
        assert exc.value.field == "limit"

    def test_search_publishes_search_event(self, catalog: CatalogService, event_bus):
        catalog.search(ListingQuery(search="instagram"), user_id="buyer-001")

        events = event_bus.get_events_of_type(EventTypes.SEARCH_PERFORMED)
        assert events[0].payload == {"query": "instagram", "results_count": 2, "user_id": "buyer-001"}
        assert event_bus.get_events_of_type(EventTypes.FILTERS_APPLIED) == []

    def test_search_publishes_filters_event(self, catalog: CatalogService, event_bus):
        catalog.search(ListingQuery(category="reels_editing", max_delivery_days=2))

        events = event_bus.get_events_of_type(EventTypes.FILTERS_APPLIED)
        assert events[0].payload["active"] == ["category", "delivery"]
        assert event_bus.get_events_of_type(EventTypes.SEARCH_PERFORMED) == []

    def test_invalid_search_publishes_nothing(self, catalog: CatalogService, event_bus):
        with pytest.raises(ValidationError):
            catalog.search(ListingQuery(min_price=900, max_price=100))

        assert event_bus.get_event_log() == []

    def test_record_view(self, catalog: CatalogService, event_bus, reels_service_id):
        service = catalog.record_view(reels_service_id, user_id="buyer-002")

        assert service.id == reels_service_id
        assert event_bus.get_events_of_type(EventTypes.SERVICE_VIEWED)[0].payload["user_id"] == "buyer-002"

    def test_record_view_unknown_service(self, catalog: CatalogService, event_bus):
        with pytest.raises(NotFoundError):
            catalog.record_view("svc-nope")
        assert event_bus.get_event_log() == []

    def test_register_interest(self, catalog: CatalogService, event_bus, data_store, reels_service_id):
        updated = catalog.register_interest(reels_service_id)

        assert updated.interested_count == 46
        assert data_store.get_service(reels_service_id).interested_count == 46
        event = event_bus.get_events_of_type(EventTypes.SERVICE_INTEREST_REGISTERED)[0]
        assert event.payload["interested_count"] == 46
