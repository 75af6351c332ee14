"""
Tests for the DataStore.

These tests verify that the data store correctly loads JSON fixtures,
hands out snapshots and commits order versions with compare-and-swap.
"""

import pytest

from shared.data_store import DataStore
from shared.errors import NotFoundError, ValidationError
from shared.models import OrderStatus


class TestDataStoreCatalog:
    """Tests for catalog operations."""

    def test_get_service(self, data_store: DataStore, reels_service_id: str):
        """Test retrieving a service by ID."""
        service = data_store.get_service(reels_service_id)

        assert service is not None
        assert service.creator.name == "Ana Souza"
        assert len(service.packages) == 3

    def test_get_nonexistent_service(self, data_store: DataStore):
        assert data_store.get_service("nonexistent-id") is None

    def test_require_service_raises(self, data_store: DataStore):
        with pytest.raises(NotFoundError) as exc:
            data_store.require_service("nonexistent-id")
        assert exc.value.kind == "service"

    def test_snapshot_keeps_catalog_order(self, data_store: DataStore):
        ids = [s.id for s in data_store.snapshot_services()]

        assert ids == ["svc-001", "svc-002", "svc-003", "svc-004", "svc-005", "svc-006"]

    def test_snapshot_is_isolated_from_later_writes(self, data_store: DataStore):
        """Test that a snapshot already taken doesn't see catalog writes."""
        snapshot = data_store.snapshot_services()

        data_store.remove_service("svc-003")

        assert len(snapshot) == 6
        assert len(data_store.snapshot_services()) == 5

    def test_get_services_by_creator(self, data_store: DataStore, ana_creator_id: str):
        services = data_store.get_services_by_creator(ana_creator_id)

        assert [s.id for s in services] == ["svc-001", "svc-005"]

    def test_replace_service(self, data_store: DataStore, reels_service_id: str):
        service = data_store.get_service(reels_service_id)
        data_store.replace_service(service.model_copy(update={"sales_count": 90}))

        assert data_store.get_service(reels_service_id).sales_count == 90

    def test_replace_unknown_service(self, data_store: DataStore):
        service = data_store.get_service("svc-001").model_copy(update={"id": "svc-nope"})

        with pytest.raises(NotFoundError):
            data_store.replace_service(service)

    def test_add_duplicate_service(self, data_store: DataStore):
        with pytest.raises(ValidationError):
            data_store.add_service(data_store.get_service("svc-001"))


class TestDataStoreOrders:
    """Tests for order operations."""

    def test_get_order(self, data_store: DataStore, pending_order_id: str):
        order = data_store.get_order(pending_order_id)

        assert order.status == OrderStatus.PENDING
        assert order.total_price == 15000
        assert order.package.id == "svc-001-pkg1"

    def test_orders_by_seller(self, data_store: DataStore):
        ids = {o.id for o in data_store.get_orders_by_seller("cr-001")}

        assert ids == {"ord-001", "ord-002", "ord-003", "ord-004"}

    def test_orders_by_buyer(self, data_store: DataStore):
        ids = {o.id for o in data_store.get_orders_by_buyer("buyer-001")}

        assert ids == {"ord-001", "ord-003"}

    def test_save_order_with_current_version(self, data_store: DataStore, pending_order_id: str):
        order = data_store.get_order(pending_order_id)
        updated = order.model_copy(update={"status": "in_progress", "version": 2})

        assert data_store.save_order(updated, expected_version=1) is True
        assert data_store.get_order(pending_order_id).status == OrderStatus.IN_PROGRESS

    def test_save_order_with_stale_version(self, data_store: DataStore, pending_order_id: str):
        """Test that a writer holding an old version cannot commit."""
        order = data_store.get_order(pending_order_id)
        first = order.model_copy(update={"status": "in_progress", "version": 2})
        second = order.model_copy(update={"status": "cancelled", "version": 2})

        assert data_store.save_order(first, expected_version=1) is True
        assert data_store.save_order(second, expected_version=1) is False
        assert data_store.get_order(pending_order_id).status == OrderStatus.IN_PROGRESS

    def test_save_unknown_order(self, data_store: DataStore):
        order = data_store.get_order("ord-001").model_copy(update={"id": "ord-nope"})

        with pytest.raises(NotFoundError):
            data_store.save_order(order, expected_version=1)

    def test_add_duplicate_order(self, data_store: DataStore):
        with pytest.raises(ValidationError):
            data_store.add_order(data_store.get_order("ord-001"))

    def test_reload_discards_changes(self, data_store: DataStore, pending_order_id: str):
        order = data_store.get_order(pending_order_id)
        data_store.save_order(order.model_copy(update={"version": 2}), expected_version=1)

        data_store.reload()

        assert data_store.get_order(pending_order_id).version == 1

    def test_missing_fixture_dir_loads_empty(self, tmp_path):
        store = DataStore(data_dir=tmp_path)

        assert store.snapshot_services() == []
        assert store.get_orders() == []
