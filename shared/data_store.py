"""
JSON-backed data store for the marketplace engine.

This module is the data-access collaborator the engine queries on every call.
It loads services and orders from JSON fixture files and keeps them in memory.
In a real deployment this would be a database behind the same methods.

Design decisions:
- Fixtures are loaded lazily, on first access
- Models are immutable; every write replaces the stored model
- Readers get snapshots (list copies of immutable models), never live views
- Order writes are compare-and-swap on the order's version, so two writers
  racing on the same order cannot both commit
- All access is guarded by a re-entrant lock
"""

import json
import threading
from pathlib import Path
from typing import Optional

from shared.errors import NotFoundError, ValidationError
from shared.models import Order, Service


class DataStore:
    """
    Central store for the catalog and the orders.

    The catalog part is the "Catalog Store": append/update/remove with no
    business logic. The order part only accepts new orders and versioned
    replacements; orders are never deleted.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        """
        Initialize the data store.

        Args:
            data_dir: Path to the directory containing JSON fixtures.
                     Defaults to ./data relative to project root.
        """
        if data_dir is None:
            data_dir = Path(__file__).parent.parent / "data"

        self.data_dir = Path(data_dir)
        self._lock = threading.RLock()

        # In-memory caches - loaded lazily
        self._services: Optional[dict[str, Service]] = None
        self._orders: Optional[dict[str, Order]] = None

    # =========================================================================
    # Data Loading (lazy)
    # =========================================================================

    def _load_json(self, filename: str) -> list[dict]:
        """Load a JSON fixture file. Missing files load as empty."""
        filepath = self.data_dir / filename
        if not filepath.exists():
            return []
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)

    def _ensure_services_loaded(self) -> dict[str, Service]:
        with self._lock:
            if self._services is None:
                data = self._load_json("services.json")
                self._services = {s["id"]: Service.model_validate(s) for s in data}
            return self._services

    def _ensure_orders_loaded(self) -> dict[str, Order]:
        with self._lock:
            if self._orders is None:
                data = self._load_json("orders.json")
                self._orders = {o["id"]: Order.model_validate(o) for o in data}
            return self._orders

    # =========================================================================
    # Catalog Operations
    # =========================================================================

    def get_service(self, service_id: str) -> Optional[Service]:
        """Get a service by ID."""
        with self._lock:
            return self._ensure_services_loaded().get(service_id)

    def require_service(self, service_id: str) -> Service:
        """Get a service by ID or raise NotFoundError."""
        service = self.get_service(service_id)
        if service is None:
            raise NotFoundError("service", service_id)
        return service

    def snapshot_services(self) -> list[Service]:
        """
        Immutable snapshot of the catalog, in insertion order.

        Listing queries run against this; later catalog writes do not
        affect a snapshot that was already taken.
        """
        with self._lock:
            return list(self._ensure_services_loaded().values())

    def get_services_by_creator(self, creator_id: str) -> list[Service]:
        """Get all services owned by a creator."""
        return [s for s in self.snapshot_services() if s.creator.id == creator_id]

    def add_service(self, service: Service) -> Service:
        """Append a new service to the catalog."""
        with self._lock:
            services = self._ensure_services_loaded()
            if service.id in services:
                raise ValidationError(f"Service already exists: {service.id}", field="id")
            services[service.id] = service
            return service

    def replace_service(self, service: Service) -> Service:
        """Replace an existing service with an updated version."""
        with self._lock:
            services = self._ensure_services_loaded()
            if service.id not in services:
                raise NotFoundError("service", service.id)
            services[service.id] = service
            return service

    def remove_service(self, service_id: str) -> Service:
        """Remove a service from the catalog. Existing orders keep their snapshot."""
        with self._lock:
            services = self._ensure_services_loaded()
            if service_id not in services:
                raise NotFoundError("service", service_id)
            return services.pop(service_id)

    # =========================================================================
    # Order Operations
    # =========================================================================

    def get_order(self, order_id: str) -> Optional[Order]:
        """Get an order by ID."""
        with self._lock:
            return self._ensure_orders_loaded().get(order_id)

    def require_order(self, order_id: str) -> Order:
        """Get an order by ID or raise NotFoundError."""
        order = self.get_order(order_id)
        if order is None:
            raise NotFoundError("order", order_id)
        return order

    def get_orders(self) -> list[Order]:
        """Snapshot of all orders."""
        with self._lock:
            return list(self._ensure_orders_loaded().values())

    def get_orders_by_seller(self, seller_id: str) -> list[Order]:
        """Get all orders placed on a seller's services."""
        return [o for o in self.get_orders() if o.seller_id == seller_id]

    def get_orders_by_buyer(self, buyer_id: str) -> list[Order]:
        """Get all orders placed by a buyer."""
        return [o for o in self.get_orders() if o.buyer.id == buyer_id]

    def add_order(self, order: Order) -> Order:
        """
        Store a newly created order.

        Orders are never overwritten: an existing ID is a validation error.
        """
        with self._lock:
            orders = self._ensure_orders_loaded()
            if order.id in orders:
                raise ValidationError(f"Order already exists: {order.id}", field="id")
            orders[order.id] = order
            return order

    def save_order(self, order: Order, expected_version: int) -> bool:
        """
        Commit a new version of an order (compare-and-swap).

        Args:
            order: The new order version
            expected_version: Version the caller read before transitioning

        Returns:
            True if committed, False if the stored order moved on in between
        """
        with self._lock:
            orders = self._ensure_orders_loaded()
            current = orders.get(order.id)
            if current is None:
                raise NotFoundError("order", order.id)
            if current.version != expected_version:
                return False
            orders[order.id] = order
            return True

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def reload(self) -> None:
        """
        Force reload all data from JSON files.

        Useful for tests that modify fixture files.
        """
        with self._lock:
            self._services = None
            self._orders = None


# Module-level singleton for convenience
# In tests, create a new DataStore instance with test fixtures
_default_store: Optional[DataStore] = None


def get_data_store() -> DataStore:
    """Get the default data store singleton."""
    global _default_store
    if _default_store is None:
        from shared.config import get_settings
        _default_store = DataStore(data_dir=get_settings().data_dir)
    return _default_store
