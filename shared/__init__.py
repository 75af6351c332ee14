"""
Shared infrastructure for the marketplace engine.

This package contains code used by both the catalog and the fulfillment side:
- Domain models (Creator, Service, ServicePackage, Order, etc.)
- Error taxonomy (ValidationError, InvalidTransitionError, NotFoundError)
- Data store for JSON-backed catalog and orders
- Runtime settings
- Notification templates and the mock inbox channel
"""

from shared.models import (
    ActorRole,
    BuyerRef,
    Creator,
    CreatorLevel,
    DashboardStats,
    Order,
    OrderAction,
    OrderStatus,
    Service,
    ServiceCategory,
    ServicePackage,
    SortOption,
)
from shared.errors import (
    InvalidTransitionError,
    MarketplaceError,
    NotFoundError,
    ValidationError,
)
from shared.data_store import DataStore
from shared.channels import InboxChannel, NotificationResult

__all__ = [
    "ActorRole",
    "BuyerRef",
    "Creator",
    "CreatorLevel",
    "DashboardStats",
    "Order",
    "OrderAction",
    "OrderStatus",
    "Service",
    "ServiceCategory",
    "ServicePackage",
    "SortOption",
    "InvalidTransitionError",
    "MarketplaceError",
    "NotFoundError",
    "ValidationError",
    "DataStore",
    "InboxChannel",
    "NotificationResult",
]
