"""
Event definitions for the marketplace engine.

This module defines every event the engine publishes on the bus. Events
represent facts that already happened; collaborators subscribe to them to
notify parties or release payments. The catalog and analytics events often
have no subscriber at all and are kept in the bus event log for inspection.

Design decisions:
- Events are named in past tense (OrderCreated, not CreateOrder)
- Events contain all data needed by subscribers (no need to query back)
- Timestamps in payloads are ISO-8601 strings so payloads are JSON-ready
- Helper functions create properly structured Event objects
"""

from datetime import datetime
from typing import Any, Optional

from shared.event_bus import Event


# =============================================================================
# Event Type Constants
# =============================================================================

class EventTypes:
    """
    Constants for event type names.

    Using constants prevents typos and makes it easy to see all event types.
    """
    # Order events
    ORDER_CREATED = "OrderCreated"
    ORDER_STATUS_CHANGED = "OrderStatusChanged"
    PAYMENT_RELEASE_REQUESTED = "PaymentReleaseRequested"

    # Catalog events
    SERVICE_PUBLISHED = "ServicePublished"
    SERVICE_PACKAGES_UPDATED = "ServicePackagesUpdated"

    # Browsing analytics
    SERVICE_VIEWED = "ServiceViewed"
    SERVICE_INTEREST_REGISTERED = "ServiceInterestRegistered"
    CHECKOUT_STARTED = "CheckoutStarted"
    SEARCH_PERFORMED = "SearchPerformed"
    FILTERS_APPLIED = "FiltersApplied"


# =============================================================================
# Order Events
# =============================================================================

def order_created(
    order_id: str,
    service_id: str,
    package_id: str,
    buyer_id: str,
    seller_id: str,
    amount: int,
    source: str = "ordering-service",
) -> Event:
    """
    Create an OrderCreated event.

    Published when a buyer checks out a package.
    """
    return Event(
        event_type=EventTypes.ORDER_CREATED,
        source=source,
        payload={
            "order_id": order_id,
            "service_id": service_id,
            "package_id": package_id,
            "buyer_id": buyer_id,
            "seller_id": seller_id,
            "amount": amount,
        },
    )


def order_status_changed(
    order_id: str,
    from_status: str,
    to_status: str,
    action: str,
    actor: str,
    timestamp: datetime,
    notify: Optional[list[dict[str, str]]] = None,
    source: str = "ordering-service",
) -> Event:
    """
    Create an OrderStatusChanged event.

    Published after a transition has been committed.

    Args:
        notify: Parties that must hear about the change, as
                {"recipient": role, "notification_type": type} dicts
    """
    return Event(
        event_type=EventTypes.ORDER_STATUS_CHANGED,
        source=source,
        payload={
            "order_id": order_id,
            "from_status": from_status,
            "to_status": to_status,
            "action": action,
            "actor": actor,
            "timestamp": timestamp.isoformat(),
            "notify": notify or [],
        },
    )


def payment_release_requested(
    order_id: str,
    seller_id: str,
    amount: int,
    source: str = "ordering-service",
) -> Event:
    """
    Create a PaymentReleaseRequested event.

    The signal a payment collaborator acts on once an order completes.
    """
    return Event(
        event_type=EventTypes.PAYMENT_RELEASE_REQUESTED,
        source=source,
        payload={
            "order_id": order_id,
            "seller_id": seller_id,
            "amount": amount,
        },
    )


# =============================================================================
# Catalog Events
# =============================================================================

def service_published(
    service_id: str,
    creator_id: str,
    title: str,
    category: str,
    package_count: int,
    min_price: int,
    source: str = "catalog-service",
) -> Event:
    """Create a ServicePublished event."""
    return Event(
        event_type=EventTypes.SERVICE_PUBLISHED,
        source=source,
        payload={
            "service_id": service_id,
            "creator_id": creator_id,
            "title": title,
            "category": category,
            "package_count": package_count,
            "min_price": min_price,
        },
    )


def service_packages_updated(
    service_id: str,
    previous_min_price: int,
    new_min_price: int,
    min_delivery_days: int,
    source: str = "catalog-service",
) -> Event:
    """
    Create a ServicePackagesUpdated event.

    Includes the derived fields so subscribers don't need to recompute them.
    """
    return Event(
        event_type=EventTypes.SERVICE_PACKAGES_UPDATED,
        source=source,
        payload={
            "service_id": service_id,
            "previous_min_price": previous_min_price,
            "new_min_price": new_min_price,
            "min_delivery_days": min_delivery_days,
        },
    )


# =============================================================================
# Browsing Analytics Events
# =============================================================================

def service_viewed(service_id: str, user_id: Optional[str] = None, source: str = "catalog-service") -> Event:
    """Create a ServiceViewed event."""
    return Event(
        event_type=EventTypes.SERVICE_VIEWED,
        source=source,
        payload={"service_id": service_id, "user_id": user_id},
    )


def service_interest_registered(
    service_id: str,
    interested_count: int,
    user_id: Optional[str] = None,
    source: str = "catalog-service",
) -> Event:
    """Create a ServiceInterestRegistered event."""
    return Event(
        event_type=EventTypes.SERVICE_INTEREST_REGISTERED,
        source=source,
        payload={
            "service_id": service_id,
            "interested_count": interested_count,
            "user_id": user_id,
        },
    )


def checkout_started(
    service_id: str,
    package_id: str,
    user_id: Optional[str] = None,
    source: str = "ordering-service",
) -> Event:
    """Create a CheckoutStarted event."""
    return Event(
        event_type=EventTypes.CHECKOUT_STARTED,
        source=source,
        payload={"service_id": service_id, "package_id": package_id, "user_id": user_id},
    )


def search_performed(
    query: Optional[str],
    results_count: int,
    user_id: Optional[str] = None,
    source: str = "catalog-service",
) -> Event:
    """Create a SearchPerformed event."""
    return Event(
        event_type=EventTypes.SEARCH_PERFORMED,
        source=source,
        payload={"query": query or "", "results_count": results_count, "user_id": user_id},
    )


def filters_applied(
    filters: dict[str, Any],
    active: list[str],
    user_id: Optional[str] = None,
    source: str = "catalog-service",
) -> Event:
    """Create a FiltersApplied event."""
    return Event(
        event_type=EventTypes.FILTERS_APPLIED,
        source=source,
        payload={"filters": filters, "active": active, "user_id": user_id},
    )
