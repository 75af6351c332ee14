"""
Demonstration scripts for the marketplace engine.

These functions walk the engine end to end against the bundled data:
browsing the catalog, taking an order through its lifecycle, and computing
a seller dashboard. Run them to see events being published and inbox
notifications being delivered.
"""

import logging
from datetime import datetime, timezone

from catalog.listing_service import CatalogService
from catalog.query import ListingQuery
from fulfillment.aggregator import aggregate
from fulfillment.notification_service import NotificationService
from fulfillment.ordering import OrderingService
from shared.channels import InboxChannel
from shared.data_store import DataStore
from shared.event_bus import reset_event_bus
from shared.models import ActorRole, BuyerRef
from shared.templates import format_price

# Configure logging to see what's happening
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s",
    datefmt="%H:%M:%S",
)


def _banner(title: str) -> None:
    print("\n" + "=" * 70)
    print(title)
    print("=" * 70 + "\n")


def run_listing_demo():
    """
    Browse the catalog the way the home and search screens do.

    This shows:
    1. The relevance feed
    2. A text search narrowed by category, sorted by price
    3. The analytics events the catalog published along the way
    """
    _banner("DEMO: Catalog Listing")

    event_bus = reset_event_bus()
    catalog = CatalogService(event_bus=event_bus, data_store=DataStore())

    print("Home feed (relevance):")
    for service in catalog.feed():
        print(f"  {service.id}  {service.title:<40} from {format_price(service.min_price)}")

    params = ListingQuery(search="tiktok", category="all", sort="price_low")
    print("\nSearch 'tiktok', cheapest first:")
    results = catalog.search(params, user_id="buyer-001")
    for service in results:
        print(f"  {service.id}  {service.title:<40} from {format_price(service.min_price)}")

    print("\nEvents published:")
    for event in event_bus.get_event_log():
        print(f"  {event}")

    return results


def run_order_lifecycle_demo():
    """
    Take one order from checkout to completion.

    This shows:
    1. Checkout copies the package price and fixes the delivery date
    2. Each transition publishes OrderStatusChanged
    3. NotificationService turns those events into inbox messages
    4. Completion signals payment release

    The key insight: OrderingService doesn't know about notifications!
    """
    _banner("DEMO: Order Lifecycle")

    event_bus = reset_event_bus()
    data_store = DataStore()
    inbox = InboxChannel()

    notification_service = NotificationService(
        event_bus=event_bus,
        data_store=data_store,
        channel=inbox,
    )
    ordering_service = OrderingService(
        event_bus=event_bus,
        data_store=data_store,
    )

    notification_service.start()

    print("Setup complete. NotificationService is listening for events.\n")
    print("-" * 70)
    print("ACTION: Marina buys the Standard package of svc-001")
    print("-" * 70 + "\n")

    order = ordering_service.checkout(
        service_id="svc-001",
        package_id="svc-001-pkg2",
        buyer=BuyerRef(id="buyer-001", name="Marina Alves"),
        description="Three reels for a product launch",
        duration="30 seconds each",
        requirements="Raw footage and brand kit in the shared folder",
    )
    print(f"Order {order.id}: {format_price(order.total_price)}, due {order.delivery_date.date()}")

    ordering_service.accept(order.id)
    ordering_service.request_revision(order.id, ActorRole.SELLER)
    ordering_service.resubmit(order.id)
    result = ordering_service.complete(order.id)

    print("\n" + "-" * 70)
    print(f"RESULT: order is {result.order.status}, version {result.order.version}")
    print("-" * 70)

    print("\nNotifications sent:")
    for msg in inbox.sent_messages:
        print(f"  {msg}")

    notification_service.stop()
    return inbox.sent_messages


def run_dashboard_demo():
    """
    Compute the dashboard of seller cr-001 from the bundled orders.
    """
    _banner("DEMO: Seller Dashboard")

    data_store = DataStore()
    seller_id = "cr-001"
    services = data_store.get_services_by_creator(seller_id)
    rating = services[0].creator.rating if services else 0.0

    stats = aggregate(
        data_store.get_orders_by_seller(seller_id),
        seller_id,
        rating=rating,
        now=datetime(2026, 10, 19, tzinfo=timezone.utc),
    )

    print(f"Seller:              {stats.seller_id}")
    print(f"Earnings this month: {format_price(stats.monthly_earnings)}")
    print(f"Completed projects:  {stats.completed_projects}")
    print(f"Pending projects:    {stats.pending_projects}")
    print(f"In progress:         {stats.in_progress_projects}")
    print(f"Average rating:      {stats.average_rating}")

    return stats


if __name__ == "__main__":
    print("\nRunning Marketplace Engine Demos")
    print("=" * 70)

    run_listing_demo()
    run_order_lifecycle_demo()
    run_dashboard_demo()
