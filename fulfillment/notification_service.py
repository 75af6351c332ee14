"""
Notification service.

Subscribes to order events and turns the "notify" side effects into messages
in the parties' inboxes. This is the collaborator that acts on what the
order state machine decided; the ordering service never calls it directly.

Design decisions:
- Subscribes to events, doesn't poll or get called directly
- The event says WHO must be notified (buyer/seller) and with WHAT type;
  this service resolves the recipient's ID from the order and renders the
  template
- Delivery goes to the mock InboxChannel
"""

import logging
from typing import Optional

from shared.channels import InboxChannel
from shared.data_store import DataStore, get_data_store
from shared.event_bus import Event, EventBus, get_event_bus
from shared.events import EventTypes
from shared.models import ActorRole, Order
from shared.templates import NotificationType, format_price, render_notification

logger = logging.getLogger("notification_service")


class NotificationService:
    """
    Event-driven notification service.

    Example:
        service = NotificationService()
        service.start()

        # From now on, OrderCreated and OrderStatusChanged events
        # end up as messages in the buyer's or seller's inbox
    """

    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        data_store: Optional[DataStore] = None,
        channel: Optional[InboxChannel] = None,
        currency: str = "BRL",
    ):
        """
        Initialize the notification service.

        Args:
            event_bus: Event bus to subscribe to (defaults to singleton)
            data_store: Data store for order lookups (defaults to singleton)
            channel: Inbox channel for delivery (defaults to new instance)
            currency: Currency code used when rendering prices
        """
        self.event_bus = event_bus or get_event_bus()
        self.data_store = data_store or get_data_store()
        self.channel = channel or InboxChannel()
        self.currency = currency

        self._started = False

    def start(self) -> None:
        """Start the service by subscribing to order events."""
        if self._started:
            logger.warning("NotificationService already started")
            return

        self.event_bus.subscribe(EventTypes.ORDER_CREATED, self._handle_order_created)
        self.event_bus.subscribe(EventTypes.ORDER_STATUS_CHANGED, self._handle_order_status_changed)

        self._started = True
        logger.info("NotificationService started - subscribed to events")

    def stop(self) -> None:
        """Stop the service by unsubscribing from events."""
        if not self._started:
            return

        self.event_bus.unsubscribe(EventTypes.ORDER_CREATED, self._handle_order_created)
        self.event_bus.unsubscribe(EventTypes.ORDER_STATUS_CHANGED, self._handle_order_status_changed)

        self._started = False
        logger.info("NotificationService stopped")

    # =========================================================================
    # Event Handlers
    # =========================================================================

    def _handle_order_created(self, event: Event) -> None:
        """A new order lands in the seller's queue."""
        order = self._load_order(event.payload["order_id"])
        if order is None:
            return
        self._notify(order, ActorRole.SELLER, NotificationType.ORDER_PLACED, actor=ActorRole.BUYER)

    def _handle_order_status_changed(self, event: Event) -> None:
        """Deliver every notification the transition asked for."""
        payload = event.payload
        logger.info(
            f"Handling OrderStatusChanged: order={payload['order_id']}, "
            f"{payload['from_status']} -> {payload['to_status']}"
        )

        if not payload.get("notify"):
            return

        order = self._load_order(payload["order_id"])
        if order is None:
            return

        for entry in payload["notify"]:
            self._notify(
                order,
                ActorRole(entry["recipient"]),
                NotificationType(entry["notification_type"]),
                actor=ActorRole(payload["actor"]),
            )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load_order(self, order_id: str) -> Optional[Order]:
        order = self.data_store.get_order(order_id)
        if order is None:
            logger.error(f"Order not found: {order_id}")
        return order

    def _notify(
        self,
        order: Order,
        recipient: ActorRole,
        notification_type: NotificationType,
        actor: ActorRole,
    ) -> None:
        title, body = render_notification(
            notification_type,
            order_id=order.id,
            service_title=order.service_title,
            package_name=order.package.name,
            buyer_name=order.buyer.name or order.buyer.id,
            total_price=format_price(order.total_price, self.currency),
            delivery_date=order.delivery_date.date().isoformat(),
            actor=actor.value,
        )
        self.channel.send(
            recipient_id=order.party_id(recipient),
            notification_type=notification_type.value,
            title=title,
            body=body,
            order_id=order.id,
        )
