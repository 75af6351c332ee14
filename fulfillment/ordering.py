"""
Ordering service.

Creates orders at checkout and drives them through the order state machine.
It is the only writer of orders.

Concurrency:
- Transitions are serialized per order with a per-order lock, and the commit
  is a compare-and-swap on the order version in the data store. Of two
  conflicting actions racing on one order (say accept and reject on a
  pending order) exactly one commits; the other re-reads the moved state and
  gets InvalidTransitionError.
- Events are published after the commit and outside the lock, so a slow
  subscriber never holds an order hostage.

Key point: this service ONLY publishes events. It doesn't notify anyone or
move money itself; the notification service and the payment collaborator
subscribe to the events.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4

from fulfillment.state_machine import OrderStateMachine, TransitionResult
from shared.data_store import DataStore, get_data_store
from shared.errors import InvalidTransitionError, NotFoundError, ValidationError
from shared.event_bus import EventBus, get_event_bus
from shared.events import (
    checkout_started,
    order_created,
    order_status_changed,
    payment_release_requested,
)
from shared.models import ActorRole, BuyerRef, Order, OrderAction, utc_now

logger = logging.getLogger("ordering_service")


class OrderingService:
    """
    Checkout and order lifecycle.

    Example:
        service = OrderingService()
        order = service.checkout("svc-001", "svc-001-pkg1", BuyerRef(id="buyer-001"), ...)

        # Seller accepts - this publishes an OrderStatusChanged event
        service.accept(order.id)
    """

    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        data_store: Optional[DataStore] = None,
    ):
        """
        Initialize the ordering service.

        Args:
            event_bus: Event bus for publishing events
            data_store: Data store for services and orders
        """
        self.event_bus = event_bus or get_event_bus()
        self.data_store = data_store or get_data_store()

        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, order_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(order_id)
            if lock is None:
                lock = self._locks[order_id] = threading.Lock()
            return lock

    def _forget_lock(self, order_id: str) -> None:
        # Terminal orders accept no more actions; late waiters still hold the
        # old lock and the version check catches them
        with self._locks_guard:
            self._locks.pop(order_id, None)

    # =========================================================================
    # Checkout
    # =========================================================================

    def checkout(
        self,
        service_id: str,
        package_id: str,
        buyer: BuyerRef,
        description: str,
        duration: str,
        requirements: str,
        contact_phone: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Order:
        """
        Place an order for one package of a service.

        The package price is copied into the order and the delivery date is
        fixed at created_at + package.delivery_days.

        Raises:
            NotFoundError: Unknown service, or a package ID that exists nowhere
            ValidationError: Package belongs to another service, or a required
                             field (description, duration, requirements) is blank
        """
        service = self.data_store.require_service(service_id)
        package = service.get_package(package_id)
        if package is None:
            owners = [s.id for s in self.data_store.snapshot_services() if s.has_package(package_id)]
            if owners:
                raise ValidationError(
                    f"Package {package_id} does not belong to service {service_id}",
                    field="package_id",
                )
            raise NotFoundError("package", package_id)

        self.event_bus.publish(checkout_started(service_id, package_id, user_id=buyer.id))

        for field_name, value in (
            ("description", description),
            ("duration", duration),
            ("requirements", requirements),
        ):
            if not value or not value.strip():
                raise ValidationError(f"{field_name} is required", field=field_name)

        created_at = now or utc_now()
        order = Order(
            id=f"ord-{uuid4().hex[:10]}",
            service_id=service.id,
            service_title=service.title,
            seller_id=service.creator.id,
            package=package,
            buyer=buyer,
            description=description.strip(),
            duration=duration.strip(),
            requirements=requirements.strip(),
            contact_phone=contact_phone or None,
            total_price=package.price,
            created_at=created_at,
            delivery_date=created_at + timedelta(days=package.delivery_days),
        )
        self.data_store.add_order(order)

        logger.info(
            f"Order {order.id} created: {buyer.id} bought {package.name} "
            f"of {service.id} for {order.total_price}"
        )

        self.event_bus.publish(order_created(
            order_id=order.id,
            service_id=service.id,
            package_id=package.id,
            buyer_id=buyer.id,
            seller_id=order.seller_id,
            amount=order.total_price,
        ))
        return order

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def get_order(self, order_id: str) -> Order:
        """Get an order or raise NotFoundError."""
        return self.data_store.require_order(order_id)

    def allowed_actions(self, order_id: str, actor: ActorRole) -> list[OrderAction]:
        """Actions the actor may currently take on the order."""
        order = self.data_store.require_order(order_id)
        return OrderStateMachine.allowed_actions(order.status, actor)

    def perform_action(
        self,
        order_id: str,
        action: OrderAction,
        actor: ActorRole,
        now: Optional[datetime] = None,
    ) -> TransitionResult:
        """
        Apply an action to an order and commit the transition.

        Raises:
            NotFoundError: Unknown order
            ValidationError: Unknown action or actor name
            InvalidTransitionError: Not legal from the order's current state,
                                    including when a concurrent action won
        """
        with self._lock_for(order_id):
            order = self.data_store.require_order(order_id)
            result = OrderStateMachine.apply(order, action, actor, now=now)
            if not self.data_store.save_order(result.order, expected_version=order.version):
                current = self.data_store.require_order(order_id)
                raise InvalidTransitionError(
                    order_id=order_id,
                    status=current.status,
                    action=result.event.action.value,
                    actor=result.event.actor.value,
                    allowed=[
                        a.value for a in OrderStateMachine.allowed_actions(current.status, actor)
                    ],
                )
            if OrderStateMachine.is_terminal(result.order.status):
                self._forget_lock(order_id)

        event = result.event
        logger.info(
            f"Order {order_id} {event.action.value} by {event.actor.value}: "
            f"{event.from_status.value} -> {event.to_status.value}"
        )
        self._publish_transition(result)
        return result

    def _publish_transition(self, result: TransitionResult) -> None:
        event = result.event
        self.event_bus.publish(order_status_changed(
            order_id=event.order_id,
            from_status=event.from_status.value,
            to_status=event.to_status.value,
            action=event.action.value,
            actor=event.actor.value,
            timestamp=event.timestamp,
            notify=[
                {
                    "recipient": effect.recipient.value,
                    "notification_type": effect.notification_type.value,
                }
                for effect in result.notifications
            ],
        ))
        if result.releases_payment:
            self.event_bus.publish(payment_release_requested(
                order_id=result.order.id,
                seller_id=result.order.seller_id,
                amount=result.order.total_price,
            ))

    # Convenience wrappers, one per row of the transition table

    def accept(self, order_id: str) -> TransitionResult:
        """Seller accepts a pending order."""
        return self.perform_action(order_id, OrderAction.ACCEPT, ActorRole.SELLER)

    def reject(self, order_id: str) -> TransitionResult:
        """Seller declines a pending order; the buyer is refunded."""
        return self.perform_action(order_id, OrderAction.REJECT, ActorRole.SELLER)

    def request_revision(self, order_id: str, actor: ActorRole) -> TransitionResult:
        """Either party asks for a revision round."""
        return self.perform_action(order_id, OrderAction.REQUEST_REVISION, actor)

    def resubmit(self, order_id: str) -> TransitionResult:
        """Buyer answers a revision request; the order goes back in progress."""
        return self.perform_action(order_id, OrderAction.RESUBMIT, ActorRole.BUYER)

    def complete(self, order_id: str) -> TransitionResult:
        """Seller delivers the order; payment release is signalled."""
        return self.perform_action(order_id, OrderAction.COMPLETE, ActorRole.SELLER)
