"""
Fulfillment side of the marketplace engine.

- state_machine: pure order lifecycle rules and side effects
- ordering: checkout and serialized order transitions, publishes events
- aggregator: per-seller dashboard statistics
- notification_service: turns order events into inbox messages
"""

from fulfillment.state_machine import (
    OrderStateMachine,
    SideEffect,
    TransitionEvent,
    TransitionResult,
)
from fulfillment.ordering import OrderingService
from fulfillment.aggregator import aggregate
from fulfillment.notification_service import NotificationService

__all__ = [
    "OrderStateMachine",
    "SideEffect",
    "TransitionEvent",
    "TransitionResult",
    "OrderingService",
    "aggregate",
    "NotificationService",
]
