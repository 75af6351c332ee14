"""Order state machine: enforces legal lifecycle transitions.

Order lifecycle:
    pending → in_progress ⇄ revision → completed
    pending → cancelled

| From        | Action           | Actor           | To          | Side effect            |
|-------------|------------------|-----------------|-------------|------------------------|
| pending     | accept           | seller          | in_progress | notify buyer: accepted |
| pending     | reject           | seller          | cancelled   | notify buyer: refund   |
| in_progress | request_revision | seller or buyer | revision    | notify counterpart     |
| in_progress | complete         | seller          | completed   | release payment        |
| revision    | resubmit         | buyer           | in_progress | notify seller          |
| revision    | complete         | seller          | completed   | release payment        |

completed and cancelled are terminal. Any other (state, action, actor)
combination raises InvalidTransitionError and changes nothing.

Pure computation: the machine never mutates the order it is given and never
performs I/O. It returns the next order version together with the transition
event and the side effects collaborators must carry out. Serializing
concurrent transitions and publishing events belong to the ordering service.

delivery_date is fixed at checkout and is not moved by revision rounds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from shared.errors import InvalidTransitionError, ValidationError
from shared.models import ActorRole, Order, OrderAction, OrderStatus, utc_now
from shared.templates import NotificationType


class EffectKind(str, Enum):
    NOTIFY = "notify"
    RELEASE_PAYMENT = "release_payment"


@dataclass(frozen=True)
class SideEffect:
    """Something a collaborator must do because a transition happened."""
    kind: EffectKind
    recipient: Optional[ActorRole] = None
    notification_type: Optional[NotificationType] = None


@dataclass(frozen=True)
class TransitionEvent:
    """The record of one committed transition."""
    order_id: str
    from_status: OrderStatus
    to_status: OrderStatus
    action: OrderAction
    actor: ActorRole
    timestamp: datetime

    def to_dict(self) -> dict[str, str]:
        return {
            "order_id": self.order_id,
            "from_status": self.from_status.value,
            "to_status": self.to_status.value,
            "action": self.action.value,
            "actor": self.actor.value,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a legal transition: the new order version plus what to do next."""
    order: Order
    event: TransitionEvent
    effects: list[SideEffect] = field(default_factory=list)

    @property
    def notifications(self) -> list[SideEffect]:
        return [e for e in self.effects if e.kind == EffectKind.NOTIFY]

    @property
    def releases_payment(self) -> bool:
        return any(e.kind == EffectKind.RELEASE_PAYMENT for e in self.effects)


@dataclass(frozen=True)
class _Rule:
    to_status: OrderStatus
    actors: frozenset[ActorRole]


_SELLER = frozenset({ActorRole.SELLER})
_BUYER = frozenset({ActorRole.BUYER})
_EITHER = frozenset({ActorRole.SELLER, ActorRole.BUYER})

# Legal transitions: {(from_state, action): rule}
_TRANSITIONS: dict[tuple[OrderStatus, OrderAction], _Rule] = {
    (OrderStatus.PENDING, OrderAction.ACCEPT): _Rule(OrderStatus.IN_PROGRESS, _SELLER),
    (OrderStatus.PENDING, OrderAction.REJECT): _Rule(OrderStatus.CANCELLED, _SELLER),
    (OrderStatus.IN_PROGRESS, OrderAction.REQUEST_REVISION): _Rule(OrderStatus.REVISION, _EITHER),
    (OrderStatus.IN_PROGRESS, OrderAction.COMPLETE): _Rule(OrderStatus.COMPLETED, _SELLER),
    (OrderStatus.REVISION, OrderAction.RESUBMIT): _Rule(OrderStatus.IN_PROGRESS, _BUYER),
    (OrderStatus.REVISION, OrderAction.COMPLETE): _Rule(OrderStatus.COMPLETED, _SELLER),
}

TERMINAL_STATES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})


def _effects_for(action: OrderAction, actor: ActorRole) -> list[SideEffect]:
    if action == OrderAction.ACCEPT:
        return [SideEffect(EffectKind.NOTIFY, ActorRole.BUYER, NotificationType.ORDER_ACCEPTED)]
    if action == OrderAction.REJECT:
        return [SideEffect(EffectKind.NOTIFY, ActorRole.BUYER, NotificationType.ORDER_REJECTED)]
    if action == OrderAction.REQUEST_REVISION:
        return [SideEffect(EffectKind.NOTIFY, actor.counterpart, NotificationType.REVISION_REQUESTED)]
    if action == OrderAction.RESUBMIT:
        return [SideEffect(EffectKind.NOTIFY, ActorRole.SELLER, NotificationType.REVISION_RESUBMITTED)]
    # complete
    return [
        SideEffect(EffectKind.RELEASE_PAYMENT),
        SideEffect(EffectKind.NOTIFY, ActorRole.BUYER, NotificationType.ORDER_COMPLETED),
    ]


def _coerce(enum_type, value, name: str):
    try:
        return enum_type(value)
    except ValueError as e:
        raise ValidationError(f"Unknown {name}: {value}", field=name) from e


class OrderStateMachine:
    """Validates and applies order transitions.

    Usage:
        result = OrderStateMachine.apply(order, "accept", "seller")
        result.order.status      # "in_progress"
        result.effects           # [notify buyer: order_accepted]
    """

    @staticmethod
    def allowed_actions(status: OrderStatus | str, actor: ActorRole | str) -> list[OrderAction]:
        """Actions the actor may take from the given status, in table order."""
        status = _coerce(OrderStatus, status, "status")
        actor = _coerce(ActorRole, actor, "actor")
        return [
            action
            for (from_status, action), rule in _TRANSITIONS.items()
            if from_status == status and actor in rule.actors
        ]

    @staticmethod
    def is_terminal(status: OrderStatus | str) -> bool:
        """Check if a status is terminal (no further transitions)."""
        return _coerce(OrderStatus, status, "status") in TERMINAL_STATES

    @staticmethod
    def next_status(
        status: OrderStatus | str,
        action: OrderAction | str,
        actor: ActorRole | str,
    ) -> Optional[OrderStatus]:
        """Target status of a legal transition, None if it is not legal."""
        rule = _TRANSITIONS.get((_coerce(OrderStatus, status, "status"), _coerce(OrderAction, action, "action")))
        if rule is None or _coerce(ActorRole, actor, "actor") not in rule.actors:
            return None
        return rule.to_status

    @staticmethod
    def apply(
        order: Order,
        action: OrderAction | str,
        actor: ActorRole | str,
        now: Optional[datetime] = None,
    ) -> TransitionResult:
        """Validate a transition and compute its result.

        The input order is left untouched; the returned order is the next
        version (status, updated_at, completed_at and version bumped).

        Raises:
            ValidationError: Unknown action or actor name
            InvalidTransitionError: Not legal from this status for this actor
        """
        action = _coerce(OrderAction, action, "action")
        actor = _coerce(ActorRole, actor, "actor")
        current = OrderStatus(order.status)

        target = OrderStateMachine.next_status(current, action, actor)
        if target is None:
            allowed = OrderStateMachine.allowed_actions(current, actor)
            raise InvalidTransitionError(
                order_id=order.id,
                status=current.value,
                action=action.value,
                actor=actor.value,
                allowed=[a.value for a in allowed],
            )

        now = now or utc_now()
        updates = {
            "status": target.value,
            "updated_at": now,
            "version": order.version + 1,
        }
        if target == OrderStatus.COMPLETED:
            updates["completed_at"] = now

        return TransitionResult(
            order=order.model_copy(update=updates),
            event=TransitionEvent(
                order_id=order.id,
                from_status=current,
                to_status=target,
                action=action,
                actor=actor,
                timestamp=now,
            ),
            effects=_effects_for(action, actor),
        )
