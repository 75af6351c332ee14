"""
Error taxonomy for the marketplace engine.

Every failure the core can produce is one of these typed exceptions. The core
raises them and never logs or retries; the calling layer (HTTP adapter, CLI,
demo scripts) decides how to surface them.

- ValidationError: malformed input, rejected before any state change
- InvalidTransitionError: order action not legal from the current state/actor
- NotFoundError: referenced service, package or order does not exist
"""

from typing import Optional


class MarketplaceError(Exception):
    """Base class for all marketplace engine errors."""


class ValidationError(MarketplaceError, ValueError):
    """
    Input was rejected before any state change.

    Always recoverable by the caller correcting the input.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidTransitionError(MarketplaceError):
    """
    An order action is not legal from the order's current state for this actor.

    No mutation has occurred. The caller should re-fetch the order and may
    retry with a different action.
    """

    def __init__(
        self,
        order_id: str,
        status: str,
        action: str,
        actor: str,
        allowed: Optional[list[str]] = None,
    ):
        self.order_id = order_id
        self.status = status
        self.action = action
        self.actor = actor
        self.allowed = allowed or []
        allowed_str = ", ".join(self.allowed) if self.allowed else "none"
        super().__init__(
            f"Cannot {action} order {order_id} as {actor} while {status}. "
            f"Allowed: [{allowed_str}]"
        )


class NotFoundError(MarketplaceError, LookupError):
    """A referenced service, package or order does not exist."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")
