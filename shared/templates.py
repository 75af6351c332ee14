"""
Notification message templates.

This module provides templates for every order notification the engine asks
collaborators to deliver. Templates support variable substitution using
Python's string formatting.

Design decisions:
- Templates are simple strings with {variable} placeholders
- Each notification has a short title and a longer body (in-app inbox style)
- Templates are organized by notification type
- Prices are passed in minor units and rendered with format_price
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class NotificationType(str, Enum):
    """
    Supported notification types.

    Each type corresponds to an order event that one of the parties must
    hear about.
    """
    ORDER_PLACED = "order_placed"                    # to seller: new order in the queue
    ORDER_ACCEPTED = "order_accepted"                # to buyer
    ORDER_REJECTED = "order_rejected"                # to buyer: refund issued
    REVISION_REQUESTED = "revision_requested"        # to the counterpart
    REVISION_RESUBMITTED = "revision_resubmitted"    # to seller
    ORDER_COMPLETED = "order_completed"              # to buyer: delivered


@dataclass
class NotificationTemplate:
    """A notification template with a title and a body."""
    notification_type: NotificationType
    title: str
    body: str

    def render(self, **kwargs) -> tuple[str, str]:
        """
        Render the template with provided variables.

        Returns:
            Tuple of (title, body)
        """
        return (
            self.title.format(**kwargs),
            self.body.format(**kwargs),
        )


# =============================================================================
# Template Definitions
# =============================================================================

TEMPLATES: dict[NotificationType, NotificationTemplate] = {

    NotificationType.ORDER_PLACED: NotificationTemplate(
        notification_type=NotificationType.ORDER_PLACED,
        title="New order #{order_id}",
        body="""{buyer_name} ordered the {package_name} package of "{service_title}".

Order total: {total_price}
Expected delivery: {delivery_date}

Accept or decline it from your dashboard.
""",
    ),

    NotificationType.ORDER_ACCEPTED: NotificationTemplate(
        notification_type=NotificationType.ORDER_ACCEPTED,
        title="Order #{order_id} accepted",
        body="""Good news! The creator accepted your order for "{service_title}" and started working on it.

Expected delivery: {delivery_date}
""",
    ),

    NotificationType.ORDER_REJECTED: NotificationTemplate(
        notification_type=NotificationType.ORDER_REJECTED,
        title="Order #{order_id} declined",
        body="""The creator could not take on your order for "{service_title}".

A refund of {total_price} has been issued.
""",
    ),

    NotificationType.REVISION_REQUESTED: NotificationTemplate(
        notification_type=NotificationType.REVISION_REQUESTED,
        title="Revision requested on order #{order_id}",
        body="""The {actor} asked for a revision on "{service_title}".

Check the order details and follow up.
""",
    ),

    NotificationType.REVISION_RESUBMITTED: NotificationTemplate(
        notification_type=NotificationType.REVISION_RESUBMITTED,
        title="Order #{order_id} is back in progress",
        body="""The buyer sent the requested details for "{service_title}". The order is in progress again.
""",
    ),

    NotificationType.ORDER_COMPLETED: NotificationTemplate(
        notification_type=NotificationType.ORDER_COMPLETED,
        title="Order #{order_id} delivered",
        body="""Your order for "{service_title}" is complete.

Thanks for using the marketplace!
""",
    ),
}


# =============================================================================
# Template Access Functions
# =============================================================================

def get_template(notification_type: NotificationType) -> Optional[NotificationTemplate]:
    """Get a template by notification type."""
    return TEMPLATES.get(notification_type)


def render_notification(notification_type: NotificationType, **context) -> tuple[str, str]:
    """
    Render a notification.

    Args:
        notification_type: The type of notification
        **context: Variables to substitute in the template

    Returns:
        (title, body)

    Raises:
        ValueError: If no template exists for the type
    """
    template = get_template(notification_type)
    if not template:
        raise ValueError(f"No template found for notification type: {notification_type}")
    return template.render(**context)


def format_price(minor_units: int, currency: str = "BRL") -> str:
    """Render an amount in minor units, e.g. 15000 -> 'BRL 150.00'."""
    amount = (Decimal(minor_units) / 100).quantize(Decimal("0.01"))
    return f"{currency} {amount}"
