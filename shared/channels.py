"""
Mock in-app inbox channel.

The engine only decides that a party must be notified; delivering the message
is a collaborator's job. This channel stands in for that collaborator: it logs
each notification and keeps it in a per-recipient inbox so tests and demos can
inspect what would have been delivered.

Design decisions:
- All sends are logged for visibility
- The channel tracks sent messages for test assertions
- Thread-safe, since the event bus may dispatch from worker threads
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from shared.models import utc_now

logger = logging.getLogger("notifications")


@dataclass
class NotificationResult:
    """
    A notification placed in a recipient's inbox.
    """
    recipient_id: str
    notification_type: str
    title: str
    body: str
    order_id: Optional[str] = None
    timestamp: datetime = field(default_factory=utc_now)

    def __str__(self) -> str:
        return f"INBOX {self.recipient_id}: {self.title}"


class InboxChannel:
    """
    Mock in-app notification inbox.

    Logs sends and tracks them per recipient.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.sent_messages: list[NotificationResult] = []

    def send(
        self,
        recipient_id: str,
        notification_type: str,
        title: str,
        body: str,
        order_id: Optional[str] = None,
    ) -> NotificationResult:
        """
        Deliver a notification to a recipient's inbox.

        Args:
            recipient_id: Buyer or seller identifier
            notification_type: NotificationType value
            title: Rendered title
            body: Rendered body
            order_id: Order the notification is about, if any
        """
        result = NotificationResult(
            recipient_id=recipient_id,
            notification_type=notification_type,
            title=title,
            body=body,
            order_id=order_id,
        )
        with self._lock:
            self.sent_messages.append(result)
        logger.info(f"[INBOX] To: {recipient_id} | {title}")
        logger.debug(f"[INBOX BODY] {body}")
        return result

    def get_sent_count(self) -> int:
        """Get the number of messages sent (for testing)."""
        with self._lock:
            return len(self.sent_messages)

    def get_inbox(self, recipient_id: str) -> list[NotificationResult]:
        """All notifications delivered to one recipient, oldest first."""
        with self._lock:
            return [m for m in self.sent_messages if m.recipient_id == recipient_id]

    def find_message_to(self, recipient_id: str) -> Optional[NotificationResult]:
        """Find the first message sent to a specific recipient."""
        inbox = self.get_inbox(recipient_id)
        return inbox[0] if inbox else None

    def clear_history(self) -> None:
        """Clear sent message history (useful between tests)."""
        with self._lock:
            self.sent_messages.clear()
