"""
Notification Service - per-user notification feeds.

Each user's feed is one list stored under ``notifications_<userId>``,
newest first, capped at NOTIFICATION_FEED_LIMIT entries. Delivery is pull
only: clients poll GET /notifications.

DESIGN PRINCIPLES:
- notify() never raises; a failed notification must not fail the ticket
  operation that triggered it
- Marking read is idempotent; unknown ids are a no-op
"""

from datetime import datetime
from typing import Callable, List, Optional
import logging

from pydantic import ValidationError

from civicdesk.config.firebase import get_store
from civicdesk.core.settings import settings
from civicdesk.models.notification import Notification, NotificationType
from civicdesk.storage.base import KeyValueStore
from civicdesk.utils.ids import IdGenerator
from civicdesk.utils.timeutils import utc_now

logger = logging.getLogger(__name__)


def feed_key(user_id: str) -> str:
    return f"notifications_{user_id}"


class NotificationService:

    def __init__(
        self,
        store: KeyValueStore,
        id_generator: Optional[IdGenerator] = None,
        clock: Callable[[], datetime] = utc_now,
        feed_limit: Optional[int] = None,
    ):
        self.store = store
        self.ids = id_generator or IdGenerator()
        self.clock = clock
        self.feed_limit = feed_limit if feed_limit is not None else settings.NOTIFICATION_FEED_LIMIT

    def notify(
        self,
        recipient_id: str,
        notification_type: NotificationType,
        title: str,
        message: str,
        ticket_id: Optional[str] = None,
    ) -> Optional[Notification]:
        """
        Prepend a notification to the recipient's feed and trim it to the cap.

        Returns the stored notification, or None if storing it failed.
        """
        try:
            raw_feed = self._load_raw_feed(recipient_id)
            notification = Notification(
                id=self.ids.notification_id(),
                type=notification_type,
                title=title,
                message=message,
                ticket_id=ticket_id,
                read=False,
                created_at=self.clock(),
            )
            raw_feed.insert(0, notification.to_store())
            del raw_feed[self.feed_limit:]
            self.store.set(feed_key(recipient_id), raw_feed)
            return notification
        except Exception as e:
            logger.error(
                f"Failed to create {notification_type} notification for {recipient_id}: {e}",
                exc_info=True,
            )
            return None

    def list_notifications(self, user_id: str) -> List[Notification]:
        """Newest first by createdAt; equal timestamps keep feed order."""
        feed = self._load_feed(user_id)
        feed.sort(key=lambda n: n.created_at, reverse=True)
        return feed

    def unread_count(self, user_id: str) -> int:
        return sum(1 for n in self._load_feed(user_id) if not n.read)

    def mark_read(self, user_id: str, notification_id: str) -> bool:
        """Returns True if a stored notification changed from unread to read."""
        return self._mark(user_id, lambda n: n.id == notification_id) > 0

    def mark_all_read(self, user_id: str) -> int:
        """Returns how many notifications were flipped to read."""
        return self._mark(user_id, lambda n: True)

    def _mark(self, user_id: str, selected: Callable[[Notification], bool]) -> int:
        # Entries that fail to parse are written back untouched
        raw_feed = self._load_raw_feed(user_id)
        changed = 0
        for index, raw in enumerate(raw_feed):
            notification = self._parse(user_id, raw)
            if notification is None or notification.read or not selected(notification):
                continue
            notification.read = True
            raw_feed[index] = notification.to_store()
            changed += 1
        if changed:
            self.store.set(feed_key(user_id), raw_feed)
        return changed

    def _load_raw_feed(self, user_id: str) -> list:
        raw_feed = self.store.get(feed_key(user_id)) or []
        if not isinstance(raw_feed, list):
            logger.warning(f"Notification feed for {user_id} is not a list, treating as empty")
            return []
        return raw_feed

    def _parse(self, user_id: str, raw) -> Optional[Notification]:
        try:
            return Notification.from_store(raw)
        except ValidationError as e:
            logger.warning(f"Skipping unreadable notification for {user_id}: {e}")
            return None

    def _load_feed(self, user_id: str) -> List[Notification]:
        feed = [self._parse(user_id, raw) for raw in self._load_raw_feed(user_id)]
        return [n for n in feed if n is not None]


# Global service instance
_notification_service = None


def get_notification_service() -> NotificationService:
    """Get or create NotificationService singleton."""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService(get_store())
    return _notification_service
