"""Notification feed: storing emitted events and tracking who has read them"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from roomie_ledger.config import settings
from roomie_ledger.domain.exceptions import NotFoundError, UnavailableError
from roomie_ledger.domain.models import NotificationEvent
from roomie_ledger.infrastructure.database.repositories import (
    GroupRepository,
    MemberRepository,
    NotificationRepository,
)
from roomie_ledger.infrastructure.observability.metrics import webhook_failure_counter
from roomie_ledger.services.ledger import MembershipPolicy, storage_errors
from roomie_ledger.utils.date_utils import utc_now

logger = logging.getLogger(__name__)


def event_payload(event: NotificationEvent) -> Dict[str, Any]:
    """JSON-safe representation used for webhook forwarding"""
    return {
        "event": event.type.value,
        "event_id": event.event_id,
        "group_id": event.group_id,
        "title": event.title,
        "body": event.body,
        "meta": event.meta,
        "created_by": event.created_by,
        "created_at": event.created_at.isoformat() if event.created_at else None,
    }


class DatabaseNotificationSink:
    """
    Stores events in the notification table after the ledger write commits.

    If `forward` is given, the stored event's payload is handed to it
    (the API uses this to schedule webhook delivery).
    """

    def __init__(self, db: Session, forward: Optional[Callable[[Dict[str, Any]], None]] = None):
        self.db = db
        self.repo = NotificationRepository(db)
        self.forward = forward

    def emit(self, event: NotificationEvent) -> NotificationEvent:
        try:
            record = self.repo.create_event(event, created_at=utc_now())
            stored = self.repo.to_domain(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise UnavailableError(f"Could not store notification: {e}") from e

        if self.forward is not None:
            try:
                self.forward(event_payload(stored))
            except Exception:
                # The event is already in the feed; only the forward is lost
                webhook_failure_counter.inc()
                logger.exception(
                    "Notification forward failed",
                    extra={"group_id": stored.group_id, "event_id": stored.event_id},
                )
        return stored


class NotificationService:
    """Read side of the feed plus read receipts"""

    def __init__(self, db: Session, policy: Optional[MembershipPolicy] = None):
        self.db = db
        self.policy = policy or MembershipPolicy()
        self.groups = GroupRepository(db)
        self.members = MemberRepository(db)
        self.notifications = NotificationRepository(db)

    def list_feed(self, group_id: str, member_id: str, limit: Optional[int] = None) -> Tuple[List[NotificationEvent], int]:
        """Latest events (newest first) and how many of them member_id has not read"""
        limit = limit or settings.notification_page_size
        with storage_errors(self.db):
            self._authorize(group_id, member_id, "read_notifications")
            events = self.notifications.list_recent(group_id, limit=limit)
        unread = sum(1 for e in events if member_id not in e.read_by)
        return events, unread

    def mark_read(self, group_id: str, member_id: str, notification_id: str) -> bool:
        """Add member_id to the event's readers; False if it was already there"""
        with storage_errors(self.db):
            self._authorize(group_id, member_id, "read_notifications")
            if self.notifications.get_event(group_id, notification_id) is None:
                raise NotFoundError(f"Notification {notification_id} not found")
            if self.notifications.has_read(notification_id, member_id):
                return False
            return self._add_read(notification_id, member_id)

    def mark_all_read(self, group_id: str, member_id: str) -> int:
        """Mark every unread event in the current page read; returns how many changed"""
        with storage_errors(self.db):
            self._authorize(group_id, member_id, "read_notifications")
            unread_ids = self.notifications.unread_ids(
                group_id, member_id, limit=settings.notification_page_size
            )
        marked = 0
        for notification_id in unread_ids:
            if self._add_read(notification_id, member_id):
                marked += 1
        return marked

    def _add_read(self, notification_id: str, member_id: str) -> bool:
        try:
            self.notifications.add_read(notification_id, member_id)
            self.db.commit()
        except IntegrityError:
            # Another request recorded the same read first
            self.db.rollback()
            return False
        return True

    def _authorize(self, group_id: str, member_id: str, action: str) -> None:
        if self.groups.get_version(group_id) is None:
            raise NotFoundError(f"Group {group_id} not found")
        self.policy.check(group_id, member_id, self.members.list_members(group_id), action)
