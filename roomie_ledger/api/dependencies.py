"""Dependency injection for FastAPI endpoints"""

from fastapi import BackgroundTasks, Depends, Header, Request
from sqlalchemy.orm import Session
from roomie_ledger.infrastructure.clients.notifications import NotificationWebhookClient
from roomie_ledger.infrastructure.database.session import get_db
from roomie_ledger.services.ledger import LedgerService
from roomie_ledger.services.notifications import DatabaseNotificationSink, NotificationService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_actor_id(x_member_id: str = Header(..., min_length=1, description="Calling member")) -> str:
    """Caller identity, established by the auth layer in front of this service"""
    return x_member_id


def get_webhook_client() -> NotificationWebhookClient:
    """Provide notification webhook client instance"""
    return NotificationWebhookClient()


def get_ledger_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    webhook_client: NotificationWebhookClient = Depends(get_webhook_client),
) -> LedgerService:
    """Ledger service whose notifications are stored and, if configured, forwarded"""
    forward = None
    if webhook_client.enabled:
        forward = lambda payload: background_tasks.add_task(webhook_client.send_event, payload)  # noqa: E731
    return LedgerService(db, sink=DatabaseNotificationSink(db, forward=forward))


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)
