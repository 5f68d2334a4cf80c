"""Notification feed endpoints"""

from fastapi import APIRouter, Depends

from roomie_ledger.api.v1.schemas import MarkReadResponse, NotificationListResponse, NotificationSchema
from roomie_ledger.api.dependencies import get_actor_id, get_notification_service
from roomie_ledger.api.errors import to_http_exception
from roomie_ledger.domain.exceptions import DomainException
from roomie_ledger.services.notifications import NotificationService

router = APIRouter()


@router.get("/groups/{group_id}/notifications", response_model=NotificationListResponse)
def list_notifications(
    group_id: str,
    actor_id: str = Depends(get_actor_id),
    service: NotificationService = Depends(get_notification_service),
):
    """Latest events for the group with the caller's unread count"""
    try:
        events, unread = service.list_feed(group_id, actor_id)
    except DomainException as e:
        raise to_http_exception(e)

    return NotificationListResponse(
        group_id=group_id,
        unread_count=unread,
        notifications=[
            NotificationSchema(
                notification_id=e.event_id,
                type=e.type.value,
                title=e.title,
                body=e.body,
                meta=e.meta,
                created_at=e.created_at,
                created_by=e.created_by,
                read=actor_id in e.read_by,
            )
            for e in events
        ],
    )


@router.post("/groups/{group_id}/notifications/read-all", response_model=MarkReadResponse)
def mark_all_read(
    group_id: str,
    actor_id: str = Depends(get_actor_id),
    service: NotificationService = Depends(get_notification_service),
):
    try:
        marked = service.mark_all_read(group_id, actor_id)
    except DomainException as e:
        raise to_http_exception(e)
    return MarkReadResponse(marked=marked)


@router.post("/groups/{group_id}/notifications/{notification_id}/read", response_model=MarkReadResponse)
def mark_read(
    group_id: str,
    notification_id: str,
    actor_id: str = Depends(get_actor_id),
    service: NotificationService = Depends(get_notification_service),
):
    try:
        changed = service.mark_read(group_id, actor_id, notification_id)
    except DomainException as e:
        raise to_http_exception(e)
    return MarkReadResponse(marked=int(changed))
